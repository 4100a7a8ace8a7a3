"""
End-to-end invocation pipeline.

One call drives one logical transaction through every step, strictly in
order; no two steps of the same transaction overlap:

    1. Read the paying account's sequence.
    2. Build the unsigned envelope.
    3. Simulate.
    4. Optionally edit the authorization entries, then re-simulate with
       the edited entries in place.
    5. Sign the entries that need the active signer's signature.
    6. Assemble (fee, footprint, entries).
    7. Outer signature via the active signer, finalize.
    8. Submit through the relay with the current anti-automation token,
       poll until terminal or timeout.

Identity and token are read from the session at the moment of use.
Precondition failures (no signer, incomplete authorization, relay not
configured) surface before anything is submitted.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Awaitable, Callable, Sequence

from stellar_sdk import scval

from soroban_relay.assembler import assemble, sign_entries, sign_envelope
from soroban_relay.auth.editor import prepare_admin_handoff
from soroban_relay.auth.entry import AuthorizationEntry
from soroban_relay.errors import RelayNotConfigured
from soroban_relay.invocation import (
    SimulationResult,
    UnsignedInvocation,
    build_transaction,
    with_auth,
)
from soroban_relay.log import get_logger
from soroban_relay.relay import RelaySubmissionClient, SubmissionOutcome
from soroban_relay.rpc.client import LedgerClient
from soroban_relay.session import SessionContext

logger = get_logger(__name__)

SET_ADMIN_FUNCTION = "set_admin"

# Receives simulated entries, returns the entries to sign.
AuthEdit = Callable[
    [tuple[AuthorizationEntry, ...]], Awaitable[Sequence[AuthorizationEntry]]
]


@dataclass(frozen=True)
class PipelineResult:
    """Result of one pipeline run.

    Attributes:
        outcome: Where the transaction ended up.
        envelope_hash: Hash of the submitted transaction.
        auth_entries: Authorization entries the envelope carried.
    """

    outcome: SubmissionOutcome
    envelope_hash: str
    auth_entries: tuple[AuthorizationEntry, ...]


async def invoke_contract(
    session: SessionContext,
    ledger: LedgerClient,
    relay: RelaySubmissionClient,
    invocation: UnsignedInvocation,
    *,
    timeout_seconds: float | None = None,
    edit: AuthEdit | None = None,
) -> PipelineResult:
    """Build, simulate, sign, assemble and submit one contract call.

    Args:
        session: Supplies the signer and the anti-automation token.
        ledger: Ledger client for account, simulation and polling.
        relay: Relay client for submission.
        invocation: The contract call.
        timeout_seconds: Wait budget; defaults to settings.
        edit: Optional async edit of the simulated authorization entries.
            When given, the edited entries are written back into the
            envelope and simulated again before signing.

    Returns:
        PipelineResult. TIMED_OUT outcomes are returned, not raised.

    Raises:
        SigningUnavailable: No active identity.
        SigningRejected: The signer declined.
        IncompleteAuthorization: A required signature is missing.
        RelayNotConfigured, RelayRejected: From the relay.
        LedgerRpcError: Simulation or account lookup failed.
    """
    settings = session.settings
    passphrase = settings.passphrase
    signer = session.signer()
    if not relay.configured:
        raise RelayNotConfigured()

    account = await ledger.get_account(signer.address)
    tx_xdr = build_transaction(
        invocation,
        account.address,
        account.sequence,
        network_passphrase=passphrase,
        base_fee=settings.base_fee,
        timeout_seconds=settings.tx_timeout_seconds,
    )
    logger.info(
        "pipeline.invoke",
        contract=invocation.contract_id,
        method=invocation.method,
        source=account.address,
    )

    simulation: SimulationResult = await ledger.simulate_transaction(tx_xdr)
    entries: tuple[AuthorizationEntry, ...] = simulation.auth

    if edit is not None:
        entries = tuple(await edit(entries))
        tx_xdr = with_auth(tx_xdr, entries, passphrase)
        # Footprint and fee from the second run; entries stay as edited.
        simulation = replace(await ledger.simulate_transaction(tx_xdr), auth=entries)

    signed_entries = await sign_entries(entries, signer, passphrase)
    envelope = assemble(tx_xdr, simulation, signed_entries, passphrase)
    envelope_bytes = await sign_envelope(envelope, signer)

    outcome = await relay.submit_and_wait(
        envelope_bytes,
        session.token_store.get_token(),
        timeout_seconds,
    )
    logger.info("pipeline.done", tx_hash=envelope.tx_hash, status=outcome.status.value)
    return PipelineResult(
        outcome=outcome,
        envelope_hash=envelope.tx_hash,
        auth_entries=envelope.auth,
    )


async def transfer_admin(
    session: SessionContext,
    ledger: LedgerClient,
    relay: RelaySubmissionClient,
    contract_id: str,
    new_admin: str,
    *,
    timeout_seconds: float | None = None,
) -> PipelineResult:
    """Hand administration of ``contract_id`` to the contract ``new_admin``.

    The active identity must be the current (classic account) admin and
    pays for the transaction. The new admin's entry expires at
    latest ledger + ``auth_expiration_ledgers``.

    Raises:
        AuthorizationEditError: Simulation returned fewer than two entries.
        Plus everything ``invoke_contract`` raises.
    """
    invocation = UnsignedInvocation.create(
        contract_id, SET_ADMIN_FUNCTION, [scval.to_address(new_admin)]
    )
    horizon = session.settings.auth_expiration_ledgers

    async def _handoff(entries: tuple[AuthorizationEntry, ...]) -> Sequence[AuthorizationEntry]:
        latest = await ledger.get_latest_ledger()
        logger.info(
            "pipeline.admin_handoff",
            contract=contract_id,
            new_admin=new_admin,
            expiration_ledger=latest.sequence + horizon,
        )
        return prepare_admin_handoff(entries, new_admin, latest.sequence + horizon)

    return await invoke_contract(
        session,
        ledger,
        relay,
        invocation,
        timeout_seconds=timeout_seconds,
        edit=_handoff,
    )
