"""
Transaction assembler.

Merges a simulation's resource footprint and fee with a signed set of
authorization entries into a submittable envelope.

Two steps:
    - ``assemble()`` pure and deterministic: same inputs, same XDR. No
      clock reads, no randomness.
    - ``finalize()`` checks the outer (envelope) signature the signer
      produced and returns the binary envelope for the relay.

Authorization is checked before anything leaves the process: every
entry that needs an account signature must carry one, and the number of
signed entries must match what simulation required.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from stellar_sdk import Keypair, TransactionEnvelope
from stellar_sdk import xdr as stellar_xdr

from soroban_relay.auth.codec import attach_signature, authorization_preimage, entry_to_xdr_object
from soroban_relay.auth.entry import AuthorizationEntry
from soroban_relay.errors import IncompleteAuthorization
from soroban_relay.invocation import SimulationResult, invoke_operation
from soroban_relay.log import get_logger
from soroban_relay.signer import Signer

logger = get_logger(__name__)


@dataclass(frozen=True)
class SignedEnvelope:
    """An assembled envelope awaiting its outer signature.

    Attributes:
        envelope_xdr: Base64 TransactionEnvelope with fee, soroban data
            and signed authorization entries applied. No envelope
            signatures yet.
        tx_hash: Hex hash of the transaction (what the outer signature
            covers).
        fee: Total fee in stroops (inclusion + resource).
        auth: Authorization entries carried by the envelope.
        network_passphrase: Network the hash was computed for.
    """

    envelope_xdr: str
    tx_hash: str
    fee: int
    auth: tuple[AuthorizationEntry, ...]
    network_passphrase: str


def check_authorization(
    simulation: SimulationResult, signed_entries: Sequence[AuthorizationEntry]
) -> None:
    """Raise IncompleteAuthorization unless every required signature is present."""
    required = simulation.required_signature_count
    provided = sum(1 for e in signed_entries if e.requires_signature and e.is_signed)
    if provided != required:
        raise IncompleteAuthorization(required, provided)

    unsigned = [e.address for e in signed_entries if e.requires_signature and not e.is_signed]
    if unsigned:
        raise IncompleteAuthorization(
            required, provided, detail=f"unsigned entries for {', '.join(map(str, unsigned))}"
        )


def assemble(
    tx_xdr: str,
    simulation: SimulationResult,
    signed_entries: Sequence[AuthorizationEntry],
    network_passphrase: str,
) -> SignedEnvelope:
    """Apply simulation results and signed entries to an unsigned envelope.

    Args:
        tx_xdr: Base64 unsigned envelope that was simulated.
        simulation: Its simulation result (fee and footprint source).
        signed_entries: Authorization entries, signed where required.
        network_passphrase: Target network.

    Returns:
        SignedEnvelope ready for the outer signature.

    Raises:
        IncompleteAuthorization: Before any network call, when a required
            signature is missing or the signed count differs from what
            simulation required.
        ValueError: If the envelope is not a single contract invocation.
    """
    check_authorization(simulation, signed_entries)

    envelope = TransactionEnvelope.from_xdr(tx_xdr, network_passphrase)
    operation = invoke_operation(envelope)
    operation.auth = [entry_to_xdr_object(entry) for entry in signed_entries]

    transaction = envelope.transaction
    transaction.fee = transaction.fee + simulation.min_resource_fee
    transaction.soroban_data = stellar_xdr.SorobanTransactionData.from_xdr(
        simulation.transaction_data
    )
    envelope.signatures = []

    return SignedEnvelope(
        envelope_xdr=envelope.to_xdr(),
        tx_hash=envelope.hash_hex(),
        fee=transaction.fee,
        auth=tuple(signed_entries),
        network_passphrase=network_passphrase,
    )


def finalize(envelope: SignedEnvelope, signed_tx_xdr: str) -> bytes:
    """Check the signer's output and return the binary envelope.

    Raises:
        ValueError: The signed XDR is a different transaction.
        IncompleteAuthorization: The signed XDR carries no signature.
    """
    signed = TransactionEnvelope.from_xdr(signed_tx_xdr, envelope.network_passphrase)
    if signed.hash_hex() != envelope.tx_hash:
        raise ValueError(
            f"signed envelope hash {signed.hash_hex()} does not match "
            f"assembled transaction {envelope.tx_hash}"
        )
    if not signed.signatures:
        raise IncompleteAuthorization(1, 0, detail="envelope carries no signature")
    return signed.to_xdr_object().to_xdr_bytes()


async def sign_envelope(envelope: SignedEnvelope, signer: Signer) -> bytes:
    """Obtain the outer signature from ``signer`` and finalize."""
    signed_xdr = await signer.sign_transaction(
        envelope.envelope_xdr, network_passphrase=envelope.network_passphrase
    )
    return finalize(envelope, signed_xdr)


async def sign_entries(
    entries: Sequence[AuthorizationEntry],
    signer: Signer,
    network_passphrase: str,
) -> tuple[AuthorizationEntry, ...]:
    """Sign every entry that needs the signer's account signature.

    Entries for other addresses, contract identities and source-account
    entries pass through unchanged. Signing is sequential.
    """
    result: list[AuthorizationEntry] = []
    for entry in entries:
        if entry.requires_signature and entry.address == signer.address:
            preimage = authorization_preimage(entry, network_passphrase)
            signed = await signer.sign_auth_entry(
                preimage, network_passphrase=network_passphrase, address=entry.address
            )
            public_key = Keypair.from_public_key(signed.signer_address).raw_public_key()
            entry = attach_signature(entry, public_key, signed.signature)
            logger.debug("auth_entry.signed", address=signed.signer_address)
        result.append(entry)
    return tuple(result)
