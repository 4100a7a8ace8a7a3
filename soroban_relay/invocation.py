"""
Contract invocations and their simulation results.

Pure layer (no I/O): turns a contract call description into an unsigned
transaction envelope that the ledger can simulate, and lets edited
authorization entries be written back into that envelope for a second
simulation.

The envelope holds exactly one InvokeHostFunction operation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from stellar_sdk import Account, TransactionBuilder, TransactionEnvelope
from stellar_sdk import xdr as stellar_xdr
from stellar_sdk.operation import InvokeHostFunction

from soroban_relay.auth.codec import entry_to_xdr_object
from soroban_relay.auth.entry import AuthorizationEntry


@dataclass(frozen=True)
class UnsignedInvocation:
    """A contract call, immutable once built.

    Attributes:
        contract_id: Contract strkey (C...).
        method: Function name.
        args: Arguments as base64 SCVal XDR, in call order.
    """

    contract_id: str
    method: str
    args: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.contract_id:
            raise ValueError("contract_id must be non-empty")
        if not self.method:
            raise ValueError("method must be non-empty")

    @classmethod
    def create(
        cls, contract_id: str, method: str, args: Iterable[stellar_xdr.SCVal] = ()
    ) -> UnsignedInvocation:
        """Build from SCVal objects (e.g. ``stellar_sdk.scval.to_address``)."""
        return cls(contract_id=contract_id, method=method, args=tuple(a.to_xdr() for a in args))


@dataclass(frozen=True)
class SimulationResult:
    """Ledger-computed footprint and authorization for an invocation.

    Attributes:
        transaction_data: Base64 SorobanTransactionData (footprint and
            resources).
        min_resource_fee: Resource fee in stroops to add to the
            inclusion fee.
        auth: Authorization entries in invocation order.
        result_xdr: Base64 SCVal return value, if reported.
        latest_ledger: Ledger the simulation ran against.
    """

    transaction_data: str
    min_resource_fee: int
    auth: tuple[AuthorizationEntry, ...] = ()
    result_xdr: str | None = None
    latest_ledger: int | None = None

    @property
    def required_signature_count(self) -> int:
        """Entries that cannot be submitted without an account signature."""
        return sum(1 for entry in self.auth if entry.requires_signature)


def build_transaction(
    invocation: UnsignedInvocation,
    source_address: str,
    sequence: int,
    *,
    network_passphrase: str,
    base_fee: int = 100,
    timeout_seconds: int = 30,
) -> str:
    """Build the unsigned envelope for ``invocation``.

    Args:
        invocation: The contract call.
        source_address: Paying account (G...).
        sequence: The account's current sequence number (the builder
            increments it).
        network_passphrase: Target network.
        base_fee: Inclusion fee in stroops.
        timeout_seconds: Upper time bound; 0 means unbounded.

    Returns:
        Base64 TransactionEnvelope.
    """
    envelope = (
        TransactionBuilder(
            source_account=Account(source_address, sequence),
            network_passphrase=network_passphrase,
            base_fee=base_fee,
        )
        .append_invoke_contract_function_op(
            contract_id=invocation.contract_id,
            function_name=invocation.method,
            parameters=[stellar_xdr.SCVal.from_xdr(arg) for arg in invocation.args],
        )
        .set_timeout(timeout_seconds)
        .build()
    )
    return envelope.to_xdr()


def invoke_operation(envelope: TransactionEnvelope) -> InvokeHostFunction:
    """The single InvokeHostFunction operation of an envelope.

    Raises:
        ValueError: If the envelope does not hold exactly one.
    """
    operations = envelope.transaction.operations
    if len(operations) != 1 or not isinstance(operations[0], InvokeHostFunction):
        raise ValueError("envelope must contain exactly one InvokeHostFunction operation")
    return operations[0]


def with_auth(
    tx_xdr: str, entries: Sequence[AuthorizationEntry], network_passphrase: str
) -> str:
    """Return the envelope with its authorization entries replaced."""
    envelope = TransactionEnvelope.from_xdr(tx_xdr, network_passphrase)
    operation = invoke_operation(envelope)
    operation.auth = [entry_to_xdr_object(entry) for entry in entries]
    return envelope.to_xdr()
