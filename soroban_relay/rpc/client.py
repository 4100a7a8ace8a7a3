"""
Ledger client protocol: the network boundary to the ledger.

Defines the interface the pipeline depends on, not a concrete
implementation. The ledger is an external collaborator: this package
consumes its simulate / account / latest-ledger / transaction-status
operations and implements none of them.

Concrete implementations:
    - SorobanRpcClient (JSON-RPC over an injectable transport)
    - FakeLedger (tests)

Results are boring frozen dataclasses. Transport failures propagate as
exceptions; JSON-RPC error objects raise LedgerRpcError.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from soroban_relay.errors import TransactionStatus
from soroban_relay.invocation import SimulationResult


# =========================================================================
# Result types
# =========================================================================


@dataclass(frozen=True)
class AccountState:
    """Ledger state of a classic account.

    Attributes:
        address: Account strkey (G...).
        sequence: Current sequence number.
    """

    address: str
    sequence: int


@dataclass(frozen=True)
class LatestLedger:
    """Most recent ledger known to the node."""

    sequence: int
    protocol_version: int | None = None
    id: str | None = None


@dataclass(frozen=True)
class TransactionStatusResult:
    """Status of a transaction hash as reported by the ledger.

    Attributes:
        status: PENDING, SUCCESS, FAILED or NOT_FOUND.
        tx_hash: The queried hash.
        ledger: Ledger the transaction closed in, when known.
        result_xdr: Base64 TransactionResult, when known.
        envelope_xdr: Base64 TransactionEnvelope, when known.
        result_meta_xdr: Base64 TransactionMeta, when known.
        latest_ledger: Latest ledger of the node at query time.
    """

    status: TransactionStatus
    tx_hash: str
    ledger: int | None = None
    result_xdr: str | None = None
    envelope_xdr: str | None = None
    result_meta_xdr: str | None = None
    latest_ledger: int | None = None


# =========================================================================
# Protocol
# =========================================================================


@runtime_checkable
class LedgerClient(Protocol):
    """Interface for ledger network operations."""

    async def simulate_transaction(self, tx_xdr: str) -> SimulationResult:
        """Simulate an unsigned envelope.

        Raises:
            LedgerRpcError: If the node or the simulation reports an error.
        """
        ...

    async def get_account(self, address: str) -> AccountState:
        ...

    async def get_latest_ledger(self) -> LatestLedger:
        ...

    async def get_transaction(self, tx_hash: str) -> TransactionStatusResult:
        ...
