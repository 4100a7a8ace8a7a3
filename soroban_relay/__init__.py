"""
soroban-relay: sign and submit Soroban contract calls through a relay.

Public API:

    Pure layer (no I/O):
        - ``UnsignedInvocation`` / ``build_transaction()``: the call.
        - Authorization entry model, codec and editor (``soroban_relay.auth``).
        - ``assemble()`` / ``finalize()``: envelope assembly.

    Impure layer (network / delegate I/O):
        - ``Signer``: InteractiveSigner (external wallet) or
          DeterministicSigner (test slots).
        - ``SorobanRpcClient``: ledger JSON-RPC.
        - ``RelaySubmissionClient``: relay submission + ledger polling.
        - ``invoke_contract()`` / ``transfer_admin()``: the full pipeline.

    Session state:
        - ``SessionContext``: active identity, wallet connection,
          ``AntiAutomationTokenStore``.

    Configuration and logging:
        - ``RelaySettings`` / ``get_settings()``.
        - ``configure_logging()``.
"""

__version__ = "0.1.0"

from soroban_relay.assembler import SignedEnvelope, assemble, finalize
from soroban_relay.config import RelaySettings, get_settings
from soroban_relay.errors import (
    AuthorizationEditError,
    ConnectionCancelled,
    IncompleteAuthorization,
    LedgerRpcError,
    NotFound,
    RelayNotConfigured,
    RelayRejected,
    SigningRejected,
    SigningUnavailable,
    SorobanRelayError,
    TimedOut,
    TransactionFailed,
    TransactionStatus,
)
from soroban_relay.invocation import SimulationResult, UnsignedInvocation, build_transaction
from soroban_relay.log import configure_logging
from soroban_relay.pipeline import PipelineResult, invoke_contract, transfer_admin
from soroban_relay.relay import RelayReceipt, RelaySubmissionClient, SubmissionOutcome
from soroban_relay.rpc import SorobanRpcClient
from soroban_relay.session import SessionContext
from soroban_relay.signer import (
    DeterministicSigner,
    DevKeyring,
    Identity,
    IdentityKind,
    InteractiveSigner,
    SignedAuthEntry,
    Signer,
    WalletConnection,
)
from soroban_relay.token_store import AntiAutomationTokenStore

__all__ = [
    "AntiAutomationTokenStore",
    "AuthorizationEditError",
    "ConnectionCancelled",
    "DeterministicSigner",
    "DevKeyring",
    "Identity",
    "IdentityKind",
    "IncompleteAuthorization",
    "InteractiveSigner",
    "LedgerRpcError",
    "NotFound",
    "PipelineResult",
    "RelayNotConfigured",
    "RelayReceipt",
    "RelayRejected",
    "RelaySettings",
    "RelaySubmissionClient",
    "SessionContext",
    "SignedAuthEntry",
    "SignedEnvelope",
    "Signer",
    "SigningRejected",
    "SigningUnavailable",
    "SimulationResult",
    "SorobanRelayError",
    "SorobanRpcClient",
    "SubmissionOutcome",
    "TimedOut",
    "TransactionFailed",
    "TransactionStatus",
    "UnsignedInvocation",
    "WalletConnection",
    "__version__",
    "assemble",
    "build_transaction",
    "configure_logging",
    "finalize",
    "get_settings",
    "invoke_contract",
    "transfer_admin",
]
