"""
Ledger RPC boundary.

    - ``LedgerClient``: protocol the pipeline depends on.
    - ``SorobanRpcClient``: JSON-RPC implementation.
    - ``JsonRpcTransport`` / ``RelayTransport``: injectable HTTP seams.
    - ``HttpxTransport``: default httpx-based transport.
"""

from soroban_relay.rpc.client import (
    AccountState,
    LatestLedger,
    LedgerClient,
    TransactionStatusResult,
)
from soroban_relay.rpc.jsonrpc_client import SorobanRpcClient
from soroban_relay.rpc.transport import (
    HttpResponse,
    HttpxTransport,
    JsonRpcTransport,
    RelayTransport,
)

__all__ = [
    "AccountState",
    "HttpResponse",
    "HttpxTransport",
    "JsonRpcTransport",
    "LatestLedger",
    "LedgerClient",
    "RelayTransport",
    "SorobanRpcClient",
    "TransactionStatusResult",
]
