"""
Soroban JSON-RPC client: real network implementation of LedgerClient.

Translates JSON-RPC responses into the frozen result types of
``rpc.client``. Uses an injectable transport (JsonRpcTransport) so the
HTTP layer can be swapped for test fakes without changing parsing logic.

No retry loops. No secrets. No ledger logic beyond response parsing.

Response conventions:
    - Success: {"jsonrpc": "2.0", "id": n, "result": {...}}
    - Error:   {"jsonrpc": "2.0", "id": n, "error": {"code", "message"}}
    - simulateTransaction reports contract failures inside the result
      as {"error": "HostError: ..."}.
    - Numeric fees arrive as strings.
"""

from __future__ import annotations

from typing import Any

from stellar_sdk import Keypair
from stellar_sdk import xdr as stellar_xdr

from soroban_relay.auth.codec import entry_from_xdr
from soroban_relay.errors import LedgerRpcError, classify_transaction_status
from soroban_relay.invocation import SimulationResult
from soroban_relay.log import get_logger
from soroban_relay.rpc.client import AccountState, LatestLedger, TransactionStatusResult
from soroban_relay.rpc.transport import HttpxTransport, JsonRpcTransport

logger = get_logger(__name__)

# JSON-RPC request ID counter (simple, no thread-safety needed for async)
_REQUEST_ID = 0


def _next_request_id() -> int:
    global _REQUEST_ID
    _REQUEST_ID += 1
    return _REQUEST_ID


class SorobanRpcClient:
    """Soroban JSON-RPC client implementing the LedgerClient protocol.

    Args:
        url: The RPC endpoint URL (e.g. "https://soroban-testnet.stellar.org").
        transport: Injectable transport for HTTP POST. Defaults to
            HttpxTransport. Pass a FakeTransport for testing.
    """

    def __init__(
        self,
        url: str,
        transport: JsonRpcTransport | None = None,
    ) -> None:
        self._url = url
        self._transport = transport or HttpxTransport()

    @property
    def url(self) -> str:
        """The JSON-RPC endpoint URL."""
        return self._url

    async def _call(self, method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "jsonrpc": "2.0",
            "id": _next_request_id(),
            "method": method,
        }
        if params is not None:
            payload["params"] = params

        response = await self._transport.post_json(self._url, payload)
        return _unwrap(response)

    # -----------------------------------------------------------------
    # LedgerClient protocol methods
    # -----------------------------------------------------------------

    async def simulate_transaction(self, tx_xdr: str) -> SimulationResult:
        result = await self._call("simulateTransaction", {"transaction": tx_xdr})
        simulation = _parse_simulation(result)
        logger.debug(
            "ledger.simulated",
            auth_entries=len(simulation.auth),
            min_resource_fee=simulation.min_resource_fee,
        )
        return simulation

    async def get_account(self, address: str) -> AccountState:
        key = stellar_xdr.LedgerKey(
            type=stellar_xdr.LedgerEntryType.ACCOUNT,
            account=stellar_xdr.LedgerKeyAccount(
                account_id=Keypair.from_public_key(address).xdr_account_id()
            ),
        )
        result = await self._call("getLedgerEntries", {"keys": [key.to_xdr()]})
        return _parse_account(address, result)

    async def get_latest_ledger(self) -> LatestLedger:
        result = await self._call("getLatestLedger")
        return _parse_latest_ledger(result)

    async def get_transaction(self, tx_hash: str) -> TransactionStatusResult:
        result = await self._call("getTransaction", {"hash": tx_hash})
        return _parse_transaction(tx_hash, result)


# =====================================================================
# Response parsing (pure functions, no I/O)
# =====================================================================


def _unwrap(response: dict[str, Any]) -> dict[str, Any]:
    """Return the JSON-RPC result or raise on an error object."""
    error = response.get("error")
    if error is not None:
        if isinstance(error, dict):
            raise LedgerRpcError(error.get("code"), str(error.get("message", "unknown error")))
        raise LedgerRpcError(None, str(error))

    result = response.get("result")
    if not isinstance(result, dict):
        raise LedgerRpcError(None, "response carries no result object")
    return result


def _parse_simulation(result: dict[str, Any]) -> SimulationResult:
    """Parse a simulateTransaction result.

    Handles:
        - Successful simulation (transactionData + results[0])
        - Simulation errors reported inside the result
        - Missing transactionData (treated as an error)
    """
    if result.get("error"):
        raise LedgerRpcError(None, f"simulation failed: {result['error']}")

    transaction_data = result.get("transactionData")
    if not transaction_data:
        raise LedgerRpcError(None, "simulation returned no transactionData")

    auth: tuple[str, ...] = ()
    result_xdr = None
    results = result.get("results") or []
    if results:
        first = results[0]
        auth = tuple(first.get("auth") or ())
        result_xdr = first.get("xdr")

    return SimulationResult(
        transaction_data=transaction_data,
        min_resource_fee=int(result.get("minResourceFee", 0)),
        auth=tuple(entry_from_xdr(entry) for entry in auth),
        result_xdr=result_xdr,
        latest_ledger=result.get("latestLedger"),
    )


def _parse_account(address: str, result: dict[str, Any]) -> AccountState:
    entries = result.get("entries") or []
    if not entries:
        raise LedgerRpcError(None, f"account not found: {address}")
    data = stellar_xdr.LedgerEntryData.from_xdr(entries[0]["xdr"])
    if data.account is None:
        raise LedgerRpcError(None, f"ledger entry for {address} is not an account")
    return AccountState(address=address, sequence=data.account.seq_num.sequence_number.int64)


def _parse_latest_ledger(result: dict[str, Any]) -> LatestLedger:
    sequence = result.get("sequence")
    if sequence is None:
        raise LedgerRpcError(None, "getLatestLedger returned no sequence")
    return LatestLedger(
        sequence=int(sequence),
        protocol_version=result.get("protocolVersion"),
        id=result.get("id"),
    )


def _parse_transaction(tx_hash: str, result: dict[str, Any]) -> TransactionStatusResult:
    """Parse a getTransaction result.

    Handles:
        - SUCCESS / FAILED with ledger and XDR payloads
        - NOT_FOUND
        - Unknown status strings (kept PENDING)
    """
    return TransactionStatusResult(
        status=classify_transaction_status(result.get("status")),
        tx_hash=result.get("txHash") or tx_hash,
        ledger=result.get("ledger"),
        result_xdr=result.get("resultXdr"),
        envelope_xdr=result.get("envelopeXdr"),
        result_meta_xdr=result.get("resultMetaXdr"),
        latest_ledger=result.get("latestLedger"),
    )
