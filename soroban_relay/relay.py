"""
Relay submission client.

Sends a signed envelope plus the anti-automation token to the relay,
then watches the ledger until the transaction reaches a terminal state.

Two operations:
    - ``submit()`` one request / response. Fails fast without a bearer
      credential; never falls back to direct ledger submission; transport
      errors propagate (retry policy belongs to the caller).
    - ``submit_and_wait()`` submit, then poll ``get_transaction`` at a
      fixed interval.

Wait loop outcomes:
    SUCCESS     ledger applied the transaction
    FAILED      ledger included it and it failed (result XDR attached)
    NOT_FOUND   ledger still does not know the hash after the grace window
    TIMED_OUT   budget elapsed; the transaction may still land

Each poll is bounded by the remaining budget. Transport failures and
polls cut off by the budget are retried until the budget runs out and
then reported as TIMED_OUT. Any other error (a JSON-RPC error object,
a bug) propagates unchanged. TIMED_OUT is returned, never raised: an
unknown outcome is not a failure.

Request shape:
    POST <relay_url>
    Authorization: Bearer <relay token>
    X-Turnstile-Response: <anti-automation token>
    X-Client-Name / X-Client-Version
    body (form): xdr=<base64 TransactionEnvelope>
"""

from __future__ import annotations

import asyncio
import base64
import time
from dataclasses import dataclass
from typing import Awaitable, Callable

import httpx
from stellar_sdk import TransactionEnvelope

from soroban_relay.config import RelaySettings
from soroban_relay.errors import (
    NotFound,
    RelayNotConfigured,
    RelayRejected,
    TimedOut,
    TransactionFailed,
    TransactionStatus,
    is_terminal,
)
from soroban_relay.log import get_logger
from soroban_relay.rpc.client import LedgerClient
from soroban_relay.rpc.transport import HttpxTransport, RelayTransport

logger = get_logger(__name__)

# Poll failures worth another attempt; anything else propagates.
_TRANSIENT_POLL_ERRORS = (httpx.TransportError, httpx.HTTPStatusError, asyncio.TimeoutError)


# =========================================================================
# Result types
# =========================================================================


@dataclass(frozen=True)
class RelayReceipt:
    """Result of a relay submission.

    Attributes:
        hash: Transaction hash (hex).
        accepted_status: Status string the relay reported (e.g. "PENDING",
            "SUCCESS"); "ACCEPTED" when the relay reported none.
    """

    hash: str
    accepted_status: str


@dataclass(frozen=True)
class SubmissionOutcome:
    """Where a submitted transaction ended up.

    Attributes:
        status: PENDING, SUCCESS, FAILED, NOT_FOUND or TIMED_OUT.
        hash: Transaction hash, when submission got that far.
        result_xdr: Base64 TransactionResult for SUCCESS / FAILED.
        detail: Human-readable detail.
    """

    status: TransactionStatus
    hash: str | None = None
    result_xdr: str | None = None
    detail: str | None = None

    @property
    def is_terminal(self) -> bool:
        return is_terminal(self.status)

    @property
    def succeeded(self) -> bool:
        return self.status == TransactionStatus.SUCCESS

    def raise_for_status(self) -> SubmissionOutcome:
        """Return self on SUCCESS; raise the matching error otherwise."""
        if self.status == TransactionStatus.SUCCESS:
            return self
        message = self.detail or f"transaction {self.hash} ended {self.status.value}"
        if self.status == TransactionStatus.FAILED:
            raise TransactionFailed(message, self.hash, self.result_xdr)
        if self.status == TransactionStatus.NOT_FOUND:
            raise NotFound(message, self.hash)
        raise TimedOut(message, self.hash)


# =========================================================================
# Client
# =========================================================================


class RelaySubmissionClient:
    """Submits through the relay and waits on the ledger.

    Args:
        settings: Relay URL, credential, client identity, poll timing.
        ledger: Ledger client used for status polling.
        transport: Injectable relay transport. Defaults to HttpxTransport.
        clock: Monotonic clock in seconds. Inject for tests.
        sleep: Async sleep. Inject for tests.
    """

    def __init__(
        self,
        settings: RelaySettings,
        ledger: LedgerClient,
        transport: RelayTransport | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._settings = settings
        self._ledger = ledger
        self._transport = transport or HttpxTransport(timeout=settings.http_timeout_seconds)
        self._clock = clock
        self._sleep = sleep

    @property
    def configured(self) -> bool:
        return self._settings.relay_configured

    def _headers(self, token: str | None) -> dict[str, str]:
        if self._settings.relay_token is None:
            raise RelayNotConfigured()
        headers = {
            "Authorization": f"Bearer {self._settings.relay_token.get_secret_value()}",
            "X-Client-Name": self._settings.client_name,
            "X-Client-Version": self._settings.client_version,
        }
        if token:
            headers["X-Turnstile-Response"] = token
        return headers

    async def submit(self, envelope: bytes, token: str | None) -> RelayReceipt:
        """Send the signed envelope to the relay.

        Args:
            envelope: Binary TransactionEnvelope (from ``finalize``).
            token: Current anti-automation token; read, never cleared.

        Raises:
            RelayNotConfigured: No bearer credential; nothing was sent.
            RelayRejected: The relay answered non-2xx.
            Exception: Transport failures, unchanged.
        """
        if not self.configured:
            raise RelayNotConfigured()

        envelope_b64 = base64.b64encode(envelope).decode("ascii")
        response = await self._transport.post_form(
            self._settings.relay_url,
            {"xdr": envelope_b64},
            self._headers(token),
        )
        if not response.ok:
            detail = None
            if response.body is not None:
                detail = response.body.get("error") or response.body.get("message")
            logger.warning("relay.rejected", status_code=response.status_code)
            raise RelayRejected(response.status_code, str(detail or response.text or "") or None)

        body = response.body or {}
        tx_hash = body.get("hash") or self._local_hash(envelope_b64)
        accepted_status = str(body.get("status") or "ACCEPTED")
        logger.info("relay.submitted", tx_hash=tx_hash, status=accepted_status)
        return RelayReceipt(hash=tx_hash, accepted_status=accepted_status)

    def _local_hash(self, envelope_b64: str) -> str:
        return TransactionEnvelope.from_xdr(envelope_b64, self._settings.passphrase).hash_hex()

    async def submit_and_wait(
        self,
        envelope: bytes,
        token: str | None,
        timeout_seconds: float | None = None,
    ) -> SubmissionOutcome:
        """Submit, then poll the ledger until terminal or out of budget.

        Raises:
            RelayNotConfigured, RelayRejected: From ``submit``.
            Exception: Transport failures of the submit request itself.
        """
        budget = self._settings.submit_timeout_seconds if timeout_seconds is None else timeout_seconds
        started = self._clock()
        receipt = await self.submit(envelope, token)
        return await self.wait(receipt.hash, budget - (self._clock() - started))

    async def wait(self, tx_hash: str, timeout_seconds: float) -> SubmissionOutcome:
        """Poll the ledger for ``tx_hash``; see the module docstring."""
        interval = self._settings.poll_interval_seconds
        grace = self._settings.not_found_grace_seconds
        started = self._clock()
        deadline = started + timeout_seconds
        last_error: str | None = None

        while True:
            try:
                status = await asyncio.wait_for(
                    self._ledger.get_transaction(tx_hash),
                    timeout=max(deadline - self._clock(), 0),
                )
            except _TRANSIENT_POLL_ERRORS as exc:
                last_error = str(exc) or type(exc).__name__
                logger.warning("relay.poll_error", tx_hash=tx_hash, error=last_error)
            else:
                last_error = None
                if status.status == TransactionStatus.SUCCESS:
                    logger.info("relay.confirmed", tx_hash=tx_hash, ledger=status.ledger)
                    return SubmissionOutcome(
                        status=TransactionStatus.SUCCESS,
                        hash=tx_hash,
                        result_xdr=status.result_xdr,
                    )
                if status.status == TransactionStatus.FAILED:
                    logger.warning("relay.failed", tx_hash=tx_hash, ledger=status.ledger)
                    return SubmissionOutcome(
                        status=TransactionStatus.FAILED,
                        hash=tx_hash,
                        result_xdr=status.result_xdr,
                        detail=f"transaction {tx_hash} failed on-ledger",
                    )
                # A grace window at or past the budget never turns into NOT_FOUND.
                if (
                    status.status == TransactionStatus.NOT_FOUND
                    and self._clock() - started >= grace
                    and grace < timeout_seconds
                ):
                    logger.warning("relay.not_found", tx_hash=tx_hash)
                    return SubmissionOutcome(
                        status=TransactionStatus.NOT_FOUND,
                        hash=tx_hash,
                        detail=f"transaction {tx_hash} unknown to the ledger after {grace}s",
                    )

            remaining = deadline - self._clock()
            if remaining <= 0:
                break
            await self._sleep(min(interval, remaining))
            if self._clock() >= deadline:
                break

        detail = f"no terminal status for {tx_hash} within {timeout_seconds}s"
        if last_error:
            detail = f"{detail} (last poll error: {last_error})"
        logger.warning("relay.timed_out", tx_hash=tx_hash)
        return SubmissionOutcome(status=TransactionStatus.TIMED_OUT, hash=tx_hash, detail=detail)
