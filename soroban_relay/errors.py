"""
Error taxonomy for the signing / submission pipeline.

Keeps the split coarse and conservative: precondition failures are raised
before any network call, expected ledger outcomes are carried in result
objects, and everything else propagates unchanged.

Precondition errors (raised synchronously, never retried):
    - SigningUnavailable: no usable signer in the current runtime.
    - IncompleteAuthorization: an entry that needs a signature lacks one.
    - RelayNotConfigured: relay bearer credential missing.

Delegate / remote errors:
    - SigningRejected: the wallet or user declined.
    - ConnectionCancelled: the wallet modal was closed without a choice.
    - RelayRejected: relay answered with a non-2xx status.
    - LedgerRpcError: the ledger's JSON-RPC endpoint returned an error.

Terminal submission outcomes (see SubmissionOutcome.raise_for_status):
    - TransactionFailed, NotFound, TimedOut.

Ledger transaction statuses (getTransaction):
    - SUCCESS: applied in a closed ledger.
    - FAILED: included but failed; result XDR attached.
    - NOT_FOUND: unknown to the node (not yet ingested, or dropped).
"""

from __future__ import annotations

from enum import StrEnum


class SorobanRelayError(Exception):
    """Base class for every error raised by this package."""


# =========================================================================
# Signing
# =========================================================================


class SigningError(SorobanRelayError):
    """Signing could not produce a signature."""


class SigningRejected(SigningError):
    """The signing backend (or the user behind it) declined the request."""


class SigningUnavailable(SigningError):
    """No signing capability is usable in the current runtime."""


class ConnectionCancelled(SorobanRelayError):
    """The user closed the wallet selection without picking a wallet."""

    def __init__(self, message: str = "Connection cancelled") -> None:
        super().__init__(message)


# =========================================================================
# Authorization
# =========================================================================


class AuthorizationEditError(SorobanRelayError, ValueError):
    """An authorization-entry edit is not valid for the given entry."""


class IncompleteAuthorization(SorobanRelayError):
    """Signed entries do not cover every entry that requires a signature."""

    def __init__(self, required: int, provided: int, detail: str | None = None) -> None:
        self.required = required
        self.provided = provided
        message = (
            f"incomplete authorization: {required} signed entries required, "
            f"{provided} provided"
        )
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


# =========================================================================
# Relay
# =========================================================================


class RelayError(SorobanRelayError):
    """Relay submission failed."""


class RelayNotConfigured(RelayError):
    """The relay bearer credential is missing."""

    def __init__(self, message: str = "relay bearer credential is not configured") -> None:
        super().__init__(message)


class RelayRejected(RelayError):
    """The relay answered with a non-2xx status."""

    def __init__(self, status_code: int, detail: str | None = None) -> None:
        self.status_code = status_code
        self.detail = detail
        message = f"relay rejected submission (HTTP {status_code})"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


# =========================================================================
# Ledger
# =========================================================================


class LedgerRpcError(SorobanRelayError):
    """The ledger RPC returned a JSON-RPC error object."""

    def __init__(self, code: int | None, detail: str) -> None:
        self.code = code
        self.detail = detail
        super().__init__(f"ledger RPC error {code}: {detail}")


class SubmissionError(SorobanRelayError):
    """A submitted transaction did not reach a successful terminal state."""

    def __init__(self, message: str, tx_hash: str | None = None) -> None:
        self.tx_hash = tx_hash
        super().__init__(message)


class TimedOut(SubmissionError):
    """The wait budget elapsed; the transaction may still land."""


class NotFound(SubmissionError):
    """The ledger kept reporting the hash as unknown past the grace window."""


class TransactionFailed(SubmissionError):
    """The transaction was included on-ledger and failed."""

    def __init__(
        self, message: str, tx_hash: str | None = None, result_xdr: str | None = None
    ) -> None:
        self.result_xdr = result_xdr
        super().__init__(message, tx_hash)


# =========================================================================
# Status classification
# =========================================================================


class TransactionStatus(StrEnum):
    """Outcome status of a submitted transaction."""

    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    NOT_FOUND = "NOT_FOUND"
    TIMED_OUT = "TIMED_OUT"


_TERMINAL = {TransactionStatus.SUCCESS, TransactionStatus.FAILED, TransactionStatus.TIMED_OUT}

_LEDGER_STATUS_MAP: dict[str, TransactionStatus] = {
    "SUCCESS": TransactionStatus.SUCCESS,
    "FAILED": TransactionStatus.FAILED,
    "NOT_FOUND": TransactionStatus.NOT_FOUND,
}


def classify_transaction_status(status: str | None) -> TransactionStatus:
    """Map a ledger getTransaction status string to a TransactionStatus.

    Args:
        status: Status as reported by the ledger (case-insensitive).
            None means the node answered without a status.

    Returns:
        TransactionStatus. Unknown or missing values are PENDING: the
        poller keeps waiting rather than guessing a terminal state.
    """
    if status is None:
        return TransactionStatus.PENDING
    return _LEDGER_STATUS_MAP.get(status.upper(), TransactionStatus.PENDING)


def is_terminal(status: TransactionStatus) -> bool:
    """Whether a status ends the wait loop."""
    return status in _TERMINAL
