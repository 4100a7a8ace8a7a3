"""
Anti-automation token store.

Single slot holding the most recent proof token produced by the
challenge widget. Each widget callback overwrites the slot; nothing is
queued, merged or expired here. Reading the token for a submission does
not consume it: rejecting a stale token is the relay's job.
"""

from __future__ import annotations

from typing import Callable


class AntiAutomationTokenStore:
    """Holds the latest anti-automation token, or nothing."""

    def __init__(self) -> None:
        self._token: str | None = None

    def set_token(self, token: str) -> None:
        """Overwrite the slot with a fresh token."""
        self._token = token

    def get_token(self) -> str | None:
        """Current token, or None when no callback has fired yet."""
        return self._token

    def clear(self) -> None:
        """Reset the slot to absent. Only an explicit reset calls this."""
        self._token = None

    @property
    def callback(self) -> Callable[[str], None]:
        """Callable to hand to the widget as its token callback."""
        return self.set_token
