"""
Transport protocols for ledger JSON-RPC and relay HTTP calls.

Defines the seam where the concrete HTTP implementation plugs in. The
ledger client and the relay client depend on these protocols, not on
httpx directly, so tests swap in fakes without touching client logic.

Concrete implementations:
    - HttpxTransport (default, uses httpx.AsyncClient for both seams)
    - FakeTransport / FakeRelayTransport (tests, canned responses)

Error contract:
    - JSON-RPC: non-2xx and connection failures raise (httpx errors).
      JSON-RPC error objects come back as normal responses; the client
      interprets them.
    - Relay: the status code is returned, not raised, because the relay
      client maps non-2xx onto RelayRejected itself. Connection failures
      raise.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Protocol, runtime_checkable

import httpx


@dataclass(frozen=True)
class HttpResponse:
    """Minimal view of an HTTP response.

    Attributes:
        status_code: HTTP status.
        body: Parsed JSON object, or None when the body is not JSON.
        text: Raw body text, for diagnostics.
    """

    status_code: int
    body: dict[str, Any] | None = None
    text: str = ""
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


@runtime_checkable
class JsonRpcTransport(Protocol):
    """Async transport for JSON-RPC POST requests."""

    async def post_json(self, url: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Send a JSON-RPC request and return the parsed response.

        Raises:
            Exception: On transport-level failures (connection refused,
                timeout, TLS error, non-2xx status).
        """
        ...


@runtime_checkable
class RelayTransport(Protocol):
    """Async transport for form-encoded relay submissions."""

    async def post_form(
        self, url: str, data: Mapping[str, str], headers: Mapping[str, str]
    ) -> HttpResponse:
        """POST a form body and return the response without raising on status.

        Raises:
            Exception: On transport-level failures only.
        """
        ...


class HttpxTransport:
    """Default transport using httpx.AsyncClient."""

    def __init__(self, timeout: float = 30.0) -> None:
        self._timeout = timeout

    async def post_json(self, url: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Send JSON-RPC request via httpx."""
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            response = await client.post(
                url,
                json=payload,
                headers={"Content-Type": "application/json"},
            )
            response.raise_for_status()
            result: dict[str, Any] = response.json()
            return result

    async def post_form(
        self, url: str, data: Mapping[str, str], headers: Mapping[str, str]
    ) -> HttpResponse:
        """Send a form POST via httpx; status is reported, not raised."""
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            response = await client.post(url, data=dict(data), headers=dict(headers))
            return _to_http_response(response)


def _to_http_response(response: httpx.Response) -> HttpResponse:
    body: dict[str, Any] | None = None
    try:
        parsed = response.json()
    except ValueError:
        parsed = None
    if isinstance(parsed, dict):
        body = parsed
    return HttpResponse(
        status_code=response.status_code,
        body=body,
        text=response.text,
        headers=dict(response.headers),
    )
