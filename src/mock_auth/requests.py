"""Pending requests and dispatched exchanges."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import httpx

from mock_auth.exceptions import ConfigurationError
from mock_auth.lifecycle import Lifecycle, Phase

if TYPE_CHECKING:
    from collections.abc import Mapping

    from mock_auth.assertions import AuthAssertions
    from mock_auth.authentication import Authentication
    from mock_auth.client import MockAuthClient
    from mock_auth.mutators import Handle


class PendingRequest:
    """
    A simulated request that has not been sent yet.

    Holds at most one authentication attachment and one CSRF token, both set
    through the injector. Once dispatched it can no longer be mutated.
    """

    def __init__(
        self,
        method: str,
        uri: str,
        *,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
        content: str | bytes | None = None,
        client: MockAuthClient | None = None,
    ) -> None:
        self.method = method.upper()
        self.uri = uri
        self.headers = httpx.Headers(dict(headers or {}))
        self.params = dict(params or {})
        self.json = json
        self.content = content
        self.attachment: Authentication | None = None
        self.csrf_token: str | None = None
        self.lifecycle = Lifecycle()
        self.response: httpx.Response | None = None
        self._client = client

    @property
    def phase(self) -> Phase:
        return self.lifecycle.phase

    def header(self, name: str, value: str) -> PendingRequest:
        """Set a plain header before dispatch."""
        if self.lifecycle.dispatched:
            raise ConfigurationError(
                "Cannot set a header: request was already dispatched",
                "ALREADY_DISPATCHED",
                {"header": name},
            )
        self.headers[name] = value
        return self

    def mutate_with(self, handle: Handle) -> PendingRequest:
        """Apply a mutation handle; a later identity handle replaces an earlier one."""
        return handle.apply(self)

    async def exchange(self) -> Exchange:
        """
        Dispatch through the bound client.

        Raises:
            ConfigurationError: no client bound, or already dispatched
        """
        if self._client is None:
            raise ConfigurationError(
                "Request is not bound to a client",
                "NO_CLIENT",
                {"uri": self.uri},
            )
        return await self._client.exchange(self)

    def __repr__(self) -> str:
        return f"PendingRequest({self.method} {self.uri}, phase={self.phase.value!r})"


@dataclass(frozen=True)
class Exchange:
    """A dispatched request together with its response."""

    request: PendingRequest
    response: httpx.Response

    @property
    def status_code(self) -> int:
        return self.response.status_code

    @property
    def text(self) -> str:
        return self.response.text

    def json(self) -> Any:
        return self.response.json()

    @property
    def auth(self) -> AuthAssertions:
        """Read-only view of what was attached to the request."""
        from mock_auth.assertions import AuthAssertions

        return AuthAssertions(self.request)
