"""Simulated HTTP client dispatching pending requests to an ASGI app."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx

from mock_auth.config import get_settings
from mock_auth.lifecycle import Phase
from mock_auth.logging import get_logger
from mock_auth.requests import Exchange, PendingRequest
from mock_auth.transport import AttachmentScopeMiddleware

if TYPE_CHECKING:
    from collections.abc import Mapping

    from starlette.types import ASGIApp

    from mock_auth.mutators import Handle


class MockAuthClient:
    """
    Builds pending requests against an in-process ASGI application.

    Handles registered with mutate_with() are applied, in order, to every
    request the client creates, before the request is returned. Handles
    applied to the request afterwards replace them.
    """

    def __init__(
        self,
        app: ASGIApp,
        base_url: str = "http://test",
        *,
        headers: Mapping[str, str] | None = None,
        handles: tuple[Handle, ...] = (),
    ) -> None:
        self.app = app
        self.base_url = base_url
        self._headers = dict(headers or {})
        self._handles = tuple(handles)

    def mutate_with(self, handle: Handle) -> MockAuthClient:
        """Return a new client that applies handle to every request."""
        return MockAuthClient(
            self.app,
            self.base_url,
            headers=self._headers,
            handles=(*self._handles, handle),
        )

    def request(
        self,
        method: str,
        uri: str,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        json: Any = None,
        content: str | bytes | None = None,
    ) -> PendingRequest:
        pending = PendingRequest(
            method,
            uri,
            headers={**self._headers, **(headers or {})},
            params=params,
            json=json,
            content=content,
            client=self,
        )
        for handle in self._handles:
            handle.apply(pending)
        return pending

    def get(self, uri: str, **kwargs: Any) -> PendingRequest:
        return self.request("GET", uri, **kwargs)

    def post(self, uri: str, **kwargs: Any) -> PendingRequest:
        return self.request("POST", uri, **kwargs)

    def put(self, uri: str, **kwargs: Any) -> PendingRequest:
        return self.request("PUT", uri, **kwargs)

    def patch(self, uri: str, **kwargs: Any) -> PendingRequest:
        return self.request("PATCH", uri, **kwargs)

    def delete(self, uri: str, **kwargs: Any) -> PendingRequest:
        return self.request("DELETE", uri, **kwargs)

    async def exchange(self, request: PendingRequest) -> Exchange:
        """
        Send a pending request through the application.

        The request is marked dispatched before anything is sent, so a
        failing dispatch still leaves it immutable.

        Raises:
            ConfigurationError: the request was already dispatched
            StateError: the request is between synthesis and attachment
        """
        request.lifecycle.advance(Phase.DISPATCHED)

        settings = get_settings()
        logger = get_logger(__name__)

        app = AttachmentScopeMiddleware(
            self.app,
            attachment=request.attachment,
            csrf_token=request.csrf_token,
            state_key=settings.transport.state_key,
            csrf_state_key=settings.transport.csrf_state_key,
        )
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url=self.base_url) as http:
            response = await http.request(
                request.method,
                request.uri,
                params=request.params or None,
                headers=request.headers,
                json=request.json,
                content=request.content,
            )

        request.response = response
        logger.debug(
            "Dispatched request",
            extra={
                "method": request.method,
                "uri": request.uri,
                "status_code": response.status_code,
                "principal": None
                if request.attachment is None
                else request.attachment.principal_name,
            },
        )
        return Exchange(request=request, response=response)
