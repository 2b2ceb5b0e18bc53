"""ASGI wrapper exposing the attachment to the application under test."""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from starlette.types import ASGIApp, Receive, Scope, Send

    from mock_auth.authentication import Authentication


class AttachmentScopeMiddleware:
    """
    ASGI middleware that places the attachment into scope["state"].

    Wraps the application for a single dispatch. Starlette and FastAPI read
    scope["state"] through request.state, so the app sees the attached
    Authentication under state_key and the expected CSRF token under
    csrf_state_key. The app receives a copy; the recorded attachment stays
    untouched.
    """

    def __init__(
        self,
        app: ASGIApp,
        *,
        attachment: Authentication | None,
        csrf_token: str | None,
        state_key: str,
        csrf_state_key: str,
    ) -> None:
        self.app = app
        self.attachment = attachment
        self.csrf_token = csrf_token
        self.state_key = state_key
        self.csrf_state_key = csrf_state_key

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        state: dict[str, Any] = dict(scope.get("state") or {})
        if self.attachment is not None:
            state[self.state_key] = copy.deepcopy(self.attachment)
        if self.csrf_token is not None:
            state[self.csrf_state_key] = self.csrf_token

        await self.app({**scope, "state": state}, receive, send)
