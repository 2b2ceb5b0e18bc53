"""Shared test helpers: a small FastAPI app using the reference pipeline."""

from __future__ import annotations

import base64
import json
from typing import Any

from fastapi import Depends, FastAPI, Request

from mock_auth.authentication import Authentication
from mock_auth.pipeline import csrf_protected, current_authentication, require_authority


def _describe(authentication: Authentication) -> dict[str, Any]:
    token = authentication.token
    return {
        "name": authentication.principal_name,
        "authorities": sorted(authentication.authorities),
        "bearer": authentication.bearer,
        "credentials": authentication.credentials,
        "claims": {} if token is None else token.claims,
    }


def create_demo_app() -> FastAPI:
    """Build an app whose routes read credentials through mock_auth.pipeline."""
    app = FastAPI()

    @app.get("/public")
    async def public() -> dict[str, Any]:
        return {"ok": True}

    @app.get("/whoami")
    async def whoami(
        authentication: Authentication = Depends(current_authentication),  # noqa: B008
    ) -> dict[str, Any]:
        return _describe(authentication)

    @app.get("/admin")
    async def admin(
        authentication: Authentication = Depends(require_authority("ROLE_ADMIN")),  # noqa: B008
    ) -> dict[str, Any]:
        return _describe(authentication)

    @app.get("/messages")
    async def read_messages(
        authentication: Authentication = Depends(require_authority("SCOPE_message:read")),  # noqa: B008
    ) -> dict[str, Any]:
        return {"messages": ["hello"], "reader": authentication.principal_name}

    @app.post("/messages", dependencies=[Depends(csrf_protected)])
    async def write_message(
        authentication: Authentication = Depends(current_authentication),  # noqa: B008
    ) -> dict[str, Any]:
        return {"written": True, "author": authentication.principal_name}

    @app.get("/echo-headers")
    async def echo_headers(request: Request) -> dict[str, Any]:
        return {
            "authorization": request.headers.get("authorization"),
            "csrf": request.headers.get("x-csrf-token"),
        }

    return app


def make_unsigned_token(claims: dict[str, Any], header: dict[str, Any] | None = None) -> str:
    """Build a structurally valid, unsigned compact token."""
    header_part = (
        base64.urlsafe_b64encode(json.dumps(header or {"alg": "none"}).encode())
        .rstrip(b"=")
        .decode()
    )
    body = base64.urlsafe_b64encode(json.dumps(claims).encode()).rstrip(b"=").decode()
    return f"{header_part}.{body}."
