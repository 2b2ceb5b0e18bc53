"""
Reference credential-extraction point for FastAPI applications under test.

Resolution order: the attachment placed in scope["state"] by the client,
then an unverified compact Bearer token from the Authorization header.
"""

from __future__ import annotations

import secrets
from collections.abc import Awaitable, Callable

from fastapi import Depends, HTTPException, Request

from mock_auth.authentication import Authentication
from mock_auth.config import get_settings
from mock_auth.encoding import decode_compact
from mock_auth.exceptions import ValidationError
from mock_auth.identity import IdentityDescriptor, principal_from_claim
from mock_auth.logging import get_logger
from mock_auth.tokens import derive_authorities

_SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS", "TRACE"})


def resolve_authentication(request: Request) -> Authentication | None:
    """Return the request's authentication, or None when it carries none."""
    settings = get_settings()
    state = request.scope.get("state") or {}

    attached = state.get(settings.transport.state_key)
    if isinstance(attached, Authentication):
        return attached

    header = request.headers.get(settings.transport.authorization_header)
    prefix = settings.transport.bearer_prefix
    if not header or not header.lower().startswith(prefix.lower()):
        return None

    value = header[len(prefix) :].strip()
    try:
        token = decode_compact(value)
        authorities = derive_authorities(token, settings=settings)
    except ValidationError as exc:
        get_logger(__name__).debug(
            "Bearer token rejected",
            extra={"path": request.url.path, "reason": exc.message},
        )
        return None

    identity = IdentityDescriptor(
        principal_name=principal_from_claim(token.subject),
        authorities=authorities,
        attributes=token.claims,
    )
    return Authentication(identity=identity, token=token, credentials=value, bearer=True)


async def current_authentication(request: Request) -> Authentication:
    """FastAPI dependency: the request's authentication, or 401."""
    authentication = resolve_authentication(request)
    if authentication is None:
        raise HTTPException(
            status_code=401,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return authentication


def require_authority(authority: str) -> Callable[..., Awaitable[Authentication]]:
    """FastAPI dependency factory: 403 unless the authentication holds authority."""

    async def dependency(
        authentication: Authentication = Depends(current_authentication),  # noqa: B008
    ) -> Authentication:
        if authority not in authentication.authorities:
            raise HTTPException(status_code=403, detail=f"Missing authority {authority}")
        return authentication

    return dependency


async def csrf_protected(request: Request) -> None:
    """FastAPI dependency: 403 on unsafe methods without the expected CSRF token."""
    if request.method in _SAFE_METHODS:
        return

    settings = get_settings()
    state = request.scope.get("state") or {}
    expected = state.get(settings.transport.csrf_state_key)
    provided = request.headers.get(settings.transport.csrf_header)
    if not expected or not provided or not secrets.compare_digest(expected, provided):
        raise HTTPException(status_code=403, detail="Invalid CSRF token")
