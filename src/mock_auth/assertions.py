"""Read-only accessors over what a dispatched request carried."""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any

from mock_auth.lifecycle import Phase
from mock_auth.requests import Exchange, PendingRequest

if TYPE_CHECKING:
    from mock_auth.authentication import Authentication
    from mock_auth.tokens import TokenDescriptor


class AuthAssertions:
    """
    Field accessors for assertions on the attached identity and token.

    Every accessor requires the request to have been dispatched and raises
    StateError otherwise. Returned containers are copies.
    """

    def __init__(self, target: PendingRequest | Exchange) -> None:
        self._request = target.request if isinstance(target, Exchange) else target

    def _attachment(self) -> Authentication | None:
        self._request.lifecycle.advance(Phase.ASSERTED)
        return self._request.attachment

    def _token(self) -> TokenDescriptor | None:
        attachment = self._attachment()
        return None if attachment is None else attachment.token

    @property
    def is_authenticated(self) -> bool:
        return self._attachment() is not None

    @property
    def principal_name(self) -> str | None:
        attachment = self._attachment()
        return None if attachment is None else attachment.principal_name

    @property
    def authorities(self) -> frozenset[str]:
        attachment = self._attachment()
        return frozenset() if attachment is None else attachment.authorities

    @property
    def attributes(self) -> dict[str, Any]:
        attachment = self._attachment()
        return {} if attachment is None else copy.deepcopy(attachment.identity.attributes)

    @property
    def credentials(self) -> str | None:
        attachment = self._attachment()
        return None if attachment is None else attachment.credentials

    @property
    def token(self) -> TokenDescriptor | None:
        return copy.deepcopy(self._token())

    @property
    def token_value(self) -> str | None:
        token = self._token()
        return None if token is None else token.raw_value

    @property
    def token_headers(self) -> dict[str, Any]:
        token = self._token()
        return {} if token is None else copy.deepcopy(token.headers)

    @property
    def token_claims(self) -> dict[str, Any]:
        token = self._token()
        return {} if token is None else copy.deepcopy(token.claims)

    def claim(self, name: str, default: Any = None) -> Any:
        return copy.deepcopy(self.token_claims.get(name, default))

    def header(self, name: str, default: Any = None) -> Any:
        return copy.deepcopy(self.token_headers.get(name, default))

    @property
    def csrf_token(self) -> str | None:
        self._request.lifecycle.advance(Phase.ASSERTED)
        return self._request.csrf_token


def auth_of(target: PendingRequest | Exchange) -> AuthAssertions:
    """Assertion helpers for a pending request or an exchange."""
    return AuthAssertions(target)
