"""Principal and credential pair attached to a request."""

from __future__ import annotations

from dataclasses import dataclass

from mock_auth.identity import IdentityDescriptor
from mock_auth.tokens import TokenDescriptor


@dataclass(frozen=True)
class Authentication:
    """
    A fully formed principal plus the credential it presented.

    bearer marks attachments whose token travels in the Authorization header;
    session-style logins (mock users, OIDC logins) leave it False.
    """

    identity: IdentityDescriptor
    token: TokenDescriptor | None = None
    credentials: str | None = None
    bearer: bool = False

    @property
    def principal_name(self) -> str | None:
        return self.identity.principal_name

    @property
    def authorities(self) -> frozenset[str]:
        return self.identity.authorities
