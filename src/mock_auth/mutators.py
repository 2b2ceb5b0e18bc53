"""
Mutation handles: mock users, JWTs, opaque tokens, OIDC logins and CSRF.

A handle is an immutable value; its with_* methods return modified copies.
Applied to a pending request, an identity handle synthesizes one
Authentication and attaches it, replacing any earlier attachment.
"""

from __future__ import annotations

import copy
import secrets
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

from mock_auth.authentication import Authentication
from mock_auth.config import get_settings
from mock_auth.exceptions import ValidationError
from mock_auth.identity import IdentityDescriptor, principal_from_claim, with_user
from mock_auth.injector import attach_authentication, attach_csrf, validate_authentication
from mock_auth.lifecycle import Phase
from mock_auth.tokens import TokenDescriptor, default_jwt, derive_authorities, synthesize

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from mock_auth.requests import PendingRequest
    from mock_auth.tokens import AuthoritiesConverter, TokenMutation


def _chain(
    first: TokenMutation | None,
    second: TokenMutation,
) -> TokenMutation:
    if first is None:
        return second

    def chained(token: TokenDescriptor) -> TokenDescriptor:
        return second(first(token))

    return chained


def _token_identity(
    token: TokenDescriptor,
    authorities: frozenset[str],
) -> IdentityDescriptor:
    subject = token.subject
    return IdentityDescriptor(
        principal_name=principal_from_claim(subject),
        authorities=authorities,
        attributes=token.claims,
    )


class MutationHandle(ABC):
    """Attaches exactly one identity/token pair to a pending request."""

    @abstractmethod
    def synthesize(self) -> Authentication:
        """Build the authentication this handle attaches."""

    def apply(self, request: PendingRequest) -> PendingRequest:
        authentication = self.synthesize()
        validate_authentication(authentication)
        request.lifecycle.advance(Phase.SYNTHESIZED)
        return attach_authentication(request, authentication)


@dataclass(frozen=True)
class MockUser(MutationHandle):
    """A username/password principal with role-derived authorities."""

    name: str | None = None
    roles: tuple[str, ...] | None = None
    authorities: tuple[str, ...] | None = None
    password: str | None = None
    attributes: dict[str, Any] = field(default_factory=dict)

    def with_name(self, name: str) -> MockUser:
        return replace(self, name=name)

    def with_roles(self, *roles: str) -> MockUser:
        return replace(self, roles=roles)

    def with_authorities(self, *authorities: str) -> MockUser:
        return replace(self, authorities=authorities)

    def with_password(self, password: str) -> MockUser:
        return replace(self, password=password)

    def synthesize(self) -> Authentication:
        settings = get_settings()
        identity = with_user(
            self.name,
            self.roles,
            authorities=self.authorities,
            attributes=self.attributes,
            settings=settings,
        )
        password = self.password if self.password is not None else settings.user.default_password
        return Authentication(identity=identity, credentials=password)


@dataclass(frozen=True)
class MockJwt(MutationHandle):
    """A bearer JWT whose scope claim becomes SCOPE_ authorities."""

    mutate: TokenMutation | None = None
    headers: dict[str, Any] = field(default_factory=dict)
    claims: dict[str, Any] = field(default_factory=dict)
    raw_value: str | None = None
    token: TokenDescriptor | None = None
    authorities: tuple[str, ...] | None = None
    converter: AuthoritiesConverter | None = None

    def jwt(self, mutate: TokenMutation) -> MockJwt:
        """Add a token mutation; it runs after any earlier ones."""
        return replace(self, mutate=_chain(self.mutate, mutate))

    def with_token(self, token: TokenDescriptor) -> MockJwt:
        return replace(self, token=token)

    def with_authorities(self, *authorities: str) -> MockJwt:
        return replace(self, authorities=authorities)

    def with_converter(self, converter: AuthoritiesConverter) -> MockJwt:
        return replace(self, converter=converter)

    def _defaults(self) -> TokenDescriptor:
        return default_jwt(get_settings())

    def synthesize(self) -> Authentication:
        settings = get_settings()
        token = synthesize(
            self.mutate,
            headers=self.headers,
            claims=self.claims,
            raw_value=self.raw_value,
            token=self.token,
            defaults=self._defaults(),
        )
        authorities = derive_authorities(
            token,
            authorities=self.authorities,
            converter=self.converter,
            settings=settings,
        )
        return Authentication(
            identity=_token_identity(token, authorities),
            token=token,
            credentials=token.raw_value,
            bearer=True,
        )


@dataclass(frozen=True)
class MockOpaqueToken(MockJwt):
    """
    An opaque bearer token described by its introspection attributes.

    The attributes play the role of claims; there are no headers.
    """

    def with_attribute(self, name: str, value: Any) -> MockOpaqueToken:
        return replace(self, claims={**self.claims, name: value})

    def _defaults(self) -> TokenDescriptor:
        settings = get_settings()
        return TokenDescriptor(
            headers={},
            claims=copy.deepcopy(settings.opaque_token.default_attributes),
            raw_value=settings.opaque_token.default_token_value,
        )


@dataclass(frozen=True)
class MockOidcLogin(MutationHandle):
    """A session login backed by an OIDC id token and user info."""

    id_token_claims: dict[str, Any] = field(default_factory=dict)
    user_info: dict[str, Any] = field(default_factory=dict)
    authorities: tuple[str, ...] | None = None
    name_attribute: str | None = None
    raw_value: str | None = None

    def with_authorities(self, *authorities: str) -> MockOidcLogin:
        return replace(self, authorities=authorities)

    def with_user_info(self, **user_info: Any) -> MockOidcLogin:
        return replace(self, user_info={**self.user_info, **user_info})

    def synthesize(self) -> Authentication:
        settings = get_settings()
        defaults = TokenDescriptor(
            headers=copy.deepcopy(settings.jwt.default_headers),
            claims=copy.deepcopy(settings.oidc.default_id_token_claims),
            raw_value=settings.oidc.default_token_value,
        )
        id_token = synthesize(
            claims=self.id_token_claims,
            raw_value=self.raw_value,
            defaults=defaults,
        )

        attributes = {**id_token.claims, **copy.deepcopy(self.user_info)}
        name_attribute = self.name_attribute or settings.oidc.name_attribute
        name = attributes.get(name_attribute)
        authorities = (
            self.authorities
            if self.authorities is not None
            else tuple(settings.oidc.default_authorities)
        )

        identity = IdentityDescriptor(
            principal_name=principal_from_claim(name),
            authorities=frozenset(authorities),
            attributes=attributes,
        )
        return Authentication(identity=identity, token=id_token, credentials=id_token.raw_value)


@dataclass(frozen=True)
class MockAuthentication(MutationHandle):
    """Attaches an already built authentication unchanged."""

    authentication: Authentication

    def __post_init__(self) -> None:
        if not isinstance(self.authentication, Authentication):
            raise ValidationError(
                "authentication must be an Authentication",
                "INVALID_DESCRIPTOR",
                {"type": type(self.authentication).__name__},
            )

    def synthesize(self) -> Authentication:
        return self.authentication


@dataclass(frozen=True)
class CsrfHandle:
    """Attaches a CSRF token; a fresh random one per request when unset."""

    token: str | None = None

    def apply(self, request: PendingRequest) -> PendingRequest:
        token = self.token if self.token is not None else secrets.token_urlsafe(32)
        return attach_csrf(request, token)


def _as_tuple(values: Iterable[str] | None) -> tuple[str, ...] | None:
    if values is None:
        return None
    if isinstance(values, str):
        return (values,)
    return tuple(values)


def mock_user(
    name: str | None = None,
    roles: Iterable[str] | None = None,
    *,
    authorities: Iterable[str] | None = None,
    password: str | None = None,
    attributes: Mapping[str, Any] | None = None,
) -> MockUser:
    """Mock user handle; defaults to "user" with role USER."""
    return MockUser(
        name=name,
        roles=_as_tuple(roles),
        authorities=_as_tuple(authorities),
        password=password,
        attributes=dict(attributes or {}),
    )


def mock_jwt(
    mutate: TokenMutation | None = None,
    *,
    headers: Mapping[str, Any] | None = None,
    claims: Mapping[str, Any] | None = None,
    raw_value: str | None = None,
    token: TokenDescriptor | None = None,
    authorities: Iterable[str] | None = None,
    converter: AuthoritiesConverter | None = None,
) -> MockJwt:
    """Mock JWT handle; defaults to alg none, sub user, scope read, value token."""
    return MockJwt(
        mutate=mutate,
        headers=dict(headers or {}),
        claims=dict(claims or {}),
        raw_value=raw_value,
        token=token,
        authorities=_as_tuple(authorities),
        converter=converter,
    )


def mock_opaque_token(
    mutate: TokenMutation | None = None,
    *,
    attributes: Mapping[str, Any] | None = None,
    raw_value: str | None = None,
    token: TokenDescriptor | None = None,
    authorities: Iterable[str] | None = None,
    converter: AuthoritiesConverter | None = None,
) -> MockOpaqueToken:
    """Mock opaque token handle; defaults to sub user, scope read, value token."""
    return MockOpaqueToken(
        mutate=mutate,
        claims=dict(attributes or {}),
        raw_value=raw_value,
        token=token,
        authorities=_as_tuple(authorities),
        converter=converter,
    )


def mock_oidc_login(
    *,
    id_token_claims: Mapping[str, Any] | None = None,
    user_info: Mapping[str, Any] | None = None,
    authorities: Iterable[str] | None = None,
    name_attribute: str | None = None,
    raw_value: str | None = None,
) -> MockOidcLogin:
    """Mock OIDC login handle; defaults to sub user with SCOPE_read."""
    return MockOidcLogin(
        id_token_claims=dict(id_token_claims or {}),
        user_info=dict(user_info or {}),
        authorities=_as_tuple(authorities),
        name_attribute=name_attribute,
        raw_value=raw_value,
    )


def mock_authentication(authentication: Authentication) -> MockAuthentication:
    return MockAuthentication(authentication=authentication)


def csrf(token: str | None = None) -> CsrfHandle:
    return CsrfHandle(token=token)


Handle = MutationHandle | CsrfHandle
