"""
Token descriptors and the token synthesizer.

A TokenDescriptor mirrors the shape of a signed bearer token (header map,
claim map, opaque value) without any cryptographic material. Descriptors are
immutable; every with_/without_ method returns a modified copy.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

from mock_auth.config import get_settings
from mock_auth.exceptions import ValidationError
from mock_auth.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping

    from mock_auth.config import Settings

    AuthoritiesConverter = Callable[["TokenDescriptor"], Iterable[str]]
    TokenMutation = Callable[["TokenDescriptor"], "TokenDescriptor"]


class _Remove:
    """Sentinel marking a header or claim for removal."""

    _instance: _Remove | None = None

    def __new__(cls) -> _Remove:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "REMOVE"

    def __copy__(self) -> _Remove:
        return self

    def __deepcopy__(self, memo: dict[int, Any]) -> _Remove:
        return self


REMOVE: Any = _Remove()


@dataclass(frozen=True)
class TokenDescriptor:
    """Pre-serialization representation of a bearer token."""

    headers: dict[str, Any] = field(default_factory=dict)
    claims: dict[str, Any] = field(default_factory=dict)
    raw_value: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.raw_value, str):
            raise ValidationError(
                "Token value must be a string",
                "INVALID_TOKEN",
                {"field": "raw_value"},
            )
        object.__setattr__(self, "headers", dict(self.headers))
        object.__setattr__(self, "claims", dict(self.claims))

    @property
    def subject(self) -> str | None:
        """The sub claim, or None when absent."""
        return self.claims.get("sub")

    def header(self, name: str, default: Any = None) -> Any:
        return self.headers.get(name, default)

    def claim(self, name: str, default: Any = None) -> Any:
        return self.claims.get(name, default)

    def with_header(self, name: str, value: Any) -> TokenDescriptor:
        return self.with_headers({name: value})

    def without_header(self, name: str) -> TokenDescriptor:
        return self.with_headers({name: REMOVE})

    def with_headers(self, headers: Mapping[str, Any]) -> TokenDescriptor:
        return replace(self, headers=_merge(self.headers, headers))

    def with_claim(self, name: str, value: Any) -> TokenDescriptor:
        return self.with_claims({name: value})

    def without_claim(self, name: str) -> TokenDescriptor:
        return self.with_claims({name: REMOVE})

    def with_claims(self, claims: Mapping[str, Any]) -> TokenDescriptor:
        return replace(self, claims=_merge(self.claims, claims))

    def with_raw_value(self, raw_value: str) -> TokenDescriptor:
        return replace(self, raw_value=raw_value)


def _merge(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    """Apply overrides to a copy of base; REMOVE deletes the key."""
    merged = copy.deepcopy(dict(base))
    for key, value in overrides.items():
        if value is REMOVE:
            merged.pop(key, None)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def default_jwt(settings: Settings | None = None) -> TokenDescriptor:
    """The configured default JWT: alg none, sub user, scope read, value token."""
    settings = settings or get_settings()
    return TokenDescriptor(
        headers=copy.deepcopy(settings.jwt.default_headers),
        claims=copy.deepcopy(settings.jwt.default_claims),
        raw_value=settings.jwt.default_token_value,
    )


def synthesize(
    mutate: TokenMutation | None = None,
    *,
    headers: Mapping[str, Any] | None = None,
    claims: Mapping[str, Any] | None = None,
    raw_value: str | None = None,
    token: TokenDescriptor | None = None,
    defaults: TokenDescriptor | None = None,
) -> TokenDescriptor:
    """
    Produce a syntactically valid, unverified token descriptor.

    Rules, in order:
        1. Start from defaults (the configured default JWT unless given).
        2. Apply the headers/claims mappings (REMOVE deletes a key), the raw
           value, then the mutate callable. Last write wins.
        3. A pre-built token bypasses 1 and 2 and is returned as-is.

    Removing "sub" is allowed and yields a descriptor without a subject.
    """
    logger = get_logger(__name__)

    if token is not None:
        logger.debug("Using pre-built token", extra={"claims": sorted(token.claims)})
        return token

    result = defaults if defaults is not None else default_jwt()
    if headers:
        result = result.with_headers(headers)
    if claims:
        result = result.with_claims(claims)
    if raw_value is not None:
        result = result.with_raw_value(raw_value)
    if mutate is not None:
        mutated = mutate(result)
        if not isinstance(mutated, TokenDescriptor):
            raise ValidationError(
                "Token mutation must return a TokenDescriptor",
                "INVALID_TOKEN",
                {"returned": type(mutated).__name__},
            )
        result = mutated

    logger.debug(
        "Synthesized token",
        extra={"headers": sorted(result.headers), "claims": sorted(result.claims)},
    )
    return result


def scope_values(token: TokenDescriptor, scope_claims: Iterable[str]) -> list[str]:
    """
    Entries of the first scope claim present on the token.

    A string claim is split on whitespace; a list claim is used item by item.
    """
    for claim_name in scope_claims:
        if claim_name not in token.claims:
            continue
        value = token.claims[claim_name]
        if value is None:
            return []
        if isinstance(value, str):
            return value.split()
        if isinstance(value, (list, tuple, set, frozenset)):
            return [str(item) for item in value if str(item)]
        raise ValidationError(
            f"Claim '{claim_name}' must be a string or a list of strings",
            "INVALID_TOKEN",
            {"claim": claim_name},
        )
    return []


def derive_authorities(
    token: TokenDescriptor,
    *,
    authorities: Iterable[str] | None = None,
    converter: AuthoritiesConverter | None = None,
    settings: Settings | None = None,
) -> frozenset[str]:
    """
    Resolve the authority set for a token.

    An explicit authorities iterable wins, then a converter; either one fully
    replaces scope derivation, they are never merged. Otherwise each scope
    entry becomes "<prefix><entry>" (SCOPE_read, SCOPE_write, ...).
    """
    if authorities is not None:
        if isinstance(authorities, str):
            return frozenset({authorities})
        return frozenset(authorities)
    if converter is not None:
        return frozenset(converter(token))

    settings = settings or get_settings()
    prefix = settings.jwt.authority_prefix
    return frozenset(
        f"{prefix}{scope}" for scope in scope_values(token, settings.jwt.scope_claims)
    )
