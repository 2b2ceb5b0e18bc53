"""Identity descriptors and the mock user builder."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from mock_auth.config import get_settings
from mock_auth.exceptions import ValidationError

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from mock_auth.config import Settings


@dataclass(frozen=True)
class IdentityDescriptor:
    """
    In-memory test principal.

    principal_name is None only for token-derived identities whose subject
    claim was removed on purpose.
    """

    principal_name: str | None
    authorities: frozenset[str] = frozenset()
    attributes: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        name = self.principal_name
        if name is not None and (not isinstance(name, str) or not name.strip()):
            raise ValidationError(
                "Principal name must be a non-empty string or None",
                "INVALID_DESCRIPTOR",
                {"field": "principal_name"},
            )
        object.__setattr__(self, "authorities", frozenset(self.authorities))
        object.__setattr__(self, "attributes", dict(self.attributes))

    def has_authority(self, authority: str) -> bool:
        return authority in self.authorities


def principal_from_claim(value: Any) -> str | None:
    """Principal name for a token claim; a missing or blank claim means no principal."""
    if value is None:
        return None
    name = str(value)
    return name if name.strip() else None


def _role_authorities(roles: Iterable[str], role_prefix: str) -> frozenset[str]:
    authorities: set[str] = set()
    for role in roles:
        if not isinstance(role, str) or not role:
            raise ValidationError(
                "Roles must be non-empty strings",
                "INVALID_DESCRIPTOR",
                {"role": role},
            )
        if role.startswith(role_prefix):
            raise ValidationError(
                f"Role '{role}' must not start with '{role_prefix}' (it is added automatically)",
                "INVALID_DESCRIPTOR",
                {"role": role},
            )
        authorities.add(f"{role_prefix}{role}")
    return frozenset(authorities)


def with_user(
    name: str | None = None,
    roles: Iterable[str] | None = None,
    *,
    authorities: Iterable[str] | None = None,
    attributes: Mapping[str, Any] | None = None,
    settings: Settings | None = None,
) -> IdentityDescriptor:
    """
    Build an identity for a mock user without verifying any credential.

    name and roles fall back to the configured defaults ("user", ["USER"]).
    Roles are turned into authorities with the role prefix; an explicit
    authorities iterable replaces them entirely.

    Raises:
        ValidationError: empty name, empty role, or a role already carrying
            the role prefix
    """
    settings = settings or get_settings()

    if name is None:
        name = settings.user.default_name
    if not isinstance(name, str) or not name.strip():
        raise ValidationError(
            "User name must be a non-empty string",
            "INVALID_DESCRIPTOR",
            {"field": "name"},
        )

    if authorities is not None:
        resolved = frozenset(authorities)
    else:
        if roles is None:
            roles = settings.user.default_roles
        elif isinstance(roles, str):
            roles = [roles]
        resolved = _role_authorities(roles, settings.user.role_prefix)

    return IdentityDescriptor(
        principal_name=name,
        authorities=resolved,
        attributes=dict(attributes or {}),
    )
