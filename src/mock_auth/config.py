"""
Configuration management for mock-auth.

Loads configuration from YAML with ZERO defaults.
Every value must be explicitly specified in the file or loading fails.
The bundled config.yaml ships the documented defaults; point
MOCK_AUTH_CONFIG_PATH at another file to override them.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict

CONFIG_ENV_VAR = "MOCK_AUTH_CONFIG_PATH"
_BUNDLED_CONFIG = Path(__file__).resolve().parent / "config.yaml"


class PackageConfig(BaseModel):
    """Library identity configuration."""

    model_config = ConfigDict(extra="forbid")
    name: str
    version: str


class LoggingConfig(BaseModel):
    """Logging configuration."""

    model_config = ConfigDict(extra="forbid")
    level: str
    logger_name: str
    directory: str | None


class UserConfig(BaseModel):
    """Defaults for mock users."""

    model_config = ConfigDict(extra="forbid")
    default_name: str
    default_password: str
    default_roles: list[str]
    role_prefix: str


class JwtConfig(BaseModel):
    """Defaults for synthesized JWTs and scope-derived authorities."""

    model_config = ConfigDict(extra="forbid")
    default_headers: dict[str, Any]
    default_claims: dict[str, Any]
    default_token_value: str
    authority_prefix: str
    scope_claims: list[str]


class OpaqueTokenConfig(BaseModel):
    """Defaults for opaque bearer tokens."""

    model_config = ConfigDict(extra="forbid")
    default_attributes: dict[str, Any]
    default_token_value: str


class OidcConfig(BaseModel):
    """Defaults for OIDC logins."""

    model_config = ConfigDict(extra="forbid")
    default_id_token_claims: dict[str, Any]
    default_token_value: str
    default_authorities: list[str]
    name_attribute: str


class TransportConfig(BaseModel):
    """Where attachments are placed on the outgoing request."""

    model_config = ConfigDict(extra="forbid")
    authorization_header: str
    bearer_prefix: str
    state_key: str
    csrf_header: str
    csrf_state_key: str


class Settings(BaseModel):
    """
    Root configuration container.

    All fields are REQUIRED. No defaults exist.
    Missing fields cause an immediate load failure.
    """

    model_config = ConfigDict(extra="forbid")
    testkit: PackageConfig
    logging: LoggingConfig
    user: UserConfig
    jwt: JwtConfig
    opaque_token: OpaqueTokenConfig
    oidc: OidcConfig
    transport: TransportConfig


def get_config_path() -> Path:
    """Determine configuration file path."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override)
    return _BUNDLED_CONFIG


def load_settings(config_path: Path) -> Settings:
    """Load and validate settings from a YAML file."""
    raw = yaml.safe_load(config_path.read_text())
    if not isinstance(raw, dict):
        msg = f"Invalid config file: {config_path}"
        raise ValueError(msg)
    return Settings(**raw)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the cached settings, loading them on first use."""
    return load_settings(get_config_path())


def clear_settings_cache() -> None:
    """Drop cached settings. Used in testing."""
    get_settings.cache_clear()


def get_safe_config() -> dict[str, Any]:
    """Get configuration as a plain dictionary."""
    return get_settings().model_dump()
