"""Unit tests for configuration loading."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pydantic
import pytest
import yaml

from mock_auth.config import (
    CONFIG_ENV_VAR,
    Settings,
    clear_settings_cache,
    get_config_path,
    get_safe_config,
    get_settings,
    load_settings,
)

if TYPE_CHECKING:
    from pathlib import Path


def _bundled() -> dict[str, Any]:
    return yaml.safe_load(get_config_path().read_text())


def _write(tmp_path: Path, data: dict[str, Any]) -> Path:
    config_path = tmp_path / "config.yaml"
    config_path.write_text(yaml.safe_dump(data))
    return config_path


@pytest.mark.unit
def test_bundled_config_loads() -> None:
    """The bundled config provides the documented defaults."""
    settings = get_settings()

    assert isinstance(settings, Settings)
    assert settings.user.default_name == "user"
    assert settings.user.default_roles == ["USER"]
    assert settings.user.role_prefix == "ROLE_"
    assert settings.jwt.default_headers == {"alg": "none"}
    assert settings.jwt.default_claims == {"sub": "user", "scope": "read"}
    assert settings.jwt.default_token_value == "token"
    assert settings.jwt.authority_prefix == "SCOPE_"
    assert settings.jwt.scope_claims == ["scope", "scp"]
    assert settings.transport.authorization_header == "Authorization"


@pytest.mark.unit
def test_settings_are_cached() -> None:
    """get_settings returns the same object until the cache is cleared."""
    first = get_settings()
    assert get_settings() is first

    clear_settings_cache()
    assert get_settings() is not first


@pytest.mark.unit
def test_env_var_overrides_config_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """MOCK_AUTH_CONFIG_PATH points the loader at another file."""
    data = _bundled()
    data["user"]["default_name"] = "alice"
    data["jwt"]["authority_prefix"] = "PERM_"
    config_path = _write(tmp_path, data)
    monkeypatch.setenv(CONFIG_ENV_VAR, str(config_path))

    clear_settings_cache()
    settings = get_settings()

    assert get_config_path() == config_path
    assert settings.user.default_name == "alice"
    assert settings.jwt.authority_prefix == "PERM_"


@pytest.mark.unit
def test_config_rejects_extra_fields(tmp_path: Path) -> None:
    """Unknown keys cause a validation error."""
    data = _bundled()
    data["user"]["extra_field"] = "should fail"

    with pytest.raises(pydantic.ValidationError):
        load_settings(_write(tmp_path, data))


@pytest.mark.unit
def test_config_rejects_missing_section(tmp_path: Path) -> None:
    """There are no defaults: a missing section fails."""
    data = _bundled()
    del data["transport"]

    with pytest.raises(pydantic.ValidationError):
        load_settings(_write(tmp_path, data))


@pytest.mark.unit
def test_config_rejects_non_mapping(tmp_path: Path) -> None:
    """A YAML document that is not a mapping is rejected."""
    config_path = tmp_path / "config.yaml"
    config_path.write_text("- just\n- a list\n")

    with pytest.raises(ValueError, match="Invalid config file"):
        load_settings(config_path)


@pytest.mark.unit
def test_missing_config_file(tmp_path: Path) -> None:
    """A missing file surfaces as FileNotFoundError."""
    with pytest.raises(FileNotFoundError):
        load_settings(tmp_path / "absent.yaml")


@pytest.mark.unit
def test_safe_config_is_plain_dict() -> None:
    """get_safe_config dumps the settings to a dictionary."""
    safe = get_safe_config()

    assert safe["testkit"]["name"] == "mock-auth"
    assert safe["oidc"]["default_authorities"] == ["SCOPE_read"]
