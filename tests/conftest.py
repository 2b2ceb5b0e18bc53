"""Shared fixtures: settings cache reset, demo app and client."""

from __future__ import annotations

import pytest
from fastapi import FastAPI

from mock_auth.client import MockAuthClient
from mock_auth.config import CONFIG_ENV_VAR, clear_settings_cache
from tests.helpers import create_demo_app


@pytest.fixture(autouse=True)
def _clear_caches(monkeypatch: pytest.MonkeyPatch):
    """Use the bundled config and clear the settings cache between tests."""
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def app() -> FastAPI:
    """Demo application guarded by the reference pipeline."""
    return create_demo_app()


@pytest.fixture
def client(app: FastAPI) -> MockAuthClient:
    """Simulated client bound to the demo application."""
    return MockAuthClient(app)
