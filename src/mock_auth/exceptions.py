"""Exception types raised to the calling test."""

from __future__ import annotations

from typing import Any


class MockAuthError(Exception):
    """
    Base error carrying a machine-readable code, a message and details.

    Every error is a programmer error surfaced synchronously to the test.
    """

    default_error = "MOCK_AUTH_ERROR"

    def __init__(
        self,
        message: str,
        error: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.error = error or self.default_error
        self.message = message
        self.details = details if details is not None else {}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(error={self.error!r}, message={self.message!r})"


class ValidationError(MockAuthError):
    """Malformed descriptor or token input."""

    default_error = "INVALID_DESCRIPTOR"


class ConfigurationError(MockAuthError):
    """Misuse of the mutation/injection API, such as attaching after dispatch."""

    default_error = "ALREADY_DISPATCHED"


class StateError(MockAuthError):
    """Out-of-order lifecycle transition."""

    default_error = "INVALID_TRANSITION"
