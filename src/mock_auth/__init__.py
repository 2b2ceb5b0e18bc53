"""mock-auth: mock identities and bearer tokens for in-process request tests."""

from mock_auth.assertions import AuthAssertions, auth_of
from mock_auth.authentication import Authentication
from mock_auth.client import MockAuthClient
from mock_auth.exceptions import ConfigurationError, MockAuthError, StateError, ValidationError
from mock_auth.identity import IdentityDescriptor, with_user
from mock_auth.injector import attach, attach_authentication
from mock_auth.lifecycle import Phase
from mock_auth.mutators import (
    MutationHandle,
    csrf,
    mock_authentication,
    mock_jwt,
    mock_oidc_login,
    mock_opaque_token,
    mock_user,
)
from mock_auth.requests import Exchange, PendingRequest
from mock_auth.tokens import REMOVE, TokenDescriptor, derive_authorities, synthesize

__version__ = "0.1.0"

__all__ = [
    "REMOVE",
    "AuthAssertions",
    "Authentication",
    "ConfigurationError",
    "Exchange",
    "IdentityDescriptor",
    "MockAuthClient",
    "MockAuthError",
    "MutationHandle",
    "PendingRequest",
    "Phase",
    "StateError",
    "TokenDescriptor",
    "ValidationError",
    "attach",
    "attach_authentication",
    "auth_of",
    "csrf",
    "derive_authorities",
    "mock_authentication",
    "mock_jwt",
    "mock_oidc_login",
    "mock_opaque_token",
    "mock_user",
    "synthesize",
    "with_user",
]
