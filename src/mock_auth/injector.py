"""Attach identities, tokens and CSRF tokens to pending requests."""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING

from mock_auth.authentication import Authentication
from mock_auth.config import get_settings
from mock_auth.exceptions import ConfigurationError, ValidationError
from mock_auth.identity import IdentityDescriptor
from mock_auth.lifecycle import Phase
from mock_auth.logging import get_logger
from mock_auth.tokens import TokenDescriptor

if TYPE_CHECKING:
    from mock_auth.config import Settings
    from mock_auth.requests import PendingRequest


def attach(
    request: PendingRequest,
    identity: IdentityDescriptor,
    token: TokenDescriptor | None = None,
    *,
    credentials: str | None = None,
    settings: Settings | None = None,
) -> PendingRequest:
    """
    Attach an identity and optional token to a request that was not sent yet.

    With a token the attachment is a bearer attachment and the credentials
    default to the token's raw value.
    """
    if not isinstance(identity, IdentityDescriptor):
        raise ValidationError(
            "identity must be an IdentityDescriptor",
            "INVALID_DESCRIPTOR",
            {"type": type(identity).__name__},
        )
    if token is not None and not isinstance(token, TokenDescriptor):
        raise ValidationError(
            "token must be a TokenDescriptor",
            "INVALID_TOKEN",
            {"type": type(token).__name__},
        )

    if credentials is None and token is not None:
        credentials = token.raw_value
    authentication = Authentication(
        identity=identity,
        token=token,
        credentials=credentials,
        bearer=token is not None,
    )
    return attach_authentication(request, authentication, settings=settings)


def _check_header_value(value: str, field: str) -> None:
    if not value.isascii():
        raise ValidationError(
            "Header values must be ASCII",
            "INVALID_TOKEN",
            {"field": field},
        )


def validate_authentication(authentication: Authentication) -> None:
    """
    Check that an authentication can be attached to a request.

    Raises:
        ValidationError: not an Authentication, or a bearer token whose raw
            value cannot be sent in a header
    """
    if not isinstance(authentication, Authentication):
        raise ValidationError(
            "authentication must be an Authentication",
            "INVALID_DESCRIPTOR",
            {"type": type(authentication).__name__},
        )
    if authentication.bearer and authentication.token is not None:
        _check_header_value(authentication.token.raw_value, "raw_value")


def attach_authentication(
    request: PendingRequest,
    authentication: Authentication,
    *,
    settings: Settings | None = None,
) -> PendingRequest:
    """
    Attach a pre-built authentication as-is: no defaults, no derivation.

    A request holds exactly one attachment. Attaching again replaces the
    previous one together with its Authorization header.

    Raises:
        ValidationError: see validate_authentication
        ConfigurationError: the request was already dispatched
    """
    validate_authentication(authentication)

    request.lifecycle.advance(Phase.ATTACHED)

    settings = settings or get_settings()
    logger = get_logger(__name__)

    attachment = copy.deepcopy(authentication)
    header_name = settings.transport.authorization_header

    if request.attachment is not None:
        logger.debug(
            "Replacing attached authentication",
            extra={
                "previous_principal": request.attachment.principal_name,
                "principal": attachment.principal_name,
            },
        )
    request.headers.pop(header_name, None)

    if attachment.bearer and attachment.token is not None:
        bearer_value = f"{settings.transport.bearer_prefix}{attachment.token.raw_value}"
        request.headers[header_name] = bearer_value

    request.attachment = attachment
    logger.debug(
        "Attached authentication",
        extra={
            "method": request.method,
            "uri": request.uri,
            "principal": attachment.principal_name,
            "authorities": sorted(attachment.authorities),
            "bearer": attachment.bearer,
        },
    )
    return request


def attach_csrf(
    request: PendingRequest,
    token: str,
    *,
    settings: Settings | None = None,
) -> PendingRequest:
    """
    Attach a CSRF token header and record it as the expected token.

    Independent of the identity attachment; the last CSRF token wins.

    Raises:
        ConfigurationError: the request was already dispatched
    """
    if request.lifecycle.dispatched:
        raise ConfigurationError(
            "Cannot attach a CSRF token: request was already dispatched",
            "ALREADY_DISPATCHED",
            {"phase": request.lifecycle.phase.value},
        )
    if not isinstance(token, str) or not token:
        raise ValidationError("CSRF token must be a non-empty string", "INVALID_TOKEN", {})
    _check_header_value(token, "csrf_token")

    settings = settings or get_settings()
    request.headers[settings.transport.csrf_header] = token
    request.csrf_token = token
    get_logger(__name__).debug("Attached CSRF token", extra={"uri": request.uri})
    return request
