"""
Compact (header.payload.signature) serialization of token descriptors.

Handles unsecured tokens (alg "none", empty signature) for pipelines that
only parse, and EdDSA-signed tokens for pipelines that verify.
"""

from __future__ import annotations

import base64
import json
from typing import Any

from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)
from joserfc import jws
from joserfc.errors import BadSignatureError
from joserfc.jwk import OKPKey

from mock_auth.exceptions import ValidationError
from mock_auth.tokens import TokenDescriptor

# Header parameters joserfc accepts besides "alg".
_SIGNED_HEADER_PARAMS = ("typ", "cty", "kid")


def _b64url_encode(data: bytes) -> str:
    """Base64url-encode bytes without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _decode_json_part(part: str, section_name: str) -> dict[str, Any]:
    """Decode a base64url JSON object from a compact token part."""
    padded = part + "=" * (-len(part) % 4)
    try:
        decoded = base64.urlsafe_b64decode(padded)
    except ValueError as exc:
        raise ValidationError(
            f"Token {section_name} is not valid base64url",
            "INVALID_TOKEN",
            {"section": section_name},
        ) from exc

    try:
        value = json.loads(decoded)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ValidationError(
            f"Token {section_name} is not valid JSON",
            "INVALID_TOKEN",
            {"section": section_name},
        ) from exc

    if not isinstance(value, dict):
        raise ValidationError(
            f"Token {section_name} must be a JSON object",
            "INVALID_TOKEN",
            {"section": section_name},
        )
    return value


def _split_compact(value: str) -> list[str]:
    if not isinstance(value, str) or not value:
        raise ValidationError("Token must be a non-empty string", "INVALID_TOKEN", {})
    parts = value.split(".")
    if len(parts) != 3:
        raise ValidationError(
            "Token must be in compact serialization format (header.payload.signature)",
            "INVALID_TOKEN",
            {"parts": len(parts)},
        )
    return parts


def _private_jwk(private_key: Ed25519PrivateKey) -> OKPKey:
    raw_private = private_key.private_bytes_raw()
    raw_public = private_key.public_key().public_bytes_raw()
    return OKPKey.import_key(
        {
            "kty": "OKP",
            "crv": "Ed25519",
            "d": _b64url_encode(raw_private),
            "x": _b64url_encode(raw_public),
        }
    )


def _public_jwk(public_key: Ed25519PublicKey) -> OKPKey:
    return OKPKey.import_key(
        {
            "kty": "OKP",
            "crv": "Ed25519",
            "x": _b64url_encode(public_key.public_bytes_raw()),
        }
    )


def encode_unsigned(token: TokenDescriptor) -> str:
    """Serialize as an unsecured JWT: alg forced to "none", empty signature."""
    header = {**token.headers, "alg": "none"}
    header_b64 = _b64url_encode(json.dumps(header, separators=(",", ":")).encode())
    payload_b64 = _b64url_encode(json.dumps(token.claims, separators=(",", ":")).encode())
    return f"{header_b64}.{payload_b64}."


def generate_signing_key() -> Ed25519PrivateKey:
    """Generate an in-memory Ed25519 signing key."""
    return Ed25519PrivateKey.generate()


def sign_compact(
    token: TokenDescriptor,
    private_key: Ed25519PrivateKey,
    *,
    kid: str | None = None,
) -> str:
    """
    Sign the token's claims as an EdDSA JWS.

    Only the registered header parameters typ, cty and kid are carried over
    from the descriptor; alg is always EdDSA. kid overrides the descriptor's.
    """
    protected: dict[str, Any] = {
        name: token.headers[name] for name in _SIGNED_HEADER_PARAMS if name in token.headers
    }
    protected["alg"] = "EdDSA"
    if kid is not None:
        protected["kid"] = kid
    payload_bytes = json.dumps(token.claims, separators=(",", ":"), sort_keys=True).encode()
    return jws.serialize_compact(
        protected,
        payload_bytes,
        _private_jwk(private_key),
        algorithms=["EdDSA"],
    )


def decode_compact(value: str) -> TokenDescriptor:
    """
    Parse a compact token WITHOUT verifying its signature.

    Raises:
        ValidationError: not three parts, or a part is not a base64url JSON object
    """
    parts = _split_compact(value)
    header = _decode_json_part(parts[0], "header")
    claims = _decode_json_part(parts[1], "payload")
    return TokenDescriptor(headers=header, claims=claims, raw_value=value)


def verify_compact(value: str, public_key: Ed25519PublicKey) -> TokenDescriptor:
    """
    Verify an EdDSA compact token and return its descriptor.

    Raises:
        ValidationError: malformed token or signature mismatch
    """
    _split_compact(value)
    try:
        obj = jws.deserialize_compact(value, _public_jwk(public_key), algorithms=["EdDSA"])
    except BadSignatureError as exc:
        raise ValidationError(
            "Token signature verification failed",
            "INVALID_TOKEN",
            {},
        ) from exc
    except Exception as exc:
        raise ValidationError("Token verification failed", "INVALID_TOKEN", {}) from exc

    try:
        claims = json.loads(obj.payload)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ValidationError("Token payload is not valid JSON", "INVALID_TOKEN", {}) from exc
    if not isinstance(claims, dict):
        raise ValidationError("Token payload must be a JSON object", "INVALID_TOKEN", {})

    return TokenDescriptor(headers=dict(obj.protected), claims=claims, raw_value=value)
