"""Security utilities for JWT handling and payment signatures."""

import hashlib
import hmac
from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from ezhealth.config import settings


def create_access_token(
    data: dict[str, Any],
    expires_delta: timedelta | None = None,
) -> str:
    """
    Create a JWT access token.

    Args:
        data: Payload data to encode (``sub`` and ``role`` are expected)
        expires_delta: Optional expiration time delta

    Returns:
        Encoded JWT token
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(UTC) + expires_delta
    else:
        expire = datetime.now(UTC) + timedelta(minutes=settings.access_token_expire_minutes)

    to_encode.update(
        {
            "exp": expire,
            "iat": datetime.now(UTC),
            "type": "access",
        }
    )

    return jwt.encode(
        to_encode,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


def decode_access_token(token: str) -> dict[str, Any] | None:
    """
    Decode and validate a JWT access token.

    Args:
        token: JWT token to decode

    Returns:
        Decoded payload or None if invalid
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError:
        return None

    if payload.get("type") != "access":
        return None

    return payload


def compute_payment_signature(order_ref: str, payment_ref: str, secret: str) -> str:
    """Hex HMAC-SHA256 of ``"{order_ref}|{payment_ref}"`` keyed with the gateway secret."""
    message = f"{order_ref}|{payment_ref}".encode()
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


def verify_payment_signature(
    order_ref: str,
    payment_ref: str,
    signature: str,
    secret: str,
) -> bool:
    """Check a gateway payment signature in constant time."""
    expected = compute_payment_signature(order_ref, payment_ref, secret)
    return hmac.compare_digest(expected.encode(), signature.encode())
