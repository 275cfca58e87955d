"""
security helpers:
- Argon2 password hashing via argon2-cffi
- JWT access token creation/verification via PyJWT
- Opaque refresh token generation
"""
from __future__ import annotations

import base64
import secrets
from datetime import datetime, timedelta, timezone
from typing import Dict, Any

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import VerificationError, InvalidHashError

from utils.exceptions import InvalidTokenError, ExpiredTokenError

ph = PasswordHasher()

REFRESH_TOKEN_BYTES = 32


def utcnow() -> datetime:
    """Current time as a naive UTC datetime (the storage convention)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def hash_password(password: str) -> str:
    """Hash a plaintext password using Argon2
    """
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """ Verify a plaintext password using argon2
    """
    try:
        return ph.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


def generate_refresh_token() -> str:
    """32 bytes of CSPRNG output, base64url-encoded."""
    return base64.urlsafe_b64encode(secrets.token_bytes(REFRESH_TOKEN_BYTES)).decode("ascii")


def create_jwt_token(
    user_id: int,
    email: str,
    secret: str,
    expires_in: timedelta,
    algorithm: str = "HS256",
    now: datetime | None = None,
) -> str:
    """Sign an access token over {user_id, email, exp}."""
    issued = (now or utcnow()).replace(tzinfo=timezone.utc)
    payload = {
        "user_id": int(user_id),
        "email": email,
        "iat": int(issued.timestamp()),
        "exp": int((issued + expires_in).timestamp()),
    }
    return jwt.encode(payload, secret, algorithm=algorithm)


def decode_token(token: str, secret: str, algorithm: str = "HS256") -> Dict[str, Any]:
    """
    Decode and validate an access token.
    Raises ExpiredTokenError past expiry, InvalidTokenError for anything else.
    """
    try:
        decoded = jwt.decode(
            token,
            secret,
            algorithms=[algorithm],
            options={"require": ["exp", "user_id"]},
        )
    except jwt.ExpiredSignatureError:
        raise ExpiredTokenError("Token expired")
    except jwt.InvalidTokenError as exc:
        raise InvalidTokenError(f"Invalid token: {exc}")

    if not isinstance(decoded.get("user_id"), int) or isinstance(decoded.get("user_id"), bool):
        raise InvalidTokenError("Invalid token: malformed user_id claim")
    return decoded
