"""
Password hashing and bearer-token extraction.
"""

from __future__ import annotations

from typing import Optional

import bcrypt

from todo_api_shared.schemas.users import MAX_PASSWORD_BYTES

BEARER_PREFIX = "Bearer "


def hash_password(password: str, rounds: int = 12) -> str:
    """Hash a password using bcrypt with the given cost factor."""
    encoded = password.encode()
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise ValueError(f"password cannot be longer than {MAX_PASSWORD_BYTES} bytes")
    return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=rounds)).decode()


def verify_password(password: str, hashed: str) -> bool:
    """Verify a password against a bcrypt hash.

    Malformed hashes and passwords too long to have been hashed never match.
    """
    encoded = password.encode()
    if len(encoded) > MAX_PASSWORD_BYTES:
        return False
    try:
        return bcrypt.checkpw(encoded, hashed.encode())
    except ValueError:
        return False


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the token from ``Bearer <token>``, or None for anything else.

    An empty token after the prefix counts as missing.
    """
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        return None
    token = authorization[len(BEARER_PREFIX):].strip()
    if not token or " " in token:
        return None
    return token
