"""
Signed, time-limited session tokens (JWT, HS256 by default).

Tokens carry only verifiable claims: the subject id, issue and expiry
times, and a random ``jti`` so two tokens issued in the same second differ.
Revocation is not checked here; see ``todo_api.auth.revocation``.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt

from todo_api.core.errors import ErrorCode, TokenError


@dataclass(frozen=True)
class TokenClaims:
    subject_id: str
    expires_at: datetime


class TokenIssuer:
    def __init__(self, secret_key: str, algorithm: str = "HS256"):
        if not secret_key:
            raise ValueError("secret_key must not be empty")
        self._secret_key = secret_key
        self._algorithm = algorithm

    def issue(self, subject_id: str, ttl: timedelta) -> str:
        """Create a signed token for ``subject_id`` that expires after ``ttl``."""
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(subject_id),
            "iat": now,
            "exp": now + ttl,
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def claims(self, token: str) -> TokenClaims:
        """Verify ``token`` and return its claims.

        Raises ``TokenError`` with ``TOKEN_EXPIRED`` for an expired token and
        ``INVALID_TOKEN`` for anything else. Library errors are never exposed.
        """
        if not isinstance(token, str) or not token:
            raise TokenError(ErrorCode.INVALID_TOKEN, "Invalid token")
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                options={"require": ["sub", "exp"]},
            )
        except jwt.ExpiredSignatureError:
            raise TokenError(ErrorCode.TOKEN_EXPIRED, "Token expired") from None
        except jwt.PyJWTError:
            raise TokenError(ErrorCode.INVALID_TOKEN, "Invalid token") from None

        subject = payload.get("sub")
        if not isinstance(subject, str) or not subject:
            raise TokenError(ErrorCode.INVALID_TOKEN, "Invalid token")
        return TokenClaims(
            subject_id=subject,
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )

    def verify(self, token: str) -> str:
        """Return the subject id of a valid token."""
        return self.claims(token).subject_id
