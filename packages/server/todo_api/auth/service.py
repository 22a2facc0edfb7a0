"""
Authentication service: login, logout and token verification.

Every token failure (bad signature, malformed, expired, revoked) is reported
as ``INVALID_TOKEN`` so a caller cannot tell logout from forgery. The
specific reason is logged.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

import structlog

from todo_api.auth.revocation import RevocationRegistry
from todo_api.auth.tokens import TokenIssuer
from todo_api.core.errors import AuthError, ErrorCode, TokenError, UserError, unexpected_errors
from todo_api.models.user import User
from todo_api.services.users import UserService

log = structlog.get_logger()


@dataclass(frozen=True)
class LoginResult:
    token: str
    user: User


@dataclass(frozen=True)
class VerifiedToken:
    subject_id: str


class AuthService:
    def __init__(
        self,
        user_service: UserService,
        token_issuer: TokenIssuer,
        revocation_registry: RevocationRegistry,
        token_ttl: timedelta = timedelta(hours=24),
    ):
        self.user_service = user_service
        self.token_issuer = token_issuer
        self.revocation_registry = revocation_registry
        self.token_ttl = token_ttl

    async def login(self, username_or_email: str, password: str) -> LoginResult:
        """Check credentials and issue a session token.

        Unknown identifiers and wrong passwords fail identically with
        ``INVALID_CREDENTIALS``.
        """
        try:
            user = await self.user_service.authenticate_user(username_or_email, password)
        except UserError as exc:
            if exc.code is ErrorCode.INVALID_CREDENTIALS:
                log.warning("auth.login_failure", identifier=username_or_email)
                raise AuthError(ErrorCode.INVALID_CREDENTIALS, "Invalid credentials") from None
            raise AuthError(ErrorCode.UNEXPECTED_ERROR, "Login failed") from exc
        with unexpected_errors(AuthError, "Login failed"):
            token = self.token_issuer.issue(str(user.id), self.token_ttl)
        log.info("auth.login_success", user_id=str(user.id))
        return LoginResult(token=token, user=user)

    async def logout(self, token: str) -> None:
        """Revoke ``token``. Revoking an already revoked token is not an error."""
        try:
            claims = self.token_issuer.claims(token)
        except TokenError as exc:
            log.info("auth.token_rejected", reason=exc.code.value, stage="logout")
            raise AuthError(ErrorCode.INVALID_TOKEN, "Invalid token") from None

        with unexpected_errors(AuthError, "Logout failed"):
            await self.revocation_registry.revoke(token, claims.expires_at)
        log.info("auth.logout", user_id=claims.subject_id)

    async def verify_token(self, token: str) -> VerifiedToken:
        # Signature/expiry and revocation are independent gates.
        try:
            subject_id = self.token_issuer.verify(token)
        except TokenError as exc:
            log.info("auth.token_rejected", reason=exc.code.value)
            raise AuthError(ErrorCode.INVALID_TOKEN, "Invalid token") from None

        with unexpected_errors(AuthError, "Token verification failed"):
            revoked = await self.revocation_registry.is_revoked(token)
        if revoked:
            log.info("auth.token_rejected", reason="REVOKED", user_id=subject_id)
            raise AuthError(ErrorCode.INVALID_TOKEN, "Invalid token")
        return VerifiedToken(subject_id=subject_id)
