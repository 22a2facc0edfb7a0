"""
User service: registration, lookup and credential checks.
"""

from __future__ import annotations

import asyncio
import uuid
from typing import Optional, Union

import structlog

from todo_api.core.errors import ErrorCode, UserError, unexpected_errors
from todo_api.core.security import hash_password, verify_password
from todo_api.models.user import User
from todo_api.stores.common import DuplicateKeyError
from todo_api.stores.users import UserStore

log = structlog.get_logger()


class UserService:
    def __init__(self, store: UserStore, *, bcrypt_rounds: int = 12):
        self.store = store
        self.bcrypt_rounds = bcrypt_rounds
        # Checked against when the identifier is unknown so both login
        # failures cost one bcrypt verification.
        self._dummy_hash = hash_password("todo-api-timing-equalizer", bcrypt_rounds)

    async def create_user(self, email: str, username: str, password: str) -> User:
        with unexpected_errors(UserError, "Failed to create user"):
            by_email, by_username = await asyncio.gather(
                self.store.find_by_email(email),
                self.store.find_by_username(username),
            )
            self._raise_conflict(by_email, by_username, email, username)

            password_hash = hash_password(password, self.bcrypt_rounds)
            try:
                user = await self.store.save(email, username, password_hash)
            except DuplicateKeyError:
                # Lost a race with a concurrent registration.
                by_email, by_username = await asyncio.gather(
                    self.store.find_by_email(email),
                    self.store.find_by_username(username),
                )
                self._raise_conflict(by_email, by_username, email, username)
                raise

        log.info("user.registered", user_id=str(user.id), username=user.username)
        return user

    @staticmethod
    def _raise_conflict(
        by_email: Optional[User], by_username: Optional[User], email: str, username: str
    ) -> None:
        if by_email is not None:
            raise UserError(ErrorCode.EMAIL_ALREADY_EXISTS, "Email already registered", email=email)
        if by_username is not None:
            raise UserError(
                ErrorCode.USERNAME_ALREADY_EXISTS, "Username already taken", username=username
            )

    async def find_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        with unexpected_errors(UserError, "Failed to load user"):
            return await self.store.find_by_id(user_id)

    async def get_by_id(self, user_id: Union[str, uuid.UUID]) -> User:
        if not isinstance(user_id, uuid.UUID):
            try:
                user_id = uuid.UUID(str(user_id))
            except ValueError:
                raise UserError(ErrorCode.INVALID_USER_ID, "Invalid user id") from None
        user = await self.find_by_id(user_id)
        if user is None:
            raise UserError(ErrorCode.USER_NOT_FOUND, "User not found", user_id=str(user_id))
        return user

    async def get_by_email(self, email: str) -> User:
        with unexpected_errors(UserError, "Failed to load user"):
            user = await self.store.find_by_email(email)
        if user is None:
            raise UserError(ErrorCode.USER_NOT_FOUND, "User not found")
        return user

    async def get_by_username(self, username: str) -> User:
        with unexpected_errors(UserError, "Failed to load user"):
            user = await self.store.find_by_username(username)
        if user is None:
            raise UserError(ErrorCode.USER_NOT_FOUND, "User not found")
        return user

    async def authenticate_user(self, username_or_email: str, password: str) -> User:
        """Return the user if the password matches, else ``INVALID_CREDENTIALS``.

        An identifier containing ``@`` is looked up as an email address,
        anything else as a username.
        """
        if "@" in username_or_email:
            lookup = self.store.find_by_email_with_password
        else:
            lookup = self.store.find_by_username_with_password

        with unexpected_errors(UserError, "Failed to authenticate user"):
            candidate = await lookup(username_or_email)

        if candidate is None:
            verify_password(password, self._dummy_hash)
            raise UserError(ErrorCode.INVALID_CREDENTIALS, "Invalid credentials")
        if not verify_password(password, candidate.password_hash):
            raise UserError(ErrorCode.INVALID_CREDENTIALS, "Invalid credentials")
        return candidate.without_password()
