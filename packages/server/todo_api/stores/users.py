"""
Credential store: user identities plus their password hashes.

Email and username are lowercased at this boundary, so every lookup is
case-insensitive regardless of backend.
"""

from __future__ import annotations

import uuid
from typing import Optional, Protocol

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlmodel import select

from todo_api.models.user import User, UserRecord, UserWithPassword
from todo_api.stores.common import DuplicateKeyError, ascii_lower, session_factory


class UserStore(Protocol):
    async def save(self, email: str, username: str, password_hash: str) -> User: ...

    async def find_by_id(self, user_id: uuid.UUID) -> Optional[User]: ...

    async def find_by_email(self, email: str) -> Optional[User]: ...

    async def find_by_username(self, username: str) -> Optional[User]: ...

    async def find_by_email_with_password(self, email: str) -> Optional[UserWithPassword]: ...

    async def find_by_username_with_password(self, username: str) -> Optional[UserWithPassword]: ...


class SqlUserStore:
    def __init__(self, engine: AsyncEngine):
        self._sessions = session_factory(engine)

    async def save(self, email: str, username: str, password_hash: str) -> User:
        record = UserRecord(
            email=ascii_lower(email),
            username=ascii_lower(username),
            password_hash=password_hash,
        )
        async with self._sessions() as session:
            session.add(record)
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise DuplicateKeyError(str(exc.orig)) from exc
        return record.to_user()

    async def _find_one(self, clause) -> Optional[UserRecord]:
        async with self._sessions() as session:
            result = await session.execute(select(UserRecord).where(clause))
            return result.scalar_one_or_none()

    async def find_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        record = await self._find_one(UserRecord.id == user_id)
        return record.to_user() if record else None

    async def find_by_email(self, email: str) -> Optional[User]:
        record = await self._find_one(UserRecord.email == ascii_lower(email))
        return record.to_user() if record else None

    async def find_by_username(self, username: str) -> Optional[User]:
        record = await self._find_one(UserRecord.username == ascii_lower(username))
        return record.to_user() if record else None

    async def find_by_email_with_password(self, email: str) -> Optional[UserWithPassword]:
        record = await self._find_one(UserRecord.email == ascii_lower(email))
        return record.to_user_with_password() if record else None

    async def find_by_username_with_password(self, username: str) -> Optional[UserWithPassword]:
        record = await self._find_one(UserRecord.username == ascii_lower(username))
        return record.to_user_with_password() if record else None


class InMemoryUserStore:
    def __init__(self) -> None:
        self._users: dict[uuid.UUID, UserWithPassword] = {}

    async def save(self, email: str, username: str, password_hash: str) -> User:
        email, username = ascii_lower(email), ascii_lower(username)
        for existing in self._users.values():
            if existing.email == email or existing.username == username:
                raise DuplicateKeyError(f"user {email!r}/{username!r} already exists")
        user = UserWithPassword(email=email, username=username, password_hash=password_hash)
        self._users[user.id] = user
        return user.without_password()

    def _match(self, field: str, value: str) -> Optional[UserWithPassword]:
        value = ascii_lower(value)
        return next((u for u in self._users.values() if getattr(u, field) == value), None)

    async def find_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        user = self._users.get(user_id)
        return user.without_password() if user else None

    async def find_by_email(self, email: str) -> Optional[User]:
        user = self._match("email", email)
        return user.without_password() if user else None

    async def find_by_username(self, username: str) -> Optional[User]:
        user = self._match("username", username)
        return user.without_password() if user else None

    async def find_by_email_with_password(self, email: str) -> Optional[UserWithPassword]:
        user = self._match("email", email)
        return user.model_copy() if user else None

    async def find_by_username_with_password(self, username: str) -> Optional[UserWithPassword]:
        user = self._match("username", username)
        return user.model_copy() if user else None
