"""Helpers shared by the store implementations."""

import asyncio
import string
from contextlib import asynccontextmanager
from typing import AsyncIterator, Hashable

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

_ASCII_LOWER = str.maketrans(string.ascii_uppercase, string.ascii_lowercase)


class DuplicateKeyError(Exception):
    """A unique constraint rejected a write."""


def ascii_lower(value: str) -> str:
    """Lowercase A-Z only. Non-ASCII characters are compared as stored."""
    return value.translate(_ASCII_LOWER)


def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class KeyedLocks:
    """One ``asyncio.Lock`` per key, dropped once nobody holds or waits on it."""

    def __init__(self) -> None:
        self._locks: dict[Hashable, asyncio.Lock] = {}
        self._users: dict[Hashable, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, key: Hashable) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if not self._users[key]:
                del self._users[key]
                del self._locks[key]
