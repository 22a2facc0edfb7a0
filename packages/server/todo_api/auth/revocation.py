"""
Revocation registry: tokens rejected before their natural expiry (logout).

Entries only need to outlive the token they revoke, so both implementations
drop an entry once the token's own expiry has passed.
"""

from __future__ import annotations

import hashlib
import math
from datetime import datetime, timezone
from typing import Optional, Protocol

import redis.asyncio as redis
import structlog

log = structlog.get_logger()


class RevocationRegistry(Protocol):
    async def revoke(self, token: str, expires_at: Optional[datetime] = None) -> None: ...

    async def is_revoked(self, token: str) -> bool: ...


def token_fingerprint(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


class InMemoryRevocationRegistry:
    """Process-local registry. Expired entries are purged lazily on ``revoke``."""

    def __init__(self) -> None:
        # fingerprint -> expiry (None: keep forever)
        self._entries: dict[str, Optional[datetime]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def _purge(self, now: datetime) -> None:
        expired = [k for k, exp in self._entries.items() if exp is not None and exp <= now]
        for key in expired:
            del self._entries[key]

    async def revoke(self, token: str, expires_at: Optional[datetime] = None) -> None:
        self._purge(datetime.now(timezone.utc))
        self._entries[token_fingerprint(token)] = expires_at

    async def is_revoked(self, token: str) -> bool:
        return token_fingerprint(token) in self._entries


class RedisRevocationRegistry:
    """Shared registry backed by Redis keys that expire with the token."""

    def __init__(
        self,
        client: redis.Redis,
        key_prefix: str = "todo:revoked:",
        default_ttl_seconds: int = 24 * 60 * 60,
    ):
        self._client = client
        self._key_prefix = key_prefix
        self._default_ttl_seconds = default_ttl_seconds

    def _key(self, token: str) -> str:
        return f"{self._key_prefix}{token_fingerprint(token)}"

    def _ttl(self, expires_at: Optional[datetime]) -> int:
        if expires_at is None:
            return self._default_ttl_seconds
        remaining = (expires_at - datetime.now(timezone.utc)).total_seconds()
        return max(1, math.ceil(remaining))

    async def revoke(self, token: str, expires_at: Optional[datetime] = None) -> None:
        # SETEX overwrites, so a repeat revoke only refreshes the TTL.
        await self._client.setex(self._key(token), self._ttl(expires_at), "1")

    async def is_revoked(self, token: str) -> bool:
        return await self._client.exists(self._key(token)) > 0
