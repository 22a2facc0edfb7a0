"""Shared async Redis client, used by the revocation registry."""

from __future__ import annotations

import redis.asyncio as redis

from todo_api.core.config import get_settings

_client: redis.Redis | None = None


async def get_redis(url: str | None = None) -> redis.Redis:
    """Get or create the shared Redis connection."""
    global _client
    if _client is None:
        _client = redis.from_url(
            url or get_settings().redis_url,
            decode_responses=True,
        )
    return _client


async def close_redis() -> None:
    """Close the Redis connection pool."""
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
