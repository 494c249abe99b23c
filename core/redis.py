from __future__ import annotations

import json
from typing import Any

import redis.asyncio as redis

from core.config import settings

_redis_client: redis.Redis[Any] | None = None

MATCH_CREATED_STREAM = "match.created"
MATCH_FINALIZED_STREAM = "match.finalized"


async def get_redis() -> redis.Redis[Any]:
    """Get Redis client instance."""
    global _redis_client
    if _redis_client is None:
        _redis_client = await redis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
        )
    return _redis_client


async def close_redis() -> None:
    """Close Redis connection."""
    global _redis_client
    if _redis_client:
        await _redis_client.close()
        _redis_client = None


async def publish_event(client: redis.Redis[Any], stream: str, payload: dict[str, Any]) -> str:
    """
    Append an event to a Redis stream for downstream consumers (chat, notifications).

    Values are flattened to strings; nested values are JSON encoded.

    Returns:
        Stream entry ID
    """
    fields = {
        key: value if isinstance(value, str) else json.dumps(value, default=str) for key, value in payload.items()
    }
    return await client.xadd(stream, fields)
