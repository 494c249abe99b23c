"""Liveness and dependency checks."""

import logging

import redis.asyncio as redis
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from apps.api.deps import get_db, get_redis_client
from core.redis import MATCH_CREATED_STREAM

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/")
async def health_check() -> dict[str, str]:
    return {"status": "healthy"}


@router.get("/db")
async def health_check_db(db: AsyncSession = Depends(get_db)) -> dict[str, str]:
    """Checks that the schema is migrated, not just that the server answers."""
    try:
        await db.execute(text("SELECT 1 FROM intents LIMIT 1"))
        return {"status": "healthy", "database": "connected"}
    except Exception as e:
        logger.warning(f"Database health check failed: {e}")
        return {"status": "unhealthy", "database": "disconnected", "error": str(e)}


@router.get("/redis")
async def health_check_redis(redis_client: redis.Redis = Depends(get_redis_client)) -> dict[str, str | int]:
    """Redis reachability plus the backlog of the match.created stream."""
    try:
        await redis_client.ping()
        backlog = await redis_client.xlen(MATCH_CREATED_STREAM)
        return {"status": "healthy", "redis": "connected", "match_created_backlog": backlog}
    except Exception as e:
        logger.warning(f"Redis health check failed: {e}")
        return {"status": "unhealthy", "redis": "disconnected", "error": str(e)}
