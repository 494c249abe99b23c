"""FastAPI dependencies."""

from collections.abc import AsyncGenerator

import redis.asyncio as redis
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from core.db import get_db as _get_db
from core.redis import get_redis as _get_redis
from services.intent_lifecycle import IntentLifecycle
from services.match_coordinator import MatchCoordinator
from services.swipe_ledger import SwipeLedger


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency."""
    async for session in _get_db():
        yield session


async def get_redis_client() -> redis.Redis:
    """Get Redis client dependency."""
    return await _get_redis()


def get_lifecycle(db: AsyncSession = Depends(get_db)) -> IntentLifecycle:
    return IntentLifecycle(db)


def get_ledger(db: AsyncSession = Depends(get_db)) -> SwipeLedger:
    return SwipeLedger(db)


def get_coordinator(db: AsyncSession = Depends(get_db)) -> MatchCoordinator:
    return MatchCoordinator(db)
