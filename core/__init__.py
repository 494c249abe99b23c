"""Settings, database, Redis and clock shared by the API, services and workers."""

from core.config import settings
from core.db import AsyncSessionLocal, Base, engine, get_db
from core.redis import close_redis, get_redis, publish_event
from core.timeutils import utcnow

__all__ = [
    "settings",
    "Base",
    "engine",
    "AsyncSessionLocal",
    "get_db",
    "get_redis",
    "close_redis",
    "publish_event",
    "utcnow",
]
