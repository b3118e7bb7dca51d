"""Database connectivity layer for the article enhancer."""

from __future__ import annotations

import logging
from typing import Optional

import redis.asyncio as redis
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection

from enhancer.core.config import settings

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Lazily establishes connections to required datastores."""

    def __init__(self) -> None:
        self.mongodb: Optional[AsyncIOMotorClient] = None
        self.redis: Optional[redis.Redis] = None

    async def initialize(self) -> None:
        """Connect to the backing services selected in settings."""

        if self.mongodb is not None or self.redis is not None:
            return

        logger.info("Initializing database manager (store=%s, lock=%s)", settings.STORE_BACKEND, settings.LOCK_BACKEND)

        if settings.STORE_BACKEND == "mongo":
            # tz_aware keeps round-tripped timestamps comparable with utcnow()
            self.mongodb = AsyncIOMotorClient(str(settings.MONGODB_URL), tz_aware=True)

        if settings.LOCK_BACKEND == "redis":
            self.redis = redis.from_url(str(settings.REDIS_URL), decode_responses=True)

        logger.info("Database manager initialized")

    def articles(self) -> AsyncIOMotorCollection:
        if self.mongodb is None:
            raise RuntimeError("MongoDB client is not initialized")
        return self.mongodb[settings.MONGODB_DATABASE][settings.MONGODB_COLLECTION]

    async def ping(self) -> bool:
        if self.mongodb is None:
            return settings.STORE_BACKEND == "memory"
        try:
            await self.mongodb.admin.command("ping")
        except Exception as exc:
            logger.warning("MongoDB ping failed: %s", exc)
            return False
        return True

    async def close(self) -> None:
        """Tear down connections gracefully."""

        logger.info("Closing database connections")

        if self.redis is not None:
            await self.redis.aclose()
            self.redis = None

        if self.mongodb is not None:
            self.mongodb.close()
            self.mongodb = None


# Singleton instance used by the service container
database_manager = DatabaseManager()
