"""Per-document attempt locks: at most one processing attempt per id."""

from __future__ import annotations

import asyncio
import logging
import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional, Protocol, Set

import redis.asyncio as redis

from enhancer.core.exceptions import InvalidStateError, ServiceUnavailableError

logger = logging.getLogger(__name__)

# Deletes the key only while it still holds our token.
_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""


class AttemptLock(Protocol):
    async def acquire(self, document_id: str) -> Optional[str]:
        """Return a release token, or None when an attempt is already in flight."""
        ...

    async def release(self, document_id: str, token: str) -> None:
        ...


@asynccontextmanager
async def hold_attempt(lock: AttemptLock, document_id: str) -> AsyncIterator[str]:
    try:
        token = await lock.acquire(document_id)
    except Exception as exc:
        logger.error("Could not acquire attempt lock for %s: %s", document_id, exc)
        raise ServiceUnavailableError(f"Attempt lock unavailable for document {document_id}") from exc
    if token is None:
        raise InvalidStateError(f"Document {document_id} is already being processed")
    try:
        yield token
    finally:
        await lock.release(document_id, token)


class RedisAttemptLock:
    """Compare-and-set marker in Redis with a lease so crashed attempts expire."""

    def __init__(self, client: redis.Redis, *, ttl_seconds: int = 900, prefix: str = "lock:document:") -> None:
        self.client = client
        self.ttl_seconds = ttl_seconds
        self.prefix = prefix

    async def acquire(self, document_id: str) -> Optional[str]:
        token = uuid.uuid4().hex
        acquired = await self.client.set(self.prefix + document_id, token, nx=True, ex=self.ttl_seconds)
        return token if acquired else None

    async def release(self, document_id: str, token: str) -> None:
        released = await self.client.eval(_RELEASE_SCRIPT, 1, self.prefix + document_id, token)
        if not released:
            logger.warning("Attempt lock for %s expired before release", document_id)


class LocalAttemptLock:
    """In-process lock set for single-worker deployments."""

    def __init__(self) -> None:
        self._held: Set[str] = set()
        self._guard = asyncio.Lock()

    async def acquire(self, document_id: str) -> Optional[str]:
        async with self._guard:
            if document_id in self._held:
                return None
            self._held.add(document_id)
        return document_id

    async def release(self, document_id: str, token: str) -> None:
        async with self._guard:
            self._held.discard(document_id)
