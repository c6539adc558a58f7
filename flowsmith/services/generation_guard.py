"""At most one generation in flight per conversation session.

A caller acquires a token for its session before calling the generative backend
and releases it afterwards. A second acquire for the same session while the
first is held raises ``GenerationInProgressError``. Markers expire after
``GENERATION_LOCK_TTL`` seconds so a crashed worker cannot block a session
forever.

If REDIS_URL is configured, markers live in Redis (``SET NX EX``) and hold
across processes. Otherwise they live in memory (single-process only).
"""
from __future__ import annotations

import asyncio
import time
import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional, Tuple

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from flowsmith.config import settings
from flowsmith.core.errors import GenerationInProgressError, UpstreamConnectionError
from flowsmith.core.logging import log_fields, logger

REDIS_KEY_PREFIX = "flowsmith:generation:"

# Delete the marker only if it still carries our token.
RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""


def _in_progress(session_id: str) -> GenerationInProgressError:
    return GenerationInProgressError(
        "A generation is already running for this session",
        details={"session_id": session_id},
    )


class InMemoryGenerationGuard:
    """In-memory guard (single-process only)."""

    def __init__(self, ttl_seconds: int = settings.GENERATION_LOCK_TTL) -> None:
        self._ttl = ttl_seconds
        self._held: Dict[str, Tuple[str, float]] = {}
        self._lock = asyncio.Lock()

    async def acquire(self, session_id: str) -> str:
        async with self._lock:
            now = time.time()
            current = self._held.get(session_id)
            if current is not None and now - current[1] <= self._ttl:
                raise _in_progress(session_id)
            token = uuid.uuid4().hex
            self._held[session_id] = (token, now)
            return token

    async def release(self, session_id: str, token: str) -> None:
        async with self._lock:
            current = self._held.get(session_id)
            if current is not None and current[0] == token:
                self._held.pop(session_id, None)

    async def is_held(self, session_id: str) -> bool:
        async with self._lock:
            current = self._held.get(session_id)
            return current is not None and time.time() - current[1] <= self._ttl

    @asynccontextmanager
    async def hold(self, session_id: str) -> AsyncIterator[str]:
        token = await self.acquire(session_id)
        try:
            yield token
        finally:
            await self.release(session_id, token)

    async def aclose(self) -> None:
        async with self._lock:
            self._held.clear()


class RedisGenerationGuard(InMemoryGenerationGuard):
    """Redis-backed guard for multi-process deployments."""

    def __init__(self, redis_url: str, ttl_seconds: int = settings.GENERATION_LOCK_TTL) -> None:
        super().__init__(ttl_seconds)
        self._redis_url = redis_url
        self._redis: Any = None

    def _get_redis(self) -> Any:
        if self._redis is None:
            self._redis = aioredis.from_url(self._redis_url, encoding="utf-8", decode_responses=True)
            logger.info("Redis connection established for generation guard")
        return self._redis

    def _key(self, session_id: str) -> str:
        return f"{REDIS_KEY_PREFIX}{session_id}"

    async def acquire(self, session_id: str) -> str:
        token = uuid.uuid4().hex
        try:
            acquired = await self._get_redis().set(self._key(session_id), token, nx=True, ex=self._ttl)
        except RedisError as e:
            logger.error(f"Redis acquire failed: {e}", extra=log_fields(session_id=session_id))
            raise UpstreamConnectionError(f"Generation guard unavailable: {e}") from e
        if not acquired:
            raise _in_progress(session_id)
        return token

    async def release(self, session_id: str, token: str) -> None:
        try:
            await self._get_redis().eval(RELEASE_SCRIPT, 1, self._key(session_id), token)
        except RedisError as e:
            # The marker expires on its own after the TTL.
            logger.warning(f"Redis release failed: {e}", extra=log_fields(session_id=session_id))

    async def is_held(self, session_id: str) -> bool:
        try:
            return bool(await self._get_redis().exists(self._key(session_id)))
        except RedisError as e:
            raise UpstreamConnectionError(f"Generation guard unavailable: {e}") from e

    async def aclose(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None
            logger.info("Redis connection closed for generation guard")


def _create_guard(redis_url: Optional[str] = None) -> InMemoryGenerationGuard:
    """Create the appropriate guard based on configuration."""
    redis_url = redis_url if redis_url is not None else settings.REDIS_URL
    if redis_url:
        logger.info("Using Redis-backed generation guard")
        return RedisGenerationGuard(redis_url)
    logger.warning("REDIS_URL not configured, using in-memory generation guard. It does NOT hold across processes!")
    return InMemoryGenerationGuard()


generation_guard = _create_guard()
