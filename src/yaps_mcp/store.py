"""Redis cache connection with a circuit breaker.

The cache is optional everywhere it is consulted. Every failure surfaces as
CacheUnavailableError and opens the circuit; while open, calls fail fast
without touching the network. Once the re-check interval has passed the next
call goes through again, and a success closes the circuit.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional

import redis.asyncio as redis
from redis.asyncio.retry import Retry
from redis.backoff import ExponentialBackoff
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError

from .core.errors import CacheUnavailableError

logger = logging.getLogger(__name__)


class RedisStore:
    """Key-value store backed by Redis, degrading to 'unavailable' on error."""

    def __init__(
        self,
        url: Optional[str] = None,
        *,
        client: Optional[Any] = None,
        recheck_seconds: float = 30.0,
        connect_timeout: float = 2.0,
        retries: int = 2,
        clock: Callable[[], float] = time.monotonic,
    ):
        if client is None:
            if not url:
                raise ValueError("RedisStore needs a url or a client")
            client = redis.from_url(
                url,
                decode_responses=True,
                socket_connect_timeout=connect_timeout,
                socket_timeout=connect_timeout,
                retry=Retry(ExponentialBackoff(cap=1.0, base=0.05), retries),
                retry_on_error=[RedisConnectionError, RedisTimeoutError],
            )
        self._client = client
        self._recheck_seconds = recheck_seconds
        self._clock = clock
        self._opened_at: Optional[float] = None

    @property
    def available(self) -> bool:
        """False while the circuit is open and the re-check interval has not elapsed."""
        if self._opened_at is None:
            return True
        return self._clock() - self._opened_at >= self._recheck_seconds

    @property
    def state(self) -> str:
        return "connected" if self._opened_at is None else "unavailable"

    async def _call(self, op: str, *args, **kwargs):
        if not self.available:
            raise CacheUnavailableError(f"cache circuit open, skipping {op}")
        try:
            result = await getattr(self._client, op)(*args, **kwargs)
        except (RedisError, OSError) as exc:
            if self._opened_at is None:
                logger.warning("Redis %s failed, treating cache as unavailable: %s", op, exc)
            self._opened_at = self._clock()
            raise CacheUnavailableError(f"redis {op} failed: {exc}") from exc
        if self._opened_at is not None:
            logger.info("Redis reachable again, cache re-enabled")
            self._opened_at = None
        return result

    async def get(self, key: str) -> Optional[str]:
        return await self._call("get", key)

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        await self._call("set", key, value, ex=ttl_seconds)

    async def exists(self, key: str) -> bool:
        return bool(await self._call("exists", key))

    async def incr(self, key: str) -> int:
        return int(await self._call("incr", key))

    async def delete(self, key: str) -> None:
        await self._call("delete", key)

    async def ping(self) -> bool:
        """Probe the connection. Returns False instead of raising."""
        try:
            return bool(await self._call("ping"))
        except CacheUnavailableError:
            return False

    async def close(self) -> None:
        try:
            await self._client.aclose()
        except (RedisError, OSError) as exc:
            logger.warning("Error closing Redis connection: %s", exc)
