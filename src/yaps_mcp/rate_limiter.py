"""Best-effort rate limiting of outbound YAPS API calls.

One counter per process-wide window, shared by every tool. Callers check
first and increment second; the pair is not atomic, so concurrent requests
may overshoot the limit slightly.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from .core.errors import CacheUnavailableError
from .core.models import RateLimitUsage
from .store import RedisStore

logger = logging.getLogger(__name__)

RATE_LIMIT_KEY = "yaps:ratelimit"


class RateLimiter(Protocol):
    async def check_limit(self) -> bool: ...

    async def increment_counter(self) -> None: ...

    async def get_usage(self) -> RateLimitUsage: ...

    async def reset(self) -> None: ...


class RedisRateLimiter:
    """Fixed-window counter in Redis. Fails open whenever Redis is unreachable."""

    def __init__(self, store: RedisStore, max_requests: int = 100, window_minutes: int = 5):
        self._store = store
        self.max_requests = max_requests
        self.window_minutes = window_minutes

    async def check_limit(self) -> bool:
        try:
            current = await self._store.get(RATE_LIMIT_KEY)
        except CacheUnavailableError:
            return True
        if current is None:
            return True
        return int(current) < self.max_requests

    async def increment_counter(self) -> None:
        try:
            # INCR keeps an existing expiry; a result of 1 means the window
            # key was just created (or expired in the meantime) and has none.
            if await self._store.incr(RATE_LIMIT_KEY) == 1:
                await self._store.set(RATE_LIMIT_KEY, "1", self.window_minutes * 60)
        except CacheUnavailableError as exc:
            logger.debug("Rate limit counter not updated: %s", exc)

    async def get_usage(self) -> RateLimitUsage:
        try:
            current = await self._store.get(RATE_LIMIT_KEY)
        except CacheUnavailableError:
            return RateLimitUsage()
        return RateLimitUsage(
            current=int(current) if current is not None else 0,
            max=self.max_requests,
            window_minutes=self.window_minutes,
        )

    async def reset(self) -> None:
        try:
            await self._store.delete(RATE_LIMIT_KEY)
        except CacheUnavailableError as exc:
            logger.warning("Rate limit counter not reset: %s", exc)


class PassThroughRateLimiter:
    """Used when no backing store is configured: everything is allowed."""

    async def check_limit(self) -> bool:
        return True

    async def increment_counter(self) -> None:
        return None

    async def get_usage(self) -> RateLimitUsage:
        return RateLimitUsage()

    async def reset(self) -> None:
        return None


def build_rate_limiter(
    store: Optional[RedisStore],
    max_requests: int = 100,
    window_minutes: int = 5,
) -> RateLimiter:
    if store is None:
        return PassThroughRateLimiter()
    return RedisRateLimiter(store, max_requests=max_requests, window_minutes=window_minutes)
