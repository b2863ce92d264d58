"""Wiring: builds the store, limiter and services from settings.

Everything process-wide lives on one YapsContext created at startup and
passed to the components that need it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

import httpx

from .comparison import ComparisonEngine
from .config import Settings
from .fetcher import ScoreFetcher
from .leaderboard import LeaderboardBuilder
from .rate_limiter import RateLimiter, build_rate_limiter
from .scheduler import LeaderboardScheduler
from .store import RedisStore

logger = logging.getLogger(__name__)


@dataclass
class YapsContext:
    settings: Settings
    store: Optional[RedisStore]
    rate_limiter: RateLimiter
    fetcher: ScoreFetcher
    comparisons: ComparisonEngine
    leaderboard: LeaderboardBuilder
    scheduler: LeaderboardScheduler = field(repr=False)

    @property
    def cache_state(self) -> str:
        if self.store is None:
            return "disabled"
        return self.store.state

    async def close(self) -> None:
        await self.scheduler.stop()
        if self.store is not None:
            await self.store.close()


def create_context(
    settings: Settings,
    store: Optional[RedisStore] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> YapsContext:
    """Build the component graph. A store passed in overrides the one from settings."""
    if store is None and settings.use_redis:
        store = RedisStore(
            settings.redis_uri,
            recheck_seconds=settings.cache_recheck_seconds,
            connect_timeout=settings.redis_connect_timeout,
            retries=settings.redis_retries,
        )
    logger.info("Cache backend: %s", "redis" if store is not None else "memory")

    rate_limiter = build_rate_limiter(
        store,
        max_requests=settings.rate_limit_max_requests,
        window_minutes=settings.rate_limit_window_minutes,
    )
    fetcher = ScoreFetcher(
        endpoint=settings.yaps_api_endpoint,
        store=store,
        cache_ttl=settings.yaps_cache_ttl,
        timeout=settings.upstream_timeout_seconds,
        transport=transport,
    )
    leaderboard = LeaderboardBuilder(
        fetcher,
        rate_limiter,
        settings.tracked_accounts,
        store=store,
        cache_ttl=settings.leaderboard_cache_ttl,
        request_delay=settings.leaderboard_request_delay,
    )
    return YapsContext(
        settings=settings,
        store=store,
        rate_limiter=rate_limiter,
        fetcher=fetcher,
        comparisons=ComparisonEngine(fetcher, store=store, cache_ttl=settings.yaps_cache_ttl),
        leaderboard=leaderboard,
        scheduler=LeaderboardScheduler(leaderboard, settings.leaderboard_refresh_hours),
    )
