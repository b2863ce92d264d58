"""Daily top-10 leaderboard over the tracked accounts.

Building the board costs one upstream call per tracked account, so it is
paced, rate limited, and cached. A rate-limit hit stops the run early and the
board is built from whatever was fetched so far.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Optional, Sequence

from pydantic import TypeAdapter, ValidationError

from .core.errors import CacheUnavailableError, UpstreamFetchError
from .core.models import LeaderboardEntry, Score
from .core.scoring import rank_leaderboard
from .fetcher import ScoreFetcher
from .rate_limiter import RateLimiter
from .store import RedisStore

logger = logging.getLogger(__name__)

LEADERBOARD_CACHE_KEY = "yaps:leaderboard:daily"

_entries_adapter = TypeAdapter(list[LeaderboardEntry])


class LeaderboardBuilder:
    """Builds, caches and serves the leaderboard."""

    def __init__(
        self,
        fetcher: ScoreFetcher,
        rate_limiter: RateLimiter,
        tracked_accounts: Sequence[str],
        store: Optional[RedisStore] = None,
        cache_ttl: int = 3600,
        request_delay: float = 0.1,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.fetcher = fetcher
        self.rate_limiter = rate_limiter
        self.tracked_accounts = list(tracked_accounts)
        self.store = store
        self.cache_ttl = cache_ttl
        self.request_delay = request_delay
        self._clock = clock
        # In-process copy of the latest build, used when Redis is absent or down
        self._latest: Optional[list[LeaderboardEntry]] = None
        self._built_at: Optional[float] = None

    async def build(self) -> list[LeaderboardEntry]:
        """Fetch every tracked account, rank, cache, and return the top entries."""
        logger.info("Starting leaderboard update (%d tracked accounts)", len(self.tracked_accounts))
        scores: list[Score] = []

        for i, username in enumerate(self.tracked_accounts):
            if i > 0 and self.request_delay > 0:
                await asyncio.sleep(self.request_delay)

            if not await self.rate_limiter.check_limit():
                logger.warning(
                    "Rate limit reached during leaderboard update after %d of %d accounts",
                    i,
                    len(self.tracked_accounts),
                )
                break

            await self.rate_limiter.increment_counter()
            try:
                scores.append(await self.fetcher.get_score(username))
            except UpstreamFetchError as exc:
                logger.warning("Skipping %s in leaderboard: %s", username, exc)

        entries = rank_leaderboard(scores)
        await self._save(entries)
        logger.info("Leaderboard updated with %d entries", len(entries))
        return entries

    async def get_leaderboard(self) -> list[LeaderboardEntry]:
        """Return the cached leaderboard if still fresh, otherwise rebuild it now."""
        cached = await self._load()
        if cached is not None:
            return cached
        return await self.build()

    @property
    def built_at(self) -> Optional[float]:
        return self._built_at

    async def _save(self, entries: list[LeaderboardEntry]) -> None:
        self._latest = entries
        self._built_at = self._clock()
        if self.store is None:
            return
        try:
            await self.store.set(
                LEADERBOARD_CACHE_KEY,
                _entries_adapter.dump_json(entries).decode(),
                self.cache_ttl,
            )
        except CacheUnavailableError as exc:
            logger.warning("Could not cache leaderboard: %s", exc)

    async def _load(self) -> Optional[list[LeaderboardEntry]]:
        if self.store is not None:
            try:
                raw = await self.store.get(LEADERBOARD_CACHE_KEY)
            except CacheUnavailableError:
                return self._load_local()
            if raw is None:
                return None
            try:
                return _entries_adapter.validate_json(raw)
            except ValidationError:
                logger.warning("Discarding unreadable cached leaderboard")
                return None
        return self._load_local()

    def _load_local(self) -> Optional[list[LeaderboardEntry]]:
        if self._latest is None or self._built_at is None:
            return None
        if self._clock() - self._built_at >= self.cache_ttl:
            return None
        return self._latest
