"""Head-to-head comparison of two accounts."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from pydantic import ValidationError

from .core.errors import CacheUnavailableError
from .core.models import Comparison
from .core.scoring import build_comparison, normalize_username, swap_comparison
from .fetcher import ScoreFetcher
from .store import RedisStore

logger = logging.getLogger(__name__)


def comparison_cache_key(username_a: str, username_b: str) -> str:
    """Cache key that does not depend on argument order."""
    first, second = sorted([username_a, username_b])
    return f"yaps:comparison:{first}:{second}"


class ComparisonEngine:
    def __init__(self, fetcher: ScoreFetcher, store: Optional[RedisStore] = None, cache_ttl: int = 300):
        self.fetcher = fetcher
        self.store = store
        self.cache_ttl = cache_ttl

    async def compare(self, handle_a: str, handle_b: str) -> Comparison:
        """Compare two accounts; user_a always corresponds to handle_a.

        Both scores are fetched concurrently. If either fetch fails the whole
        comparison fails with that error.
        """
        username_a = normalize_username(handle_a)
        username_b = normalize_username(handle_b)
        key = comparison_cache_key(username_a, username_b)

        cached = await self._read_cache(key)
        if cached is not None:
            if cached.user_a.username != username_a:
                return swap_comparison(cached)
            return cached

        score_a, score_b = await asyncio.gather(
            self.fetcher.get_score(username_a),
            self.fetcher.get_score(username_b),
        )
        comparison = build_comparison(score_a, score_b)

        if self.store is not None:
            try:
                await self.store.set(key, comparison.model_dump_json(), self.cache_ttl)
            except CacheUnavailableError as exc:
                logger.warning("Could not cache comparison %s: %s", key, exc)

        return comparison

    async def _read_cache(self, key: str) -> Optional[Comparison]:
        if self.store is None:
            return None
        try:
            raw = await self.store.get(key)
        except CacheUnavailableError:
            return None
        if raw is None:
            return None
        try:
            return Comparison.model_validate_json(raw)
        except ValidationError:
            logger.warning("Discarding unreadable cache entry %s", key)
            return None
