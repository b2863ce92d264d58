"""Read-through / write-through score fetching."""

from __future__ import annotations

import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from .core.clients import yaps
from .core.errors import CacheUnavailableError
from .core.models import Score
from .core.scoring import normalize_username
from .store import RedisStore

logger = logging.getLogger(__name__)


def score_cache_key(username: str) -> str:
    return f"score:{username}"


class ScoreFetcher:
    """Fetches YAPS scores, consulting the cache first when one is configured."""

    def __init__(
        self,
        endpoint: str = yaps.DEFAULT_ENDPOINT,
        store: Optional[RedisStore] = None,
        cache_ttl: int = 300,
        timeout: float = yaps.DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.endpoint = endpoint
        self.store = store
        self.cache_ttl = cache_ttl
        self.timeout = timeout
        self._transport = transport

    async def get_score(self, handle: str) -> Score:
        """Return the score for a handle, with or without a leading '@'.

        A cached score is returned as-is; its freshness is whatever the store's
        TTL allows. Cache failures never fail the call.
        """
        username = normalize_username(handle)
        key = score_cache_key(username)

        cached = await self._read_cache(key)
        if cached is not None:
            return cached

        score = await yaps.fetch_score(
            username,
            endpoint=self.endpoint,
            timeout=self.timeout,
            transport=self._transport,
        )

        if self.store is not None:
            try:
                await self.store.set(key, score.model_dump_json(), self.cache_ttl)
            except CacheUnavailableError as exc:
                logger.warning("Could not cache score for %s: %s", username, exc)

        return score

    async def _read_cache(self, key: str) -> Optional[Score]:
        if self.store is None:
            return None
        try:
            raw = await self.store.get(key)
        except CacheUnavailableError:
            return None
        if raw is None:
            return None
        try:
            return Score.model_validate_json(raw)
        except ValidationError:
            logger.warning("Discarding unreadable cache entry %s", key)
            return None
