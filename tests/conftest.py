"""Shared fixtures: a fake cache store and a fake YAPS upstream."""

from typing import Optional

import httpx
import pytest

from yaps_mcp.config import Settings
from yaps_mcp.core.errors import CacheUnavailableError

ENDPOINT = "https://yaps.test/api/v1/yaps"


class FakeStore:
    """Dict-backed stand-in for RedisStore. Set `down = True` to simulate an outage."""

    def __init__(self):
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int] = {}
        self.down = False
        self.writes = 0

    def _check(self):
        if self.down:
            raise CacheUnavailableError("store down")

    @property
    def state(self) -> str:
        return "unavailable" if self.down else "connected"

    async def get(self, key: str) -> Optional[str]:
        self._check()
        return self.data.get(key)

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self._check()
        self.data[key] = value
        self.ttls[key] = ttl_seconds
        self.writes += 1

    async def exists(self, key: str) -> bool:
        self._check()
        return key in self.data

    async def incr(self, key: str) -> int:
        self._check()
        value = int(self.data.get(key, "0")) + 1
        self.data[key] = str(value)
        return value

    async def delete(self, key: str) -> None:
        self._check()
        self.data.pop(key, None)
        self.ttls.pop(key, None)

    async def ping(self) -> bool:
        return not self.down

    async def close(self) -> None:
        return None


class FakeUpstream:
    """httpx.MockTransport handler serving canned YAPS bodies by username."""

    def __init__(self, scores: Optional[dict[str, dict]] = None):
        self.scores = scores or {}
        self.calls: list[str] = []
        self.status_overrides: dict[str, int] = {}

    def add(self, username: str, yaps_l24h: float = 0.0, yaps_l30d: float = 0.0, yaps_all: float = 0.0, yaps_l7d: float = 0.0):
        self.scores[username] = {
            "user_id": f"id-{username}",
            "yaps_all": yaps_all,
            "yaps_l24h": yaps_l24h,
            "yaps_l7d": yaps_l7d,
            "yaps_l30d": yaps_l30d,
        }

    def handler(self, request: httpx.Request) -> httpx.Response:
        username = request.url.params.get("username", "")
        self.calls.append(username)
        if username in self.status_overrides:
            return httpx.Response(self.status_overrides[username])
        if username not in self.scores:
            return httpx.Response(404, json={"error": "not found"})
        return httpx.Response(200, json=self.scores[username])

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def settings():
    return Settings(
        yaps_api_endpoint=ENDPOINT,
        environment="test",
        cache_backend="memory",
        leaderboard_request_delay=0,
        tracked_accounts=["alice", "bob", "carol"],
    )
