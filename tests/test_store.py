"""Tests for the RedisStore circuit breaker."""

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from yaps_mcp.core.errors import CacheUnavailableError
from yaps_mcp.store import RedisStore


class FlakyRedis:
    """Minimal async Redis client double that can be switched off."""

    def __init__(self):
        self.data = {}
        self.up = True
        self.calls = 0
        self.closed = False

    def _check(self):
        self.calls += 1
        if not self.up:
            raise RedisConnectionError("connection refused")

    async def get(self, key):
        self._check()
        return self.data.get(key)

    async def set(self, key, value, ex=None):
        self._check()
        self.data[key] = value
        return True

    async def exists(self, key):
        self._check()
        return int(key in self.data)

    async def incr(self, key):
        self._check()
        self.data[key] = str(int(self.data.get(key, "0")) + 1)
        return int(self.data[key])

    async def delete(self, key):
        self._check()
        return int(self.data.pop(key, None) is not None)

    async def ping(self):
        self._check()
        return True

    async def aclose(self):
        self.closed = True


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def client():
    return FlakyRedis()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def redis_store(client, clock):
    return RedisStore(client=client, recheck_seconds=30, clock=clock)


class TestRedisStore:
    async def test_round_trip(self, redis_store):
        await redis_store.set("k", "v", 60)
        assert await redis_store.get("k") == "v"
        assert await redis_store.exists("k") is True
        assert await redis_store.incr("n") == 1
        await redis_store.delete("k")
        assert await redis_store.exists("k") is False
        assert redis_store.state == "connected"

    async def test_failure_opens_circuit(self, redis_store, client):
        client.up = False
        with pytest.raises(CacheUnavailableError):
            await redis_store.get("k")
        assert redis_store.state == "unavailable"
        assert redis_store.available is False

    async def test_open_circuit_fails_fast(self, redis_store, client):
        client.up = False
        with pytest.raises(CacheUnavailableError):
            await redis_store.get("k")
        calls = client.calls
        client.up = True
        with pytest.raises(CacheUnavailableError):
            await redis_store.get("k")
        assert client.calls == calls

    async def test_recloses_after_recheck_interval(self, redis_store, client, clock):
        client.up = False
        with pytest.raises(CacheUnavailableError):
            await redis_store.set("k", "v", 60)
        client.up = True
        clock.now += 31
        assert redis_store.available is True
        await redis_store.set("k", "v", 60)
        assert redis_store.state == "connected"
        assert await redis_store.get("k") == "v"

    async def test_failed_recheck_restarts_interval(self, redis_store, client, clock):
        client.up = False
        with pytest.raises(CacheUnavailableError):
            await redis_store.get("k")
        clock.now += 31
        with pytest.raises(CacheUnavailableError):
            await redis_store.get("k")
        clock.now += 10
        assert redis_store.available is False

    async def test_ping_does_not_raise(self, redis_store, client):
        assert await redis_store.ping() is True
        client.up = False
        assert await redis_store.ping() is False

    async def test_close(self, redis_store, client):
        await redis_store.close()
        assert client.closed is True

    def test_requires_url_or_client(self):
        with pytest.raises(ValueError):
            RedisStore()
