"""Tests for the MCP tool surface."""

import pytest
from mcp.server.fastmcp.exceptions import ToolError

from yaps_mcp import server
from yaps_mcp.context import create_context
from yaps_mcp.core.errors import RateLimitExceeded
from yaps_mcp.rate_limiter import RATE_LIMIT_KEY


@pytest.fixture
def seeded(upstream):
    upstream.add("alice", yaps_l24h=100, yaps_l30d=100, yaps_all=1000)
    upstream.add("bob", yaps_l24h=50, yaps_l30d=50, yaps_all=400)
    upstream.add("carol", yaps_l24h=75, yaps_l30d=600, yaps_all=700)
    return upstream


@pytest.fixture
def context(settings, seeded, store, monkeypatch):
    ctx = create_context(settings, store=store, transport=seeded.transport)
    monkeypatch.setattr(server, "_context", ctx)
    return ctx


class TestGetYapsScore:
    async def test_returns_score_and_summary(self, context):
        result = await server.get_yaps_score("@carol")
        assert result["score"]["username"] == "carol"
        assert result["score"]["percentile"] == 95
        assert result["score"]["qualitative_label"] == "Elite"
        assert result["summary"].startswith("@carol has a YAPS score of 600.0")

    async def test_counts_against_rate_limit(self, context, store):
        await server.get_yaps_score("alice")
        assert store.data[RATE_LIMIT_KEY] == "1"

    async def test_rate_limited_is_soft_failure(self, context, store, seeded):
        store.data[RATE_LIMIT_KEY] = str(context.settings.rate_limit_max_requests)
        result = await server.get_yaps_score("alice")
        assert result["rate_limited"] is True
        assert result["status"] == 429
        assert seeded.calls == []

    async def test_upstream_failure_raises_tool_error(self, context):
        with pytest.raises(ToolError, match="ghost"):
            await server.get_yaps_score("ghost")

    async def test_blank_handle_rejected(self, context):
        with pytest.raises(ToolError):
            await server.get_yaps_score("@")


class TestCompareScores:
    async def test_comparison(self, context):
        result = await server.compare_scores("alice", "@bob")
        assert result["comparison"]["deltas"]["yaps_l24h"] == 50
        assert result["summary"] == result["comparison"]["summary"]

    async def test_rate_limited(self, context, store):
        store.data[RATE_LIMIT_KEY] = "100000"
        result = await server.compare_scores("alice", "bob")
        assert result["rate_limited"] is True

    async def test_failure_names_handle(self, context):
        with pytest.raises(ToolError, match="ghost"):
            await server.compare_scores("alice", "ghost")


class TestLeaderboardToday:
    async def test_leaderboard(self, context):
        result = await server.leaderboard_today()
        assert result["count"] == 3
        assert [e["username"] for e in result["leaderboard"]] == ["alice", "carol", "bob"]
        assert [e["rank"] for e in result["leaderboard"]] == [1, 2, 3]
        assert result["summary"].startswith("Top 3 YAPS accounts")

    async def test_unknown_account_is_skipped(self, settings, seeded, store, monkeypatch):
        settings = settings.model_copy(update={"tracked_accounts": ["ghost", "bob"]})
        monkeypatch.setattr(server, "_context", create_context(settings, store=store, transport=seeded.transport))
        result = await server.leaderboard_today()
        assert [e["username"] for e in result["leaderboard"]] == ["bob"]


class TestHealthCheck:
    async def test_reports_cache_and_usage(self, context, store):
        await server.get_yaps_score("alice")
        result = await server.health_check()
        assert result["status"] == "ok"
        assert result["environment"] == "test"
        assert result["cache"] == "connected"
        assert result["rate_limit"]["current"] == 1

    async def test_reports_degraded_cache(self, context, store):
        store.down = True
        result = await server.health_check()
        assert result["cache"] == "unavailable"
        assert result["rate_limit"]["current"] == 0


class TestScoreResource:
    async def test_resource_returns_json(self, context):
        body = await server.yaps_score_resource("alice")
        assert '"username":"alice"' in body

    async def test_resource_raises_when_rate_limited(self, context, store):
        store.data[RATE_LIMIT_KEY] = "100000"
        with pytest.raises(RateLimitExceeded):
            await server.yaps_score_resource("alice")


async def test_tools_require_context(monkeypatch):
    monkeypatch.setattr(server, "_context", None)
    with pytest.raises(RuntimeError):
        await server.leaderboard_today()


async def test_http_serving_starts_context_before_sessions(settings, store, monkeypatch):
    seen = {}

    async def fake_serve():
        seen["context"] = server._context
        seen["status"] = await server._status()

    monkeypatch.setattr(server, "_context", None)
    monkeypatch.setattr(server, "create_context", lambda s: create_context(s, store=store))
    monkeypatch.setattr(server.mcp, "run_streamable_http_async", fake_serve)
    await server._serve_http(settings)
    assert seen["context"] is not None
    assert seen["status"]["status"] == "ok"
    assert server._context is None
