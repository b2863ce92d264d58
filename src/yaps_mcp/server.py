"""YAPS MCP Server.

FastMCP server with 4 tools and 1 resource template over the Kaito YAPS API.
Run: yaps-mcp [--transport stdio|streamable-http]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError
from mcp.types import ToolAnnotations
from starlette.requests import Request
from starlette.responses import JSONResponse

from . import __version__
from .config import Settings, get_settings
from .context import YapsContext, create_context
from .core.errors import RateLimitExceeded, UpstreamFetchError
from .core.scoring import format_leaderboard, normalize_username, summarize_score

logger = logging.getLogger(__name__)

READ_ONLY = ToolAnnotations(readOnlyHint=True, destructiveHint=False, idempotentHint=True, openWorldHint=True)

RATE_LIMIT_MESSAGE = "Rate limit exceeded. Please try again later."

_context: Optional[YapsContext] = None
_sessions = 0
# Streamable HTTP enters the lifespan once per session; the context is built
# at startup in that mode and outlives every session.
_keep_alive = False


async def _start_context(settings: Settings) -> YapsContext:
    global _context
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    _context = create_context(settings)
    await _context.scheduler.start()
    logger.info("YAPS MCP server initialized (%s)", settings.environment)
    return _context


async def _stop_context() -> None:
    global _context
    if _context is not None:
        await _context.close()
        _context = None
        logger.info("YAPS MCP server shut down")


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncIterator[None]:
    """Build the shared context on first use and start the leaderboard scheduler."""
    global _sessions
    if _context is None:
        await _start_context(get_settings())
    _sessions += 1
    try:
        yield
    finally:
        _sessions -= 1
        if _sessions == 0 and not _keep_alive:
            await _stop_context()


mcp = FastMCP(
    "YAPS",
    instructions="Kaito YAPS tokenized attention scores for X/Twitter accounts: single scores, head-to-head comparisons and a daily top-10 leaderboard.",
    lifespan=lifespan,
)


def _get_context() -> YapsContext:
    if _context is None:
        raise RuntimeError("YAPS server context is not initialized")
    return _context


def _rate_limited() -> dict:
    return {"rate_limited": True, "status": 429, "message": RATE_LIMIT_MESSAGE}


def _require_handle(value: str, field: str = "username") -> str:
    if not normalize_username(value.strip()):
        raise ToolError(f"{field} must be a non-empty handle")
    return value.strip()


# ─── Resource: single score ──────────────────────────────────────────────────


@mcp.resource("yaps-score://{username}", mime_type="application/json")
async def yaps_score_resource(username: str) -> str:
    """YAPS score for one X/Twitter account as JSON."""
    ctx = _get_context()
    if not await ctx.rate_limiter.check_limit():
        raise RateLimitExceeded(RATE_LIMIT_MESSAGE)
    await ctx.rate_limiter.increment_counter()
    score = await ctx.fetcher.get_score(username)
    return score.model_dump_json()


# ─── Tool 1: Single score ────────────────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
async def get_yaps_score(username: str) -> dict:
    """YAPS attention score for an X/Twitter account, with percentile and label.

    Args:
        username: X/Twitter handle, with or without the leading '@'.
    """
    username = _require_handle(username)
    ctx = _get_context()
    if not await ctx.rate_limiter.check_limit():
        return _rate_limited()

    await ctx.rate_limiter.increment_counter()
    try:
        score = await ctx.fetcher.get_score(username)
    except UpstreamFetchError as exc:
        logger.error("Error in get_yaps_score for %s: %s", username, exc)
        raise ToolError(f"Error fetching YAPS score: {exc}") from exc

    return {
        "score": score.model_dump(mode="json"),
        "summary": summarize_score(score),
    }


# ─── Tool 2: Compare ─────────────────────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
async def compare_scores(username_a: str, username_b: str) -> dict:
    """Compare the YAPS scores of two accounts over 24h, 30d and all time.

    Args:
        username_a: First handle. Deltas are reported as A minus B.
        username_b: Second handle.
    """
    username_a = _require_handle(username_a, "username_a")
    username_b = _require_handle(username_b, "username_b")
    ctx = _get_context()
    if not await ctx.rate_limiter.check_limit():
        return _rate_limited()

    await ctx.rate_limiter.increment_counter()
    try:
        comparison = await ctx.comparisons.compare(username_a, username_b)
    except UpstreamFetchError as exc:
        logger.error("Error comparing %s and %s: %s", username_a, username_b, exc)
        raise ToolError(f"Error comparing scores: {exc}") from exc

    return {
        "comparison": comparison.model_dump(mode="json"),
        "summary": comparison.summary,
    }


# ─── Tool 3: Leaderboard ─────────────────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
async def leaderboard_today() -> dict:
    """Top 10 tracked accounts by YAPS earned in the last 24 hours.

    Served from cache when fresh; otherwise rebuilt before returning. No arguments needed.
    """
    entries = await _get_context().leaderboard.get_leaderboard()
    return {
        "leaderboard": [e.model_dump(mode="json") for e in entries],
        "count": len(entries),
        "summary": format_leaderboard(entries),
    }


# ─── Tool 4: Health ──────────────────────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
async def health_check() -> dict:
    """Server status: cache connectivity and current rate-limit usage."""
    return await _status()


async def _status() -> dict:
    ctx = _get_context()
    if ctx.store is not None:
        await ctx.store.ping()
    usage = await ctx.rate_limiter.get_usage()
    return {
        "status": "ok",
        "server": "YAPS",
        "version": __version__,
        "environment": ctx.settings.environment,
        "cache": ctx.cache_state,
        "rate_limit": usage.model_dump(),
        "leaderboard_scheduler": "running" if ctx.scheduler.running else "disabled",
    }


# ─── HTTP routes (streamable-http transport only) ───────────────────────────


@mcp.custom_route("/", methods=["GET"])
async def http_health(request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok", "message": "YAPS MCP server is running"})


@mcp.custom_route("/api/status", methods=["GET"])
async def http_status(request: Request) -> JSONResponse:
    if _context is None:
        return JSONResponse({"status": "starting"}, status_code=503)
    return JSONResponse(await _status())


async def _serve_http(settings: Settings) -> None:
    """Serve streamable HTTP with the context and scheduler up before the first session."""
    await _start_context(settings)
    try:
        await mcp.run_streamable_http_async()
    finally:
        await _stop_context()


def main(argv: Optional[list[str]] = None):
    """Entry point for the CLI command."""
    global _keep_alive
    parser = argparse.ArgumentParser(prog="yaps-mcp", description="YAPS MCP server")
    parser.add_argument("--transport", choices=["stdio", "streamable-http"], default="stdio")
    parser.add_argument("--host", default=None, help="Bind address for streamable-http")
    parser.add_argument("--port", type=int, default=None, help="Port for streamable-http")
    args = parser.parse_args(argv)

    settings = get_settings()
    if args.transport == "stdio":
        mcp.run(transport="stdio")
        return

    mcp.settings.host = args.host or settings.host
    mcp.settings.port = args.port or settings.port
    _keep_alive = True
    asyncio.run(_serve_http(settings))


if __name__ == "__main__":
    main()
