"""Leaderboard refresh scheduler.

Builds the leaderboard once on start, then rebuilds it on a fixed interval so
tool calls are served from a warm cache. Uses asyncio tasks, no external
scheduler dependency.
"""

from __future__ import annotations

import asyncio
import logging

from .leaderboard import LeaderboardBuilder

logger = logging.getLogger(__name__)

RETRY_AFTER_FAILURE_SECONDS = 60


class LeaderboardScheduler:
    """Manages periodic leaderboard rebuilds."""

    def __init__(self, builder: LeaderboardBuilder, interval_hours: float):
        self._builder = builder
        self._task: asyncio.Task | None = None
        self._running = False
        self._interval_seconds = interval_hours * 3600

    @property
    def enabled(self) -> bool:
        return self._interval_seconds > 0

    @property
    def running(self) -> bool:
        return self._running

    async def start(self):
        """Start the background refresh loop. No-op when the interval is 0."""
        if self._running or not self.enabled:
            return
        self._running = True
        self._task = asyncio.create_task(self._run_loop())
        logger.info("Leaderboard scheduler started (interval: %.1f hours)", self._interval_seconds / 3600)

    async def stop(self):
        """Stop the background refresh loop."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
            logger.info("Leaderboard scheduler stopped")

    async def _run_loop(self):
        try:
            await self._builder.build()
        except Exception as exc:
            logger.error("Initial leaderboard build failed: %s", exc, exc_info=True)

        while self._running:
            try:
                await asyncio.sleep(self._interval_seconds)
                if not self._running:
                    break
                await self._builder.build()
            except asyncio.CancelledError:
                break
            except Exception as exc:
                logger.error("Scheduled leaderboard build failed: %s", exc, exc_info=True)
                await asyncio.sleep(RETRY_AFTER_FAILURE_SECONDS)
