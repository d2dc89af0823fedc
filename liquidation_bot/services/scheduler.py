"""Cron-driven, single-flight cycle scheduler."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any

from croniter import croniter

logger = logging.getLogger(__name__)

DEFAULT_CRON_EXPRESSION = "*/5 * * * *"


class CycleScheduler:
    """Fires ``run_cycle`` on a cron schedule, never two at a time.

    A tick that arrives while a cycle is still running is dropped, not
    queued. The running flag is tested and set with no ``await`` in between,
    and cleared when the cycle ends however it ends.
    """

    def __init__(
        self,
        run_cycle: Callable[[], Awaitable[Any]],
        cron_expression: str = DEFAULT_CRON_EXPRESSION,
    ) -> None:
        if not croniter.is_valid(cron_expression):
            raise ValueError(f"Invalid cron expression '{cron_expression}'")
        self._run_cycle = run_cycle
        self._cron_expression = cron_expression
        self._running = False
        self._ticker: asyncio.Task[None] | None = None
        self._cycle: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self) -> None:
        """Start the ticker task. Must be called from a running event loop."""
        if self._ticker is not None and not self._ticker.done():
            return
        self._ticker = asyncio.create_task(self._tick_forever(), name="cycle-ticker")
        logger.info("Scheduler started [cron: %s]", self._cron_expression)

    async def stop(self) -> None:
        """Cancel the ticker, then let an in-flight cycle finish."""
        if self._ticker is not None:
            self._ticker.cancel()
            try:
                await self._ticker
            except asyncio.CancelledError:
                pass
            self._ticker = None

        if self._cycle is not None and not self._cycle.done():
            logger.info("Waiting for the running cycle to finish")
            await asyncio.shield(self._cycle)
        self._cycle = None
        logger.info("Scheduler stopped")

    async def wait(self) -> None:
        """Block until the ticker ends (normally only on cancellation)."""
        if self._ticker is not None:
            await self._ticker

    def _seconds_until_next(self) -> float:
        now = datetime.now(timezone.utc)
        next_fire = croniter(self._cron_expression, now).get_next(datetime)
        return max((next_fire - now).total_seconds(), 0.0)

    async def _tick_forever(self) -> None:
        while True:
            await asyncio.sleep(self._seconds_until_next())
            await self.trigger()

    async def trigger(self) -> bool:
        """Start a cycle unless one is already running.

        Returns True when a cycle was started.
        """
        if self._running:
            logger.info("Previous cycle still running, skipping this tick")
            return False
        self._running = True
        self._cycle = asyncio.create_task(self._guarded_cycle(), name="liquidation-cycle")
        return True

    async def _guarded_cycle(self) -> None:
        try:
            await self._run_cycle()
        except asyncio.CancelledError:
            logger.warning("Cycle cancelled")
            raise
        except Exception:
            logger.exception("Cycle failed")
        finally:
            self._running = False
