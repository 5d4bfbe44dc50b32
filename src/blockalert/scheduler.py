"""
Self-rescheduling timer used for periodic balance reports.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

from loguru import logger

from blockalert.health import Sleep


class PeriodicReporter:
    """
    Runs a callback now and then every `interval` seconds.

    `_timer` holds the single timer task: either the pending wait for the
    next run or the run in progress. The next run is armed whether the
    callback succeeded or failed, so the loop only ends through stop().
    """

    def __init__(
        self,
        name: str,
        interval: float,
        callback: Callable[[], Awaitable[None]],
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.name = name
        self.interval = interval
        self._callback = callback
        self._sleep = sleep
        self._timer: asyncio.Task[Any] | None = None
        self._running = False

    @property
    def pending(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def start(self) -> None:
        self._cancel_pending()
        self._running = True
        logger.info(f"Starting periodic {self.name}")
        self._timer = asyncio.create_task(self._tick())

    def stop(self) -> None:
        self._running = False
        self._cancel_pending()

    def _cancel_pending(self) -> None:
        timer = self._timer
        if timer is None or timer is asyncio.current_task():
            return
        self._timer = None
        if not timer.done():
            timer.cancel()

    async def _tick(self) -> None:
        self._cancel_pending()
        try:
            await self._callback()
        except Exception as e:
            logger.error(f"Periodic {self.name} failed: {e}")
        self._arm()

    def _arm(self) -> None:
        if not self._running:
            return
        self._cancel_pending()
        self._timer = asyncio.create_task(self._wait_then_tick())

    async def _wait_then_tick(self) -> None:
        await self._sleep(self.interval)
        await self._tick()
