"""
Event bus connecting the NBXplorer watcher to the notification side.

Each application owns one EventBus; the ProcessManager creates it and hands
it to the services it wires together. Handlers may be plain callables or
coroutine functions. Coroutine handlers run as background tasks so a slow
notification never blocks the emitter.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Callable
from enum import Enum
from typing import Any

from loguru import logger

Handler = Callable[[Any], Any]


class EventType(str, Enum):
    STARTUP_SUCCESS = "startup_success"
    TRANSACTION_DETECTION = "transaction_detection"
    BALANCE_REPORT = "balance_report"
    SHUTDOWN = "shutdown"


class EventBus:
    def __init__(self) -> None:
        self._handlers: dict[EventType, list[Handler]] = {event: [] for event in EventType}
        self._tasks: set[asyncio.Task[Any]] = set()

    def subscribe(self, event: EventType, handler: Handler) -> None:
        self._handlers[event].append(handler)

    def unsubscribe(self, event: EventType, handler: Handler) -> None:
        handlers = self._handlers[event]
        if handler in handlers:
            handlers.remove(handler)

    def clear(self, event: EventType) -> None:
        self._handlers[event].clear()

    def listener_count(self, event: EventType) -> int:
        return len(self._handlers[event])

    def emit(self, event: EventType, payload: Any = None) -> None:
        """
        Deliver payload to every handler registered for event.

        Handler errors are logged and never reach the emitter.
        """
        # Copy: handlers may unsubscribe themselves while being called
        for handler in list(self._handlers[event]):
            try:
                result = handler(payload)
            except Exception as e:
                logger.error(f"Handler for {event.value} failed: {e}")
                continue

            if inspect.isawaitable(result):
                task = asyncio.ensure_future(result)
                self._tasks.add(task)
                task.add_done_callback(self._make_done_callback(event))

    def _make_done_callback(self, event: EventType) -> Callable[[asyncio.Task[Any]], None]:
        def _done(task: asyncio.Task[Any]) -> None:
            self._tasks.discard(task)
            if task.cancelled():
                return
            exc = task.exception()
            if exc is not None:
                logger.error(f"Handler for {event.value} failed: {exc}")

        return _done

    async def drain(self) -> None:
        """Wait for handler tasks spawned by emit() to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
