"""
Fakes and helpers shared by the block-alert test suite.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

import httpx
from websockets.protocol import State

from blockalert.events import EventBus, EventType

NBX_URL = "http://127.0.0.1:24444"
XPUB = (
    "xpub6CUGRUonZSQ4TWtTMmzXdrXDtypWKiKrhko4egpiMZbpiaQL2jkwSB1icqYh"
    "2cfDfVxdx4df189oLKnC5fSwqPfgyP3hooxujYzAu3fDVmz"
)

_CLOSED = object()


class FakeSleep:
    """Records requested delays and returns immediately."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.calls.append(delay)


class ManualClock:
    """Simulated clock: sleepers wake only when advance() moves past their deadline."""

    def __init__(self) -> None:
        self.now = 0.0
        self._waiters: list[tuple[float, asyncio.Future[None]]] = []

    async def sleep(self, delay: float) -> None:
        future: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._waiters.append((self.now + delay, future))
        await future

    @property
    def active_sleepers(self) -> int:
        return sum(1 for _, future in self._waiters if not future.done())

    async def advance(self, seconds: float) -> None:
        self.now += seconds
        for deadline, future in list(self._waiters):
            if deadline <= self.now and not future.done():
                future.set_result(None)
        self._waiters = [(d, f) for d, f in self._waiters if not f.done()]
        await settle()


class FakeWebSocket:
    """Stand-in for websockets' ClientConnection driven by the test."""

    def __init__(self) -> None:
        self.state = State.OPEN
        self.sent: list[str] = []
        self.close_code: int | None = None
        self.close_reason: str | None = None
        self.closed_with: tuple[int, str] | None = None
        self._queue: asyncio.Queue[Any] = asyncio.Queue()

    async def send(self, message: str) -> None:
        self.sent.append(message)

    def feed(self, message: str) -> None:
        self._queue.put_nowait(message)

    def drop(self, code: int, reason: str = "") -> None:
        self.state = State.CLOSED
        self.close_code = code
        self.close_reason = reason
        self._queue.put_nowait(_CLOSED)

    async def close(self, code: int = 1000, reason: str = "") -> None:
        self.closed_with = (code, reason)
        self.drop(code, reason)

    def __aiter__(self) -> FakeWebSocket:
        return self

    async def __anext__(self) -> str:
        item = await self._queue.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        return item


async def settle(rounds: int = 50) -> None:
    """Let pending tasks and mock transports run to their next real wait."""
    for _ in range(rounds):
        await asyncio.sleep(0)


def mock_client(
    handler: Callable[[httpx.Request], httpx.Response], base_url: str = ""
) -> httpx.AsyncClient:
    return httpx.AsyncClient(base_url=base_url, transport=httpx.MockTransport(handler))


class EventRecorder:
    def __init__(self, events: EventBus) -> None:
        self.received: dict[EventType, list[Any]] = {event: [] for event in EventType}
        for event in EventType:
            events.subscribe(event, self._make_handler(event))

    def _make_handler(self, event: EventType) -> Callable[[Any], None]:
        def _handler(payload: Any) -> None:
            self.received[event].append(payload)

        return _handler
