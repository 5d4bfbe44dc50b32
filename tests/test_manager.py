"""
Tests for ProcessManager startup and shutdown orchestration.
"""

from __future__ import annotations

import signal
from unittest.mock import AsyncMock, MagicMock

import pytest

from blockalert.errors import HealthCheckError
from blockalert.events import EventBus, EventType
from blockalert.manager import ProcessManager
from tests.helpers import EventRecorder, settle


@pytest.fixture
def calls() -> list[str]:
    return []


@pytest.fixture
def nbxplorer_service(calls: list[str]) -> MagicMock:
    service = MagicMock()
    service.start = AsyncMock(side_effect=lambda: calls.append("nbx.start"))
    service.stop = AsyncMock(side_effect=lambda: calls.append("nbx.stop"))
    return service


@pytest.fixture
def ntfy_service(calls: list[str]) -> MagicMock:
    service = MagicMock()
    service.start = AsyncMock(side_effect=lambda: calls.append("ntfy.start"))
    service.stop = AsyncMock(side_effect=lambda: calls.append("ntfy.stop"))
    return service


@pytest.fixture
def manager(
    events: EventBus, nbxplorer_service: MagicMock, ntfy_service: MagicMock
) -> ProcessManager:
    return ProcessManager(events, nbxplorer_service, ntfy_service)


class TestStartup:
    @pytest.mark.asyncio
    async def test_starts_ntfy_before_nbxplorer(
        self, manager: ProcessManager, calls: list[str], recorder: EventRecorder
    ) -> None:
        await manager.start()

        assert calls == ["ntfy.start", "nbx.start"]
        assert recorder.received[EventType.STARTUP_SUCCESS] == [None]
        assert manager.running is True

        await manager.shutdown("test done")

    @pytest.mark.asyncio
    async def test_startup_failure_shuts_down_with_error(
        self,
        manager: ProcessManager,
        nbxplorer_service: MagicMock,
        calls: list[str],
        recorder: EventRecorder,
    ) -> None:
        nbxplorer_service.start.side_effect = HealthCheckError("NBXplorer health check failed")

        await manager.start()

        assert recorder.received[EventType.STARTUP_SUCCESS] == []
        assert calls == ["ntfy.start", "nbx.stop", "ntfy.stop"]
        assert manager.running is False
        assert await manager.wait_closed() == 1

    @pytest.mark.asyncio
    async def test_start_when_running_is_noop(
        self, manager: ProcessManager, ntfy_service: MagicMock
    ) -> None:
        await manager.start()
        await manager.start()

        assert ntfy_service.start.await_count == 1
        await manager.shutdown("test done")


class TestShutdown:
    @pytest.mark.asyncio
    async def test_stops_nbxplorer_then_ntfy(
        self, manager: ProcessManager, calls: list[str], events: EventBus
    ) -> None:
        await manager.start()
        calls.clear()

        await manager.shutdown("SIGINT received")

        assert calls == ["nbx.stop", "ntfy.stop"]
        assert await manager.wait_closed() == 0
        assert events.listener_count(EventType.SHUTDOWN) == 0

    @pytest.mark.asyncio
    async def test_second_shutdown_is_ignored(
        self, manager: ProcessManager, nbxplorer_service: MagicMock
    ) -> None:
        await manager.start()

        await manager.shutdown("first")
        await manager.shutdown("second")

        assert nbxplorer_service.stop.await_count == 1

    @pytest.mark.asyncio
    async def test_shutdown_event_stops_services(
        self, manager: ProcessManager, calls: list[str], events: EventBus
    ) -> None:
        await manager.start()

        events.emit(EventType.SHUTDOWN, "Reconnection failed: connection refused")
        await events.drain()

        assert calls[-2:] == ["nbx.stop", "ntfy.stop"]
        assert await manager.wait_closed() == 1

    @pytest.mark.asyncio
    async def test_signal_triggers_clean_shutdown(
        self, manager: ProcessManager, calls: list[str]
    ) -> None:
        await manager.start()

        manager._on_signal(signal.SIGTERM)
        await settle()

        assert calls[-2:] == ["nbx.stop", "ntfy.stop"]
        assert await manager.wait_closed() == 0

    @pytest.mark.asyncio
    async def test_stop_failure_sets_error_exit_code(
        self, manager: ProcessManager, nbxplorer_service: MagicMock
    ) -> None:
        await manager.start()
        nbxplorer_service.stop.side_effect = RuntimeError("socket stuck")

        await manager.shutdown("SIGTERM received")

        assert await manager.wait_closed() == 1

    @pytest.mark.asyncio
    async def test_shutdown_before_start_is_noop(
        self, manager: ProcessManager, nbxplorer_service: MagicMock
    ) -> None:
        await manager.shutdown("never started")

        nbxplorer_service.stop.assert_not_awaited()
        assert manager.exit_code is None
