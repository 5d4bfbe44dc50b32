"""
Process lifecycle: starts the services in order and tears them down on
SIGINT/SIGTERM or a SHUTDOWN event.
"""

from __future__ import annotations

import asyncio
import signal
from typing import Any

from loguru import logger

from blockalert.events import EventBus, EventType
from blockalert.nbxplorer import NBXplorerService
from blockalert.ntfy import NtfyService

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class ProcessManager:
    def __init__(
        self,
        events: EventBus,
        nbxplorer_service: NBXplorerService,
        ntfy_service: NtfyService,
    ) -> None:
        self.events = events
        self.nbxplorer_service = nbxplorer_service
        self.ntfy_service = ntfy_service

        self.running = False
        self.exit_code: int | None = None
        self._closed = asyncio.Event()
        self._installed_signals: list[signal.Signals] = []
        self._shutdown_tasks: set[asyncio.Task[Any]] = set()

    async def start(self) -> None:
        if self.running:
            logger.warning("ProcessManager is already running")
            return

        self.running = True
        self._setup_event_handlers()

        try:
            logger.info("Starting all services...")
            # ntfy first so the startup notification has somewhere to go
            await self.ntfy_service.start()
            await self.nbxplorer_service.start()

            self.events.emit(EventType.STARTUP_SUCCESS)
            logger.info("Application started successfully")
        except Exception as e:
            logger.error(f"Error occurred during startup: {e}")
            await self.shutdown("Startup failure", exit_code=1)

    def _setup_event_handlers(self) -> None:
        self.events.subscribe(EventType.SHUTDOWN, self._on_shutdown_event)

        loop = asyncio.get_running_loop()
        for sig in SHUTDOWN_SIGNALS:
            try:
                loop.add_signal_handler(sig, self._on_signal, sig)
            except (NotImplementedError, RuntimeError):
                # add_signal_handler is unavailable on Windows event loops
                logger.debug(f"Cannot install handler for {sig.name}")
                continue
            self._installed_signals.append(sig)

    def _remove_event_handlers(self) -> None:
        self.events.unsubscribe(EventType.SHUTDOWN, self._on_shutdown_event)

        loop = asyncio.get_running_loop()
        for sig in self._installed_signals:
            loop.remove_signal_handler(sig)
        self._installed_signals.clear()

    def _on_signal(self, sig: signal.Signals) -> None:
        task = asyncio.create_task(self.shutdown(f"{sig.name} received"))
        self._shutdown_tasks.add(task)
        task.add_done_callback(self._shutdown_tasks.discard)

    async def _on_shutdown_event(self, reason: str) -> None:
        await self.shutdown(reason, exit_code=1)

    async def shutdown(self, reason: str, exit_code: int = 0) -> None:
        if not self.running:
            logger.warning("ProcessManager is not running")
            return

        self.running = False
        logger.info(f"Initiating shutdown: {reason}")
        try:
            self._remove_event_handlers()
            await self.nbxplorer_service.stop()
            await self.ntfy_service.stop()
            logger.info("All services stopped successfully")
            self.exit_code = exit_code
        except Exception as e:
            logger.error(f"Error occurred during shutdown: {e}")
            self.exit_code = 1
        finally:
            self._closed.set()

    async def wait_closed(self) -> int:
        """Block until shutdown() has finished and return the process exit code."""
        await self._closed.wait()
        return self.exit_code if self.exit_code is not None else 1
