"""
ntfy notification sender.

Listens on the EventBus and posts formatted messages to an ntfy topic.
Delivery is best effort: failures are logged and dropped.
"""

from __future__ import annotations

import asyncio

import httpx
from loguru import logger

from blockalert.auth import basic_auth
from blockalert.constants import MEMPOOL_TX_URL
from blockalert.errors import NtfyError
from blockalert.events import EventBus, EventType
from blockalert.formatting import format_transaction, format_utxos
from blockalert.health import Sleep, wait_until_healthy
from blockalert.models import TransactionAnalysis, UtxoSnapshot

STARTUP_MESSAGE = "Block-Alert setup completed successfully 👍"


class NtfyService:
    def __init__(
        self,
        events: EventBus,
        ntfy_url: str,
        topic: str,
        ntfy_user: str | None = None,
        ntfy_password: str | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.events = events
        self.ntfy_url = ntfy_url.rstrip("/")
        self.topic = topic
        self.topic_url = f"{self.ntfy_url}/{topic}"
        self.client = client or httpx.AsyncClient(
            headers={"Content-Type": "text/plain"},
            auth=basic_auth(ntfy_user, ntfy_password),
            timeout=30.0,
        )
        self._sleep = sleep
        self.running = False

    async def start(self) -> None:
        if self.running:
            logger.warning("NtfyService is already running")
            return

        try:
            logger.info("Starting NtfyService")
            await wait_until_healthy(
                self.client, f"{self.ntfy_url}/v1/health", "Ntfy", sleep=self._sleep
            )

            self._setup_event_handlers()
            self.running = True
            logger.info("NtfyService started successfully")
        except Exception as e:
            logger.error(f"Failed to start NtfyService: {e}")
            raise

    async def stop(self) -> None:
        if not self.running:
            logger.warning("NtfyService is not running")
            return

        self.events.unsubscribe(EventType.STARTUP_SUCCESS, self._on_startup_success)
        self.events.unsubscribe(EventType.TRANSACTION_DETECTION, self._on_transaction)
        self.events.unsubscribe(EventType.BALANCE_REPORT, self._on_balance_report)
        self.running = False
        logger.info("NtfyService stopped")

    async def close(self) -> None:
        await self.client.aclose()

    def _setup_event_handlers(self) -> None:
        self.events.subscribe(EventType.STARTUP_SUCCESS, self._on_startup_success)
        self.events.subscribe(EventType.TRANSACTION_DETECTION, self._on_transaction)
        self.events.subscribe(EventType.BALANCE_REPORT, self._on_balance_report)

    async def _on_startup_success(self, _payload: None = None) -> None:
        # Announce once
        self.events.unsubscribe(EventType.STARTUP_SUCCESS, self._on_startup_success)
        try:
            await self.send_message(STARTUP_MESSAGE)
        except NtfyError:
            logger.error("Failed to send startup notification")

    async def _on_transaction(self, analysis: TransactionAnalysis) -> None:
        try:
            await self.send_transaction_notification(analysis)
        except NtfyError:
            logger.error(f"Failed to send transaction notification for {analysis.txid}")

    async def _on_balance_report(self, utxos: UtxoSnapshot) -> None:
        try:
            await self.send_message(format_utxos(utxos))
            logger.info("Balance report sent successfully")
        except NtfyError:
            logger.error("Failed to send balance report")

    async def send_transaction_notification(self, analysis: TransactionAnalysis) -> None:
        headers = {"Actions": f"view, View on mempool.space, {MEMPOOL_TX_URL}{analysis.txid}"}
        await self.send_message(format_transaction(analysis), headers=headers)
        logger.info("Transaction notification sent successfully")

    async def send_message(self, text: str, headers: dict[str, str] | None = None) -> None:
        """
        Post a plain-text message to the topic.

        Raises:
            NtfyError: If the ntfy server could not be reached or rejected the message
        """
        try:
            response = await self.client.post(
                self.topic_url, content=text.encode("utf-8"), headers=headers
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Failed to send message to ntfy server: {e}")
            raise NtfyError(f"Failed to send message to ntfy server: {e}") from e
