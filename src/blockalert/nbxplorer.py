"""
NBXplorer watcher.

Tracks one extended public key through an NBXplorer instance:
- Health checks the REST API with exponential backoff
- Registers the key and waits for the initial UTXO scan
- Subscribes to live transactions over the WebSocket and reconnects on
  abnormal closure
- Publishes a balance report every `balance_report_interval_ms`

Results are published on the EventBus as TRANSACTION_DETECTION and
BALANCE_REPORT; an unrecoverable disconnect publishes SHUTDOWN.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
from typing import Any, Literal

import httpx
from loguru import logger
from pydantic import ValidationError
from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed
from websockets.protocol import State

from blockalert.analyze import analyze_transaction
from blockalert.auth import auth_headers, basic_auth
from blockalert.constants import (
    SCAN_POLL_INTERVAL,
    WS_NORMAL_CLOSURE,
    WS_NORMAL_CLOSURE_REASON,
)
from blockalert.errors import NBXplorerError, ScanError
from blockalert.events import EventBus, EventType
from blockalert.health import Sleep, wait_until_healthy
from blockalert.models import (
    NewTransactionMessage,
    ScanProgress,
    ScanStatus,
    SubscribeData,
    SubscribeMessage,
    TransactionData,
    UtxoSnapshot,
)
from blockalert.scheduler import PeriodicReporter


def to_websocket_url(http_url: str) -> str:
    if http_url.startswith("https://"):
        return "wss://" + http_url[len("https://") :]
    if http_url.startswith("http://"):
        return "ws://" + http_url[len("http://") :]
    return http_url


class NBXplorerService:
    def __init__(
        self,
        events: EventBus,
        nbx_url: str,
        crypto_code: str,
        extended_pubkey: str,
        balance_report_interval_ms: int,
        nbx_user: str | None = None,
        nbx_password: str | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.events = events
        self.nbx_url = nbx_url.rstrip("/")
        self.crypto_code = crypto_code
        self.extended_pubkey = extended_pubkey
        self.balance_report_interval_ms = balance_report_interval_ms
        self.base_url = f"{self.nbx_url}/v1/cryptos/{crypto_code}"
        self.ws_url = to_websocket_url(f"{self.base_url}/connect")

        # Header form is for the WebSocket handshake only
        self._auth_headers = auth_headers(nbx_user, nbx_password)
        self.client = client or httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Content-Type": "application/json"},
            auth=basic_auth(nbx_user, nbx_password),
            timeout=30.0,
        )
        self._sleep = sleep

        self.running = False
        self._ws: ClientConnection | None = None
        self._listener_task: asyncio.Task[None] | None = None
        self._message_tasks: list[asyncio.Task[None]] = []
        self._reconnecting = False
        self.balance_reporter = PeriodicReporter(
            "balance report",
            balance_report_interval_ms / 1000,
            self._report_balance,
            sleep=sleep,
        )

    async def start(self) -> None:
        if self.running:
            logger.warning("NBXplorerService is already running")
            return

        try:
            logger.info("Starting NBXplorerService")
            await self.health_check()
            await self.track()
            await self.connect_websocket()
            await self.subscribe()
            await self.wait_for_scan_completion()

            self.balance_reporter.start()
            self.running = True
            logger.info("NBXplorerService started successfully")
        except Exception as e:
            logger.error(f"Failed to start NBXplorerService: {e}")
            raise

    async def stop(self) -> None:
        if not self.running:
            logger.warning("NBXplorerService is not running")
            return

        try:
            await self._stop_listening()
            await self._cancel_message_tasks()
            await self._close_websocket()
            self.balance_reporter.stop()

            self.running = False
            logger.info("NBXplorerService stopped")
        except Exception as e:
            logger.error(f"Failed to stop NBXplorerService: {e}")
            raise

    async def close(self) -> None:
        await self.client.aclose()

    async def health_check(self) -> None:
        await wait_until_healthy(self.client, "/status", "NBXplorer", sleep=self._sleep)

    async def track(self) -> None:
        try:
            response = await self.client.post(f"/derivations/{self.extended_pubkey}")
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Failed to track extended public key: {self.extended_pubkey} - {e}")
            raise
        logger.info(f"Tracked extended public key: {self.extended_pubkey}")

    async def connect_websocket(self) -> None:
        """Open the notification socket, replacing any previous handle."""
        try:
            ws = await connect(self.ws_url, additional_headers=self._auth_headers or None)
        except Exception as e:
            logger.error(f"Error connecting to NBXplorer WebSocket: {e}")
            raise

        logger.info("Connected to NBXplorer WebSocket")
        self._ws = ws
        self._listener_task = asyncio.create_task(self._listen(ws))

    async def subscribe(self) -> None:
        ws = self._ws
        if ws is None or ws.state is not State.OPEN:
            message = "WebSocket is not open. Cannot subscribe"
            logger.error(message)
            raise NBXplorerError(message)

        message = SubscribeMessage(
            data=SubscribeData(
                crypto_code=self.crypto_code,
                derivation_schemes=[self.extended_pubkey],
            )
        )
        try:
            await ws.send(message.model_dump_json(by_alias=True))
        except Exception as e:
            logger.error(f"Failed to send subscribe message: {e}")
            raise
        logger.info(f"Subscribed {self.extended_pubkey} to NBXplorer")

    async def _listen(self, ws: ClientConnection) -> None:
        try:
            async for raw in ws:
                # Handle each message concurrently
                self._message_tasks = [t for t in self._message_tasks if not t.done()]
                self._message_tasks.append(asyncio.create_task(self._on_message(raw)))
        except ConnectionClosed:
            pass
        await self._on_close(ws.close_code, ws.close_reason or "")

    async def _stop_listening(self) -> None:
        task = self._listener_task
        self._listener_task = None
        if task is None or task is asyncio.current_task() or task.done():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _cancel_message_tasks(self) -> None:
        for task in self._message_tasks:
            if not task.done():
                task.cancel()
        if self._message_tasks:
            await asyncio.gather(*self._message_tasks, return_exceptions=True)
        self._message_tasks = []

    async def _close_websocket(self) -> None:
        if self._ws is not None:
            ws = self._ws
            self._ws = None
            await ws.close(WS_NORMAL_CLOSURE, WS_NORMAL_CLOSURE_REASON)

    async def _on_message(self, raw: str | bytes) -> None:
        try:
            payload = json.loads(raw)
            if not isinstance(payload, dict) or payload.get("type") != "newtransaction":
                return

            message = NewTransactionMessage.model_validate(payload)
            derivation_strategy = message.data.derivation_strategy
            tx_hash = message.data.transaction_data.transaction_hash

            tx = await self.get_transaction(tx_hash, derivation_strategy)
            analysis = analyze_transaction(tx, derivation_strategy)
            self.events.emit(EventType.TRANSACTION_DETECTION, analysis)
            logger.info(
                f"{analysis.status.value} transaction detected - txid: {analysis.txid}"
            )
        except Exception as e:
            logger.error(f"Failed to process incoming message: {e}")

    async def _on_close(self, code: int | None, reason: str) -> None:
        if code == WS_NORMAL_CLOSURE:
            return

        logger.warning(f"WebSocket closed with code {code}. Reason: {reason}")
        if self._reconnecting:
            logger.debug("Reconnection already in progress")
            return

        self._reconnecting = True
        try:
            await self.health_check()
            await self.connect_websocket()
            await self.subscribe()
        except Exception as e:
            self.events.emit(EventType.SHUTDOWN, f"Reconnection failed: {e}")
        finally:
            self._reconnecting = False

    async def _scan_utxos(self, method: Literal["POST", "GET"]) -> Any:
        url = f"/derivations/{self.extended_pubkey}/utxos/scan"
        try:
            response = await self.client.request(method, url)
            response.raise_for_status()
            return response.json() if response.content else None
        except httpx.HTTPError as e:
            action = "initiate" if method == "POST" else "get progress for"
            logger.error(f"Failed to {action} UTXO scan for {self.extended_pubkey}: {e}")
            raise

    async def wait_for_scan_completion(self) -> None:
        """
        Start a UTXO scan for the tracked key and poll until it finishes.

        There is no iteration cap: the loop ends when NBXplorer reports
        Complete (returns) or Error (raises ScanError).
        """
        logger.info("Starting UTXOs scan for extended public key...")
        await self._scan_utxos("POST")

        while True:
            data = await self._scan_utxos("GET")
            try:
                progress = ScanProgress.model_validate(data)
            except ValidationError as e:
                raise ScanError(f"Malformed scan status for {self.extended_pubkey}: {e}") from e

            if progress.status == ScanStatus.QUEUED:
                logger.info(f"Scan for {self.extended_pubkey} is queued.")
            elif progress.status == ScanStatus.PENDING:
                detail = progress.progress
                overall = detail.overall_progress if detail else 0.0
                remaining = detail.remaining_seconds if detail else None
                eta = f"ETA: {remaining}s" if remaining is not None else "ETA: Unknown"
                logger.info(
                    f"Scan progress for {self.extended_pubkey}: Progress: {overall}%, {eta}"
                )
            elif progress.status == ScanStatus.COMPLETE:
                logger.info(f"UTXO scan completed for {self.extended_pubkey}")
                return
            else:
                raise ScanError(f"Scan error for {self.extended_pubkey}: {progress.error}")

            await self._sleep(SCAN_POLL_INTERVAL)

    async def get_transaction(self, tx_hash: str, derivation_strategy: str) -> TransactionData:
        try:
            response = await self.client.get(
                f"/derivations/{derivation_strategy}/transactions/{tx_hash}"
            )
            response.raise_for_status()
            return TransactionData.model_validate(response.json())
        except (httpx.HTTPError, ValidationError) as e:
            logger.error(f"Failed to get transaction: {tx_hash} - {e}")
            raise

    async def get_utxos(self) -> UtxoSnapshot:
        response = await self.client.get(f"/derivations/{self.extended_pubkey}/utxos")
        response.raise_for_status()
        return UtxoSnapshot.model_validate(response.json())

    async def _report_balance(self) -> None:
        utxos = await self.get_utxos()
        logger.info("UTXOs retrieved successfully")
        self.events.emit(EventType.BALANCE_REPORT, utxos)
