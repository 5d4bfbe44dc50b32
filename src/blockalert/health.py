"""
Health probing with exponential backoff, shared by NBXplorer and ntfy.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

import httpx
from loguru import logger

from blockalert.constants import (
    HEALTH_BASE_DELAY_MS,
    HEALTH_MAX_ATTEMPTS,
    HEALTH_MAX_DELAY_MS,
)
from blockalert.errors import HealthCheckError

Sleep = Callable[[float], Awaitable[None]]


def backoff_delay_ms(attempt: int, max_delay_ms: int = HEALTH_MAX_DELAY_MS) -> int:
    """Delay after the given 1-based failed attempt."""
    return min(HEALTH_BASE_DELAY_MS * 2 ** (attempt - 1), max_delay_ms)


async def wait_until_healthy(
    client: httpx.AsyncClient,
    url: str,
    service_name: str,
    max_attempts: int = HEALTH_MAX_ATTEMPTS,
    max_delay_ms: int = HEALTH_MAX_DELAY_MS,
    sleep: Sleep = asyncio.sleep,
) -> None:
    """
    Poll a status endpoint until it answers HTTP 200.

    Args:
        client: HTTP client used for the health check
        url: Status URL, absolute or relative to the client's base URL
        service_name: Name used in log messages
        max_attempts: Attempts before giving up
        max_delay_ms: Cap for the exponential backoff delay
        sleep: Coroutine used to wait between attempts (seconds)

    Raises:
        HealthCheckError: If no attempt succeeded within max_attempts
    """
    logger.info(f"Starting {service_name} health check...")

    for attempt in range(1, max_attempts + 1):
        try:
            response = await client.get(url)
            if response.status_code == 200:
                logger.info(f"{service_name} health check passed")
                return
            logger.warning(f"Health check failed with status: {response.status_code}")
        except httpx.HTTPError as e:
            logger.warning(f"Health check error: {e!r}")

        if attempt == max_attempts:
            break

        delay_ms = backoff_delay_ms(attempt, max_delay_ms)
        logger.info(f"Retrying health check in {delay_ms} ms...")
        await sleep(delay_ms / 1000)

    logger.error(f"{service_name} health check failed after maximum attempts")
    raise HealthCheckError(f"{service_name} health check failed")
