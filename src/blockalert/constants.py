"""
Bitcoin unit and service timing constants.
"""

from __future__ import annotations

SATS_PER_BTC = 100_000_000

# Health check backoff: delay = min(1000 * 2^(attempt-1), 32000) ms
HEALTH_MAX_ATTEMPTS = 10
HEALTH_BASE_DELAY_MS = 1000
HEALTH_MAX_DELAY_MS = 32000

# Delay between UTXO scan progress polls
SCAN_POLL_INTERVAL = 5.0  # seconds

WS_NORMAL_CLOSURE = 1000
WS_NORMAL_CLOSURE_REASON = "Normal closure"

DEFAULT_CRYPTO_CODE = "BTC"

MEMPOOL_TX_URL = "https://mempool.space/tx/"
