"""
block-alert - Bitcoin wallet watcher

Follows an extended public key through NBXplorer and forwards transaction
and balance notifications to an ntfy topic.
"""

__version__ = "1.0.0"

from blockalert.analyze import analyze_transaction
from blockalert.errors import (
    BlockAlertError,
    CookieAuthError,
    ExtendedKeyError,
    HealthCheckError,
    NBXplorerError,
    NtfyError,
    ScanError,
)
from blockalert.events import EventBus, EventType
from blockalert.models import (
    ScanProgress,
    TransactionAnalysis,
    TransactionData,
    TransactionStatus,
    TransactionType,
    UtxoSnapshot,
)
from blockalert.nbxplorer import NBXplorerService
from blockalert.ntfy import NtfyService

__all__ = [
    "BlockAlertError",
    "CookieAuthError",
    "EventBus",
    "EventType",
    "ExtendedKeyError",
    "HealthCheckError",
    "NBXplorerError",
    "NBXplorerService",
    "NtfyError",
    "NtfyService",
    "ScanError",
    "ScanProgress",
    "TransactionAnalysis",
    "TransactionData",
    "TransactionStatus",
    "TransactionType",
    "UtxoSnapshot",
    "analyze_transaction",
]
