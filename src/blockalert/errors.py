"""
Exception hierarchy for block-alert.
"""

from __future__ import annotations


class BlockAlertError(Exception):
    """Base class for block-alert errors."""


class HealthCheckError(BlockAlertError):
    """Raised when a service stays unhealthy after the maximum number of attempts."""


class NBXplorerError(BlockAlertError):
    """Error raised by NBXplorerService operations."""


class ScanError(NBXplorerError):
    """UTXO scan reported an error or returned a malformed status."""


class NtfyError(BlockAlertError):
    """Error raised by NtfyService operations."""


class CookieAuthError(BlockAlertError):
    """NBXplorer cookie file is missing or malformed."""


class ExtendedKeyError(BlockAlertError):
    """Extended public key could not be decoded or converted."""
