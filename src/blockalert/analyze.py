"""
Transaction classification for notifications.
"""

from __future__ import annotations

from blockalert.constants import SATS_PER_BTC
from blockalert.models import (
    TransactionAnalysis,
    TransactionData,
    TransactionStatus,
    TransactionType,
)


def analyze_transaction(tx: TransactionData, derivation_strategy: str) -> TransactionAnalysis:
    """
    Classify a wallet transaction by the sign of its balance change.

    Args:
        tx: Transaction detail from NBXplorer
        derivation_strategy: Tracked derivation scheme the transaction belongs to

    Returns:
        Notification-ready analysis. Amount is in BTC and keeps the sign of
        the balance change.
    """
    if tx.balance_change > 0:
        tx_type = TransactionType.RECEIVED
    elif tx.balance_change < 0:
        tx_type = TransactionType.SENT
    else:
        tx_type = TransactionType.UNKNOWN

    return TransactionAnalysis(
        xpub=derivation_strategy,
        type=tx_type,
        amount=tx.balance_change / SATS_PER_BTC,
        status=TransactionStatus.CONFIRMED
        if tx.confirmations > 0
        else TransactionStatus.UNCONFIRMED,
        txid=tx.transaction_id,
        timestamp=tx.timestamp,
    )
