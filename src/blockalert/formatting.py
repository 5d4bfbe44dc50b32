"""
Human-readable notification bodies.
"""

from __future__ import annotations

from datetime import datetime

from blockalert.constants import SATS_PER_BTC
from blockalert.models import (
    TransactionAnalysis,
    TransactionStatus,
    TransactionType,
    UtxoSnapshot,
)

TYPE_EMOJI = {
    TransactionType.RECEIVED: "💵",
    TransactionType.SENT: "💸",
    TransactionType.UNKNOWN: "❓",
}

STATUS_EMOJI = {
    TransactionStatus.CONFIRMED: "✅",
    TransactionStatus.UNCONFIRMED: "⏳",
}


def convert_unix_timestamp(timestamp: int) -> str:
    """Local time as `YYYY/M/D HH:MM` (month and day not zero-padded)."""
    dt = datetime.fromtimestamp(timestamp)
    return f"{dt.year}/{dt.month}/{dt.day} {dt.hour:02d}:{dt.minute:02d}"


def shorten(text: str, head: int, tail: int) -> str:
    return f"{text[:head]}...{text[-tail:]}"


def btc_string(amount: float) -> str:
    """Plain decimal BTC amount with trailing zeros removed (0.00001, not 1e-05)."""
    text = f"{amount:.8f}".rstrip("0").rstrip(".")
    return text or "0"


def format_btc(sats: int) -> str:
    return btc_string(sats / SATS_PER_BTC)


def format_transaction(analysis: TransactionAnalysis) -> str:
    amount = f"{btc_string(abs(analysis.amount))} BTC"
    if analysis.type == TransactionType.SENT:
        amount += " (fees included)"

    lines = [
        f"📝 TXID: {shorten(analysis.txid, 10, 10)}",
        f"├─ {STATUS_EMOJI[analysis.status]} Status: {analysis.status.value}",
        f"├─ {TYPE_EMOJI[analysis.type]} Type: {analysis.type.value}",
        f"├─ 💰 Amount: {amount}",
        f"├─ 🕒 Timestamp: {convert_unix_timestamp(analysis.timestamp)}",
        f"└─ 🔑 XPUB: {shorten(analysis.xpub, 10, 8)}",
    ]
    return "\n".join(lines)


def format_utxos(snapshot: UtxoSnapshot) -> str:
    """
    Balance report grouped by address.

    A UTXO with zero confirmations counts as unconfirmed even when NBXplorer
    lists it in the confirmed set.
    """
    balances: dict[str, dict[str, int]] = {}
    for utxo in snapshot.all_utxos():
        entry = balances.setdefault(utxo.address, {"unconfirmed": 0, "confirmed": 0})
        if utxo.confirmations == 0:
            entry["unconfirmed"] += utxo.value
        else:
            entry["confirmed"] += utxo.value

    total_unconfirmed = sum(b["unconfirmed"] for b in balances.values())
    total_confirmed = sum(b["confirmed"] for b in balances.values())

    message = "🔍 Balance Report\n\n"
    message += f"🔑 {shorten(snapshot.derivation_strategy, 10, 8)}\n"

    addresses = list(balances)
    for i, address in enumerate(addresses):
        is_last = i == len(addresses) - 1
        branch = "└" if is_last else "├"
        rail = " " if is_last else "│"
        entry = balances[address]
        message += f" │\n {branch}─📌 {shorten(address, 8, 8)}\n"
        message += f" {rail}  ├─ Unconfirmed: {format_btc(entry['unconfirmed'])} BTC\n"
        message += f" {rail}  └─ Confirmed: {format_btc(entry['confirmed'])} BTC\n"

    message += f" │\n ├─ ⏳ Total Unconfirmed: {format_btc(total_unconfirmed)} BTC\n"
    message += f" └─ ✅ Total Confirmed: {format_btc(total_confirmed)} BTC\n\n"
    return message
