"""
Helpers for the interactive `.env` setup (`block-alert init`).
"""

from __future__ import annotations

import os
import re
from pathlib import Path

URL_PATTERN = re.compile(r"^https?://[a-zA-Z0-9.-]+(:[0-9]+)?$")

SINGLE_KEY_PATTERN = re.compile(r"^(xpub|tpub)[a-zA-Z0-9]+(-\[(legacy|p2sh|taproot)\])?$")
MULTISIG_PATTERN = re.compile(
    r"^[0-9]+-of-(xpub|tpub)[a-zA-Z0-9]+(-(xpub|tpub)[a-zA-Z0-9]+)*(-\[(legacy|p2sh)\])?$"
)

# (address type, derivation scheme format)
DERIVATION_FORMATS = [
    ("P2WPKH", "xpub1"),
    ("P2SH-P2WPKH", "xpub1-[p2sh]"),
    ("P2PKH", "xpub-[legacy]"),
    ("Multi-sig P2WSH", "2-of-xpub1-xpub2"),
    ("Multi-sig P2SH-P2WSH", "2-of-xpub1-xpub2-[p2sh]"),
    ("Multi-sig P2SH", "2-of-xpub1-xpub2-[legacy]"),
    ("P2TR", "xpub1-[taproot]"),
]

# Menu label and interval in milliseconds, numbered from 1
REPORT_INTERVALS = [
    ("Every hour", 3_600_000),
    ("Every 2 hours", 7_200_000),
    ("Every 4 hours", 14_400_000),
    ("Every 6 hours", 21_600_000),
    ("Every 8 hours", 28_800_000),
    ("Every 12 hours", 43_200_000),
    ("Once a day", 86_400_000),
]


def is_valid_url(url: str) -> bool:
    return URL_PATTERN.match(url) is not None


def is_valid_derivation_scheme(scheme: str) -> bool:
    return (
        SINGLE_KEY_PATTERN.match(scheme) is not None
        or MULTISIG_PATTERN.match(scheme) is not None
    )


def parse_interval_choice(choice: str) -> int | None:
    """Interval in ms for a 1-based menu choice, or None if out of range."""
    choice = choice.strip()
    if not choice.isdigit():
        return None
    index = int(choice)
    if not 1 <= index <= len(REPORT_INTERVALS):
        return None
    return REPORT_INTERVALS[index - 1][1]


def format_derivation_table() -> str:
    width = max(len(address_type) for address_type, _ in DERIVATION_FORMATS)
    lines = [f"{'Address type':<{width}}  Format", "-" * (width + 2 + len("Format"))]
    lines.extend(f"{address_type:<{width}}  {fmt}" for address_type, fmt in DERIVATION_FORMATS)
    return "\n".join(lines)


def format_interval_menu() -> str:
    return "\n".join(f"{i}) {label}" for i, (label, _) in enumerate(REPORT_INTERVALS, start=1))


def render_env(
    nbxplorer_url: str,
    extended_pubkey: str,
    balance_report_interval_ms: int,
    ntfy_url: str,
    ntfy_topic: str,
    nbxplorer_cookie_path: str = "",
    ntfy_user: str = "",
    ntfy_password: str = "",
) -> str:
    """
    Render `.env` content for the given answers.

    Optional settings are written with an empty value, which the
    configuration loader treats as unset.
    """
    return (
        "# NBXplorer settings\n"
        f"NBXPLORER_URL={nbxplorer_url}\n"
        f"EXTENDED_PUBKEY={extended_pubkey}\n"
        f"BALANCE_REPORT_INTERVAL_MS={balance_report_interval_ms}\n"
        f"NBXPLORER_COOKIE_PATH={nbxplorer_cookie_path}\n"
        "\n"
        "# Ntfy settings\n"
        f"NTFY_URL={ntfy_url}\n"
        f"NTFY_TOPIC={ntfy_topic}\n"
        f"NTFY_USER={ntfy_user}\n"
        f"NTFY_PASSWORD={ntfy_password}\n"
    )


def write_env_file(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    os.chmod(path, 0o600)  # Restrict permissions
