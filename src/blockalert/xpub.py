"""
SLIP-132 extended public key conversion.

NBXplorer derivation schemes expect xpub/tpub version bytes and encode the
address type separately (e.g. `xpub...-[p2sh]`). Wallets often export
ypub/zpub (mainnet) or upub/vpub (testnet) instead; these helpers swap
the version bytes while keeping the key material.
"""

from __future__ import annotations

import base58

from blockalert.errors import ExtendedKeyError

VERSIONS: dict[str, bytes] = {
    "xpub": bytes.fromhex("0488b21e"),
    "ypub": bytes.fromhex("049d7cb2"),
    "zpub": bytes.fromhex("04b24746"),
    "tpub": bytes.fromhex("043587cf"),
    "upub": bytes.fromhex("044a5262"),
    "vpub": bytes.fromhex("045f1cf6"),
}

CONVERSIONS: dict[str, str] = {
    "ypub": "xpub",
    "zpub": "xpub",
    "upub": "tpub",
    "vpub": "tpub",
}


def get_prefix_type(version: bytes) -> str | None:
    for prefix, value in VERSIONS.items():
        if value == version:
            return prefix
    return None


def convert_extended_pubkey(extended_pubkey: str) -> str:
    """
    Convert a ypub/zpub/upub/vpub to the matching xpub/tpub.

    xpub and tpub keys are returned unchanged.

    Raises:
        ExtendedKeyError: If the key is not valid base58check or has an
            unknown version
    """
    try:
        decoded = base58.b58decode_check(extended_pubkey.strip())
    except ValueError as e:
        raise ExtendedKeyError(f"Invalid extended public key: {e}") from e

    prefix = get_prefix_type(decoded[:4])
    if prefix is None:
        raise ExtendedKeyError("Unknown extended public key version")

    target = CONVERSIONS.get(prefix)
    if target is None:
        return extended_pubkey.strip()

    return base58.b58encode_check(VERSIONS[target] + decoded[4:]).decode("ascii")
