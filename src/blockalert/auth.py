"""
HTTP Basic-Auth helpers for NBXplorer and ntfy.
"""

from __future__ import annotations

import base64
from pathlib import Path

from blockalert.errors import CookieAuthError


def basic_auth_header(username: str, password: str) -> dict[str, str]:
    token = base64.b64encode(f"{username}:{password}".encode()).decode("ascii")
    return {"Authorization": f"Basic {token}"}


def basic_auth(username: str | None, password: str | None) -> tuple[str, str] | None:
    """httpx `auth` value: the credential pair when both are set, otherwise None."""
    if username and password:
        return username, password
    return None


def auth_headers(username: str | None, password: str | None) -> dict[str, str]:
    """Authorization header when both credentials are set, otherwise an empty dict."""
    if username and password:
        return basic_auth_header(username, password)
    return {}


def read_cookie_auth(cookie_path: str | Path) -> tuple[str, str]:
    """
    Read NBXplorer's auth cookie.

    NBXplorer writes a `.cookie` file holding `username:password` when it
    runs with cookie authentication enabled.

    Raises:
        CookieAuthError: If the file does not exist, cannot be read or is malformed
    """
    path = Path(cookie_path)
    if not path.is_file():
        raise CookieAuthError(f"Cookie file not found at path: {path}")

    try:
        content = path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as e:
        raise CookieAuthError(f"Failed to read cookie file {path}: {e}") from e
    username, _, password = content.partition(":")

    if not username or not password:
        raise CookieAuthError(f"Invalid cookie format in file: {path}")

    return username, password
