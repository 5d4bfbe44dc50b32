"""
Configuration management using pydantic-settings.
"""

from __future__ import annotations

from pathlib import Path

from loguru import logger
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from blockalert.auth import read_cookie_auth
from blockalert.constants import DEFAULT_CRYPTO_CODE
from blockalert.errors import CookieAuthError


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_ignore_empty=True,
    )

    nbxplorer_url: str
    crypto_code: str = DEFAULT_CRYPTO_CODE
    extended_pubkey: str
    balance_report_interval_ms: int = Field(..., gt=0)
    # NBXplorer writes user:password here when cookie auth is enabled
    nbxplorer_cookie_path: Path | None = None

    ntfy_url: str
    ntfy_topic: str
    ntfy_user: str | None = None
    ntfy_password: str | None = None

    log_level: str = "INFO"

    def nbxplorer_credentials(self) -> tuple[str | None, str | None]:
        """
        Credentials from the NBXplorer cookie file.

        An unreadable cookie is logged and treated as no authentication.
        """
        if not self.nbxplorer_cookie_path:
            return None, None
        try:
            return read_cookie_auth(self.nbxplorer_cookie_path)
        except CookieAuthError as e:
            logger.error(f"Failed to parse NBXplorer cookie: {e}")
            return None, None


def get_settings(env_file: str | Path | None = None) -> Settings:
    if env_file is not None:
        return Settings(_env_file=env_file)  # type: ignore[call-arg]
    return Settings()  # type: ignore[call-arg]
