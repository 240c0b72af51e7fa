# dropify/core/config.py

import logging
import os
import pathlib
from typing import Annotated

from pydantic import ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from dropify.core.constants import GlobalDropScope, IssuerMode
from dropify.core.logger import setup_logging

# Project root is 3 levels up from this file (dropify/core/config.py).
_PROJECT_ROOT = pathlib.Path(__file__).resolve().parent.parent.parent
_ENV_PATH_FILE = _PROJECT_ROOT / ".env.path"


def _resolve_env_file() -> pathlib.Path:
    """
    Use the .env file named in .env.path when present, otherwise the
    project's own .env. A missing .env is fine; the process environment
    is always read as well.
    """
    if not _ENV_PATH_FILE.exists():
        return _PROJECT_ROOT / ".env"

    env_file = pathlib.Path(_ENV_PATH_FILE.read_text().strip())
    if not env_file.exists():
        raise FileNotFoundError(
            f".env file not found at '{env_file}' (read from {_ENV_PATH_FILE}). "
            "Check that the path in .env.path is correct."
        )
    return env_file


class Settings(BaseSettings):
    """
    Manages all application settings.
    Missing Twitch credentials fail validation, which is fatal at startup.
    """

    model_config = SettingsConfigDict(
        env_file_encoding="utf-8", extra="ignore"
    )

    # Twitch Bot Settings
    TWITCH_CLIENT_ID: str
    TWITCH_CLIENT_SECRET: str
    TWITCH_BOT_ID: str
    TWITCH_OWNER_ID: str | None = None

    # Chat behaviour
    COMMAND_PREFIX: str = "!"
    OWNER_USERNAME: str = ""

    # Static channels (comma-separated), joined before the first backend sync
    CHANNELS: Annotated[list[str], NoDecode] = []

    # Dropify backend
    BACKEND_BASE_URL: str = "http://localhost:4000"
    CHANNEL_SYNC_INTERVAL_SECONDS: float = 60.0
    HTTP_TIMEOUT_SECONDS: float = 10.0

    # Shopify store (only required when ISSUER_MODE=store)
    SHOPIFY_STORE_DOMAIN: str | None = None
    SHOPIFY_ADMIN_TOKEN: str | None = None
    SHOPIFY_API_VERSION: str = "2025-01"

    ISSUER_MODE: IssuerMode = IssuerMode.BACKEND
    GLOBAL_DROP_SCOPE: GlobalDropScope = GlobalDropScope.PROCESS

    # Observability (optional)
    SENTRY_DSN: str | None = None
    BOT_LOGS_WEBHOOK_URL: str | None = None

    @field_validator("CHANNELS", mode="before")
    @classmethod
    def _split_channels(cls, value):
        if isinstance(value, str):
            return value.split(",")
        return value

    @model_validator(mode="after")
    def _normalize(self):
        self.CHANNELS = [
            c.strip().lstrip("#").lower() for c in self.CHANNELS if c.strip().lstrip("#")
        ]
        self.BACKEND_BASE_URL = self.BACKEND_BASE_URL.rstrip("/")
        if self.ISSUER_MODE is IssuerMode.STORE and not (
            self.SHOPIFY_STORE_DOMAIN and self.SHOPIFY_ADMIN_TOKEN
        ):
            raise ValueError(
                "ISSUER_MODE=store requires SHOPIFY_STORE_DOMAIN and SHOPIFY_ADMIN_TOKEN."
            )
        return self


# Create a single, importable instance of our settings.
# This instance will be created only once when the module is first imported.
try:
    settings = Settings(_env_file=str(_resolve_env_file()))
except ValidationError as e:
    # Exit before any chat connection is attempted. Settings never loaded, so
    # the webhook URL is read straight from the environment.
    setup_logging(webhook_url=os.getenv("BOT_LOGS_WEBHOOK_URL"), bot_name="dropify")
    logging.getLogger(__name__).critical(
        "Missing or invalid configuration. Check your .env\n%s", e
    )
    raise SystemExit(1)
