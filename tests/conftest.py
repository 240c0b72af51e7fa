# tests/conftest.py
#
# Module-level sys.modules patch runs during collection, before any test file
# imports dropify modules, so config.py never reads a real .env.
import sys
from unittest.mock import AsyncMock, MagicMock

import pytest

from dropify.core.constants import GlobalDropScope, IssuerMode

# ── Patch settings before any dropify import that reads them ─────────────────
_mock_settings = MagicMock()
_mock_settings.TWITCH_CLIENT_ID = "client-id"
_mock_settings.TWITCH_CLIENT_SECRET = "client-secret"
_mock_settings.TWITCH_BOT_ID = "12345"
_mock_settings.TWITCH_OWNER_ID = "67890"
_mock_settings.COMMAND_PREFIX = "!"
_mock_settings.OWNER_USERNAME = "owner"
_mock_settings.CHANNELS = ["bob"]
_mock_settings.BACKEND_BASE_URL = "http://backend.test"
_mock_settings.CHANNEL_SYNC_INTERVAL_SECONDS = 60.0
_mock_settings.HTTP_TIMEOUT_SECONDS = 10.0
_mock_settings.SHOPIFY_STORE_DOMAIN = "test-store.myshopify.com"
_mock_settings.SHOPIFY_ADMIN_TOKEN = "shpat_test"
_mock_settings.SHOPIFY_API_VERSION = "2025-01"
_mock_settings.ISSUER_MODE = IssuerMode.BACKEND
_mock_settings.GLOBAL_DROP_SCOPE = GlobalDropScope.PROCESS
_mock_settings.SENTRY_DSN = None
_mock_settings.BOT_LOGS_WEBHOOK_URL = None

_config_mod = MagicMock()
_config_mod.settings = _mock_settings
sys.modules["dropify.core.config"] = _config_mod

# ── Safe to import dropify after the patch ───────────────────────────────────
from dropify.platforms.twitch.dispatcher import CommandContext  # noqa: E402
from dropify.platforms.twitch.ledger import ClaimLedger  # noqa: E402


class FakeClock:
    """Stands in for time.monotonic; tests move it with advance()."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def mock_settings():
    return _mock_settings


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def ledger(clock):
    return ClaimLedger(clock=clock)


@pytest.fixture
def make_ctx():
    """Builds a CommandContext whose replies are collected on ctx.reply."""

    def _make(
        login="alice",
        channel="bob",
        user_id=None,
        display_name=None,
        is_broadcaster=False,
        args=None,
    ):
        return CommandContext(
            channel=channel,
            user_id=user_id or f"id-{login}",
            login=login,
            display_name=display_name or login,
            reply=AsyncMock(),
            is_broadcaster=is_broadcaster,
            args=list(args or []),
        )

    return _make
