# dropify/core/logger.py

import json
import logging
import sys
import threading
import traceback
import urllib.request

from dropify.core.constants import BotConfig

# Discord caps message content at 2000 characters.
_MAX_CONTENT = 1900


class ErrorWebhookHandler(logging.Handler):
    """
    Forwards ERROR and CRITICAL records to a chat webhook (Discord-compatible).
    Posts from a daemon thread so the event loop is never blocked.
    close() waits briefly for posts still in flight, so a record logged just
    before exit is still delivered.
    """

    def __init__(self, webhook_url: str, bot_name: str):
        super().__init__(level=logging.ERROR)
        self.webhook_url = webhook_url
        self.bot_name = bot_name
        self._pending: list[threading.Thread] = []

    def emit(self, record: logging.LogRecord) -> None:
        thread = threading.Thread(target=self._post, args=(record,), daemon=True)
        self._pending = [t for t in self._pending if t.is_alive()]
        self._pending.append(thread)
        thread.start()

    def close(self) -> None:
        for thread in self._pending:
            thread.join(timeout=5)
        self._pending = []
        super().close()

    def format_content(self, record: logging.LogRecord) -> str:
        content = f"**[{self.bot_name}] {record.levelname}** `{record.name}`: {record.getMessage()}"
        if record.exc_info and record.exc_info[0] is not None:
            tb = "".join(traceback.format_exception(*record.exc_info))
            room = _MAX_CONTENT - len(content) - 20
            if room > 0:
                if len(tb) > room:
                    tb = "..." + tb[-room:]
                content += f"\n```python\n{tb}\n```"
        return content[:_MAX_CONTENT]

    def _post(self, record: logging.LogRecord) -> None:
        try:
            data = json.dumps({"content": self.format_content(record)}).encode("utf-8")
            req = urllib.request.Request(
                self.webhook_url,
                data=data,
                headers={
                    "Content-Type": "application/json",
                    "User-Agent": BotConfig.USER_AGENT,
                },
                method="POST",
            )
            with urllib.request.urlopen(req, timeout=5):
                pass
        except Exception:
            self.handleError(record)


def setup_logging(
    level=logging.INFO,
    webhook_url: str | None = None,
    bot_name: str = "dropify",
):
    """
    Configure the root logger once for the whole bot process.
    Call this at the start of the entry point, before the bot connects.
    """
    # Example: 2026-02-22 12:49:55 | INFO     | dropify.platforms.twitch.channel_sync | Joined #bob
    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Guard against duplicate handlers if called twice
    if not root_logger.handlers:
        root_logger.addHandler(console_handler)

    if webhook_url:
        root_logger.addHandler(ErrorWebhookHandler(webhook_url, bot_name))

    # Silence noisy third-party libraries
    logging.getLogger("twitchio.websockets").setLevel(logging.WARNING)
    logging.getLogger("twitchio.http").setLevel(logging.WARNING)
    logging.getLogger("aiohttp.access").setLevel(logging.WARNING)

    root_logger.info("Logging initialized.")
    return root_logger
