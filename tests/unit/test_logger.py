# tests/unit/test_logger.py
import json
import logging
import sys
from unittest.mock import MagicMock, patch

from dropify.core.logger import ErrorWebhookHandler


def _record(msg="Command !drop failed", exc_info=None):
    return logging.LogRecord(
        name="dropify.platforms.twitch.dispatcher",
        level=logging.ERROR,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )


def test_handler_only_takes_errors():
    handler = ErrorWebhookHandler("https://hooks.test/x", "dropify")
    assert handler.level == logging.ERROR


def test_content_includes_bot_name_and_logger():
    handler = ErrorWebhookHandler("https://hooks.test/x", "dropify")
    content = handler.format_content(_record())
    assert content.startswith("**[dropify] ERROR**")
    assert "dropify.platforms.twitch.dispatcher" in content
    assert "Command !drop failed" in content


def test_content_truncates_long_tracebacks():
    handler = ErrorWebhookHandler("https://hooks.test/x", "dropify")
    try:
        raise RuntimeError("x" * 5000)
    except RuntimeError:
        content = handler.format_content(_record(exc_info=sys.exc_info()))
    assert len(content) <= 1900
    assert "```python" in content


def test_post_sends_json_content():
    handler = ErrorWebhookHandler("https://hooks.test/x", "dropify")
    with patch("dropify.core.logger.urllib.request.urlopen", MagicMock()) as urlopen:
        handler._post(_record())

    req = urlopen.call_args.args[0]
    assert req.full_url == "https://hooks.test/x"
    assert "Command !drop failed" in json.loads(req.data)["content"]


def test_close_waits_for_posts_in_flight():
    handler = ErrorWebhookHandler("https://hooks.test/x", "dropify")
    thread = MagicMock()
    thread.is_alive.return_value = True

    with patch("dropify.core.logger.threading.Thread", return_value=thread):
        handler.emit(_record())
    handler.close()

    thread.start.assert_called_once()
    thread.join.assert_called_once_with(timeout=5)
