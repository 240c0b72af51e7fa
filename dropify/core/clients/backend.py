# dropify/core/clients/backend.py
import asyncio
import logging
from urllib.parse import quote

import aiohttp

from dropify.core.config import settings
from dropify.core.constants import BackendRoutes
from dropify.core.models import DiscountResult, FailureReason

log = logging.getLogger(__name__)


class BackendClient:
    """
    Talks to the Dropify backend: viewer discounts, global drops and the
    roster of channels the bot should sit in.

    Expected failures come back as a DiscountResult; nothing here raises
    for a bad status or an unreachable backend.
    """

    def __init__(self, base_url: str | None = None, timeout_seconds: float | None = None):
        self.base_url = (base_url or settings.BACKEND_BASE_URL).rstrip("/")
        self.timeout = aiohttp.ClientTimeout(
            total=timeout_seconds or settings.HTTP_TIMEOUT_SECONDS
        )

    async def _call(self, method: str, path: str, body: dict | None = None) -> dict:
        """
        Returns the decoded JSON object whatever the status code.
        A body that is not a JSON object is reported as an http_error payload.
        """
        url = f"{self.base_url}{path}"
        async with aiohttp.ClientSession(timeout=self.timeout) as http:
            async with http.request(
                method, url, json=body, headers={"Content-Type": "application/json"}
            ) as resp:
                try:
                    data = await resp.json(content_type=None)
                except ValueError:
                    data = None
                if isinstance(data, dict):
                    return data
                return {
                    "ok": False,
                    "reason": FailureReason.HTTP_ERROR.value,
                    "error": f"Backend returned HTTP {resp.status}",
                    "status": resp.status,
                }

    async def request_viewer_discount(
        self, channel: str, viewer_id: str, login: str, display_name: str
    ) -> DiscountResult:
        path = BackendRoutes.VIEWER_DISCOUNT.format(channel=quote(channel.lower(), safe=""))
        body = {
            "viewerId": viewer_id,
            "viewerLogin": login,
            "viewerDisplayName": display_name,
        }
        try:
            data = await self._call("POST", path, body)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            log.warning("Backend unreachable requesting discount for %s in #%s: %s", login, channel, e)
            return DiscountResult.failure(FailureReason.NETWORK_ERROR, str(e))
        return DiscountResult.from_payload(data)

    async def request_global_drop(self, channel: str, percent: int) -> DiscountResult:
        path = BackendRoutes.GLOBAL_DROP.format(channel=quote(channel.lower(), safe=""))
        try:
            data = await self._call("POST", path, {"percent": percent})
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            log.warning("Backend unreachable creating global drop for #%s: %s", channel, e)
            return DiscountResult.failure(FailureReason.NETWORK_ERROR, str(e))

        drop = data.get("drop") if isinstance(data.get("drop"), dict) else {}
        return DiscountResult.from_payload(data, code=drop.get("code"))

    async def fetch_active_channels(self) -> list[str]:
        """
        Channel logins the backend wants the bot in, trimmed and lower-cased.
        Returns an empty list on any error or unexpected payload.
        """
        try:
            data = await self._call("GET", BackendRoutes.ACTIVE_STREAMERS)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            log.error("Error talking to backend for channel roster: %s", e)
            return []

        channels = data.get("channels")
        if data.get("ok") is not True or not isinstance(channels, list):
            log.warning("Unexpected roster response from backend: %s", data)
            return []

        return [str(c or "").strip().lower() for c in channels if str(c or "").strip()]
