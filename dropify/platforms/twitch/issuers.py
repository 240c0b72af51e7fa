# dropify/platforms/twitch/issuers.py
import logging
from typing import Protocol

from dropify.core.clients.backend import BackendClient
from dropify.core.clients.commerce import CommerceClient, make_discount_code
from dropify.core.constants import IssuerMode
from dropify.core.errors import UpstreamError
from dropify.core.models import DiscountResult, FailureReason

log = logging.getLogger(__name__)


class DiscountIssuer(Protocol):
    async def request_personal(
        self, channel: str, viewer_id: str, login: str, display_name: str
    ) -> DiscountResult: ...

    async def request_global(self, channel: str, percent: int) -> DiscountResult: ...


class BackendIssuer:
    """Lets the Dropify backend apply per-channel rules and talk to the store."""

    def __init__(self, backend: BackendClient):
        self.backend = backend

    async def request_personal(self, channel, viewer_id, login, display_name):
        return await self.backend.request_viewer_discount(channel, viewer_id, login, display_name)

    async def request_global(self, channel, percent):
        return await self.backend.request_global_drop(channel, percent)


class StoreIssuer:
    """Issues codes straight from the Shopify store, for single-store setups."""

    def __init__(self, commerce: CommerceClient):
        self.commerce = commerce

    async def request_personal(self, channel, viewer_id, login, display_name):
        try:
            issued = await self.commerce.issue_personal_discount(login)
        except UpstreamError as e:
            log.error("Store rejected personal discount for %s (HTTP %s): %s", login, e.status, e.body)
            return DiscountResult.failure(FailureReason.HTTP_ERROR)
        return DiscountResult.success(issued.code, raw=issued)

    async def request_global(self, channel, percent):
        code = make_discount_code(channel)
        try:
            record = await self.commerce.issue_global_drop(code, percent)
        except UpstreamError as e:
            log.error("Store rejected global drop for #%s (HTTP %s): %s", channel, e.status, e.body)
            return DiscountResult.failure(FailureReason.HTTP_ERROR)
        return DiscountResult.success(record.get("code", code), raw=record)


def build_issuer(mode: IssuerMode, backend: BackendClient) -> DiscountIssuer:
    if IssuerMode(mode) is IssuerMode.STORE:
        return StoreIssuer(CommerceClient())
    return BackendIssuer(backend)
