# dropify/core/clients/commerce.py
import asyncio
import logging
import random
import time
from datetime import datetime, timezone, timedelta

import aiohttp

from dropify.core.config import settings
from dropify.core.constants import DiscountConfig, ShopifyConfig
from dropify.core.errors import UpstreamError
from dropify.core.models import IssuedDiscount

log = logging.getLogger(__name__)


def _require(data, key: str, what: str):
    """data[key], or UpstreamError when a 2xx body lacks it."""
    try:
        return data[key]
    except (KeyError, TypeError) as e:
        raise UpstreamError(f"Shopify response had no {key} for {what}", body=str(data)) from e


def make_discount_code(name: str) -> str:
    """DROP-<NAME>-<4 digits>. Not checked against existing codes."""
    suffix = random.randint(DiscountConfig.CODE_SUFFIX_MIN, DiscountConfig.CODE_SUFFIX_MAX)
    return f"{DiscountConfig.CODE_PREFIX}-{name.upper()}-{suffix}"


class CommerceClient:
    """
    Creates time-boxed percentage discounts through the Shopify Admin REST API.

    Every discount is two calls: a price rule, then a code bound to it. If the
    second call fails the price rule is left behind; nothing cleans it up.
    """

    def __init__(
        self,
        store_domain: str | None = None,
        admin_token: str | None = None,
        api_version: str | None = None,
        timeout_seconds: float | None = None,
    ):
        self.store_domain = store_domain or settings.SHOPIFY_STORE_DOMAIN
        self.admin_token = admin_token or settings.SHOPIFY_ADMIN_TOKEN
        self.api_version = api_version or settings.SHOPIFY_API_VERSION
        self.timeout = aiohttp.ClientTimeout(
            total=timeout_seconds or settings.HTTP_TIMEOUT_SECONDS
        )
        self.base_url = ShopifyConfig.BASE_URL.format(
            domain=self.store_domain, version=self.api_version
        )

    def _headers(self) -> dict:
        return {
            ShopifyConfig.TOKEN_HEADER: self.admin_token,
            "Content-Type": "application/json",
        }

    async def _post(self, path: str, body: dict) -> dict:
        url = f"{self.base_url}/{path}"
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as http:
                async with http.post(url, json=body, headers=self._headers()) as resp:
                    if not 200 <= resp.status < 300:
                        text = await resp.text()
                        raise UpstreamError(
                            f"Shopify returned HTTP {resp.status} for {path}",
                            status=resp.status,
                            body=text,
                        )
                    return await resp.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise UpstreamError(f"Could not reach Shopify for {path}: {e}") from e
        except ValueError as e:
            raise UpstreamError(f"Shopify returned invalid JSON for {path}") from e

    async def create_price_rule(
        self, title: str, percent: int, usage_limit: int | None
    ) -> dict:
        """POST price_rules.json. Valid from just before now until the code lifetime ends."""
        now = datetime.now(timezone.utc)
        body = {
            "price_rule": {
                "title": title,
                "target_type": "line_item",
                "target_selection": "all",
                "allocation_method": "across",
                "value_type": "percentage",
                "value": f"-{percent}.0",
                "customer_selection": "all",
                "once_per_customer": False,
                "usage_limit": usage_limit,
                "starts_at": (now - timedelta(seconds=DiscountConfig.START_SKEW_SECONDS)).isoformat(),
                "ends_at": (now + timedelta(seconds=DiscountConfig.LIFETIME_SECONDS)).isoformat(),
            }
        }
        data = await self._post("price_rules.json", body)
        return _require(data, "price_rule", "price_rules.json")

    async def create_discount_code(self, price_rule_id: int | str, code: str) -> dict:
        data = await self._post(
            f"price_rules/{price_rule_id}/discount_codes.json",
            {"discount_code": {"code": code}},
        )
        return _require(data, "discount_code", "discount_codes.json")

    async def issue_personal_discount(self, username: str) -> IssuedDiscount:
        """Single-use personal code at the standard viewer percentage."""
        rule = await self.create_price_rule(
            title=f"Dropify Auto Rule {int(time.time() * 1000)}",
            percent=DiscountConfig.PERSONAL_PERCENT,
            usage_limit=1,
        )
        rule_id = _require(rule, "id", "price rule")
        code = make_discount_code(username)
        record = await self.create_discount_code(rule_id, code)
        log.info("Issued personal discount %s (price rule %s)", code, rule_id)
        return IssuedDiscount(
            code=code,
            url=ShopifyConfig.DISCOUNT_URL.format(domain=self.store_domain, code=code),
            id=_require(record, "id", "discount code"),
        )

    async def issue_global_drop(self, code: str, percent: int) -> dict:
        """Unlimited-use code at the streamer's chosen percentage."""
        rule = await self.create_price_rule(
            title=f"Dropify Global Drop {code}",
            percent=percent,
            usage_limit=None,
        )
        rule_id = _require(rule, "id", "price rule")
        record = await self.create_discount_code(rule_id, code)
        log.info("Issued global drop %s at %d%% (price rule %s)", code, percent, rule_id)
        return record

    async def list_products(self, limit: int = 1) -> list[dict]:
        """Read-only credentials check used by scripts/check_store.py."""
        url = f"{self.base_url}/products.json?limit={limit}"
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as http:
                async with http.get(url, headers=self._headers()) as resp:
                    if resp.status != 200:
                        raise UpstreamError(
                            f"Shopify returned HTTP {resp.status} for products.json",
                            status=resp.status,
                            body=await resp.text(),
                        )
                    data = await resp.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise UpstreamError(f"Could not reach Shopify: {e}") from e
        return data.get("products", [])
