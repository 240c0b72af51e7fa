"""
Checks that the Shopify store credentials in .env work.

Lists one product (read-only). With --create it also issues a real 10%
single-use personal code through the same path the bot uses, so only run
that against a test store.

Usage:
    python scripts/check_store.py [--create]
"""

import asyncio
import sys

from dropify.core.clients.commerce import CommerceClient
from dropify.core.config import settings
from dropify.core.errors import UpstreamError


async def main(create: bool) -> int:
    if not settings.SHOPIFY_STORE_DOMAIN or not settings.SHOPIFY_ADMIN_TOKEN:
        print("❌ Missing SHOPIFY_STORE_DOMAIN or SHOPIFY_ADMIN_TOKEN in .env")
        return 1

    client = CommerceClient()
    print(f"--- Store check: {settings.SHOPIFY_STORE_DOMAIN} (API {client.api_version}) ---")

    try:
        products = await client.list_products(limit=1)
        print(f"[products] OK — {len(products)} product(s) returned")
        if products:
            print(f"[products] first: {products[0].get('title')}")

        if create:
            issued = await client.issue_personal_discount("storecheck")
            print(f"[discount] OK — {issued.code} → {issued.url}")
    except UpstreamError as e:
        print(f"[store] FAILED — HTTP {e.status}: {e.body or e}")
        return 1

    print("--- Done ---")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main("--create" in sys.argv[1:])))
