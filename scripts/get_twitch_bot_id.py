# scripts/get_twitch_bot_id.py
#
# Prints the numeric Twitch IDs needed in .env (TWITCH_BOT_ID, TWITCH_OWNER_ID).
#
# Usage:
#     python scripts/get_twitch_bot_id.py <bot_login> [owner_login]
import asyncio
import sys

import twitchio
from dropify.core.config import settings


async def main(bot_login: str, owner_login: str | None) -> None:
    client = twitchio.Client(
        client_id=settings.TWITCH_CLIENT_ID, client_secret=settings.TWITCH_CLIENT_SECRET
    )

    print("Connecting to Twitch API...")

    async with client:
        # Client Credentials Flow (App Access Token)
        await client.login()

        target_logins = [bot_login] + ([owner_login] if owner_login else [])
        print(f"Fetching IDs for: {target_logins}...")
        users = await client.fetch_users(logins=target_logins)

        print("-" * 40)
        found = set()
        for u in users:
            print(f"User: {u.name:<20} | ID: {u.id}")
            if u.name.lower() == bot_login.lower():
                print(f'-> Add to .env: TWITCH_BOT_ID="{u.id}"')
            elif owner_login and u.name.lower() == owner_login.lower():
                print(f'-> Add to .env: TWITCH_OWNER_ID="{u.id}"')
            found.add(u.name.lower())
        print("-" * 40)

        for login in target_logins:
            if login.lower() not in found:
                print(f"⚠️ Could not find user '{login}'. Check spelling.")


if __name__ == "__main__":
    if len(sys.argv) < 2:
        sys.exit("usage: get_twitch_bot_id.py <bot_login> [owner_login]")
    asyncio.run(main(sys.argv[1], sys.argv[2] if len(sys.argv) > 2 else None))
