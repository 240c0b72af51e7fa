# dropify/platforms/twitch/main.py
import logging
import twitchio
from twitchio import eventsub
from twitchio.ext import commands

import sentry_sdk
from dropify.core.config import settings
from dropify.core.logger import setup_logging
from dropify.core.clients.backend import BackendClient
from dropify.platforms.twitch.channel_sync import ChannelSynchronizer
from dropify.platforms.twitch.components.commands import DropCommands
from dropify.platforms.twitch.issuers import build_issuer
from dropify.platforms.twitch.ledger import ClaimLedger

if settings.SENTRY_DSN:
    sentry_sdk.init(dsn=settings.SENTRY_DSN)

setup_logging(webhook_url=settings.BOT_LOGS_WEBHOOK_URL, bot_name="dropify")
log = logging.getLogger(__name__)


class DropifyBot(commands.Bot):
    def __init__(self):
        super().__init__(
            client_id=settings.TWITCH_CLIENT_ID,
            client_secret=settings.TWITCH_CLIENT_SECRET,
            bot_id=settings.TWITCH_BOT_ID,
            owner_id=settings.TWITCH_OWNER_ID,
            prefix=settings.COMMAND_PREFIX,
        )
        self.backend = BackendClient()
        self.ledger = ClaimLedger(global_drop_scope=settings.GLOBAL_DROP_SCOPE)
        self.issuer = build_issuer(settings.ISSUER_MODE, self.backend)
        self.synchronizer = ChannelSynchronizer(
            self.backend,
            self.join_channel,
            initial_channels=settings.CHANNELS,
            interval_seconds=settings.CHANNEL_SYNC_INTERVAL_SECONDS,
        )

    async def setup_hook(self) -> None:
        await self.add_component(
            DropCommands(
                self,
                self.ledger,
                self.issuer,
                self.synchronizer,
                prefix=settings.COMMAND_PREFIX,
                owner_username=settings.OWNER_USERNAME,
            )
        )

    async def event_ready(self) -> None:
        log.info("-" * 40)
        log.info("Dropify Bot is ONLINE!")
        log.info(f"Using Bot ID:       {self.bot_id}")
        log.info(f"Issuing through:    {settings.ISSUER_MODE.value}")
        log.info(f"Global drop scope:  {settings.GLOBAL_DROP_SCOPE.value}")
        log.info("-" * 40)
        self.synchronizer.start()
        log.info(
            "Channel sync polling every %.0fs.", settings.CHANNEL_SYNC_INTERVAL_SECONDS
        )

    async def event_message(self, payload: twitchio.ChatMessage) -> None:
        # Commands are parsed by DropCommands; twitchio's own parser stays unused.
        return

    async def event_oauth_authorized(
        self, payload: twitchio.authentication.UserTokenPayload
    ) -> None:
        """Called on first-time OAuth. Saves the token so chat subscriptions work."""
        await self.add_token(payload.access_token, payload.refresh_token)
        log.info(f"✅ Authorization successful for User ID: {payload.user_id}! Tokens saved.")

        # Joins attempted before the token existed failed; retry them now.
        try:
            await self.synchronizer.join_static()
            await self.synchronizer.sync_once()
        except Exception:
            log.error("Channel join after authorization failed", exc_info=True)

    async def join_channel(self, login: str) -> None:
        """Subscribe to a channel's chat. Raises if the channel does not exist."""
        users = await self.fetch_users(logins=[login])
        if not users:
            raise LookupError(f"Twitch user '{login}' not found")

        chat_sub = eventsub.ChatMessageSubscription(
            broadcaster_user_id=users[0].id,
            user_id=settings.TWITCH_BOT_ID,
        )
        await self.subscribe_websocket(payload=chat_sub)
        log.info("Subscribed to chat in #%s.", login)

    async def close(self, **options) -> None:
        self.synchronizer.stop()
        await super().close(**options)


def main() -> None:
    bot = DropifyBot()
    bot.run()


if __name__ == "__main__":
    main()
