# dropify/platforms/twitch/components/commands.py
import logging

import twitchio
from twitchio.ext import commands

from dropify.core.config import settings
from dropify.core.constants import BotConfig, CommandCooldowns, DiscountConfig
from dropify.core.models import ClaimedDiscount, DiscountResult, FailureReason
from dropify.platforms.twitch.channel_sync import ChannelSynchronizer
from dropify.platforms.twitch.dispatcher import Command, CommandContext, CommandDispatcher
from dropify.platforms.twitch.issuers import DiscountIssuer
from dropify.platforms.twitch.ledger import ClaimLedger

log = logging.getLogger(__name__)

_BRAND = BotConfig.BRAND
_UNCLASSIFIED = (
    FailureReason.UNKNOWN,
    FailureReason.HTTP_ERROR,
    FailureReason.NETWORK_ERROR,
    FailureReason.BAD_RESPONSE,
)


def discount_failure_message(
    name: str, result: DiscountResult, existing: ClaimedDiscount | None = None
) -> str:
    """Chat reply for a personal discount the backend or store refused."""
    if result.reason is FailureReason.PLAN_LIMIT and result.message:
        return f"@{name} {result.message}"

    reason = result.reason
    if reason is FailureReason.DISABLED:
        return f"@{name} {_BRAND} discounts are currently disabled for this channel."
    if reason is FailureReason.NOT_CONNECTED:
        return f"@{name} {_BRAND} is not fully connected to Shopify yet."
    if reason is FailureReason.COOLDOWN:
        wait = result.retry_after_seconds or DiscountConfig.DEFAULT_RETRY_AFTER_SECONDS
        return f"@{name} {_BRAND} is on cooldown, try again in about {wait} seconds."
    if reason is FailureReason.LIMIT_REACHED:
        if existing:
            return f"🎁 @{name} you already claimed a discount this stream: {existing.code}"
        return f"@{name} you've already redeemed your discount for this stream 🙌"
    if reason is FailureReason.NOT_FOUND:
        return f"@{name} this channel isn't registered with {_BRAND} yet."
    if reason is FailureReason.BAD_RESPONSE:
        return f"@{name} the {_BRAND} API didn't respond correctly."
    return f"@{name} something went wrong while generating your discount."


def drop_failure_message(name: str, result: DiscountResult) -> str:
    if result.reason is FailureReason.PLAN_LIMIT and result.message:
        return f"@{name} {result.message}"
    if result.error:
        return f"@{name} {result.error}"
    return f"@{name} could not create a global drop (Shopify not configured?)."


def parse_drop_percent(args: list[str]) -> int | None:
    """The !drop percentage, or None when missing, non-numeric or out of range."""
    if not args:
        return None
    try:
        percent = int(args[0])
    except ValueError:
        return None
    if not DiscountConfig.MIN_DROP_PERCENT <= percent <= DiscountConfig.MAX_DROP_PERCENT:
        return None
    return percent


class DropCommands(commands.Component):
    """
    Routes chat through the CommandDispatcher and holds the discount commands.

    !ping, !help, !discount, !drop <1-50>, !reload
    """

    def __init__(
        self,
        bot: commands.Bot,
        ledger: ClaimLedger,
        issuer: DiscountIssuer,
        synchronizer: ChannelSynchronizer,
        prefix: str = "!",
        owner_username: str = "",
    ):
        self.bot = bot
        self.ledger = ledger
        self.issuer = issuer
        self.synchronizer = synchronizer
        self.owner_username = owner_username.lower()
        self.dispatcher = CommandDispatcher(ledger, prefix=prefix)

        for command in (
            Command("ping", "Check if the bot is alive.", self.ping_command, CommandCooldowns.PING),
            Command("help", "Show available commands.", self.help_command, CommandCooldowns.HELP),
            Command(
                "discount",
                "Get a personal discount code.",
                self.discount_command,
                CommandCooldowns.DISCOUNT,
                manages_cooldown=True,
            ),
            Command(
                "drop",
                "Create a global stream-wide discount (streamer only).",
                self.drop_command,
                CommandCooldowns.DROP,
            ),
            Command("reload", "Re-sync the channel list (owner only).", self.reload_command),
        ):
            self.dispatcher.register(command)

    @property
    def prefix(self) -> str:
        return self.dispatcher.prefix

    @commands.Component.listener()
    async def event_message(self, payload: twitchio.ChatMessage) -> None:
        if payload.chatter.id == settings.TWITCH_BOT_ID:
            return
        channel = payload.broadcaster.name.lower()
        log.info(f"[#{channel}] {payload.chatter.display_name or payload.chatter.name}: {payload.text}")

        async def reply(text: str) -> None:
            await payload.broadcaster.send_message(sender=self.bot.bot_id, message=text)

        login = payload.chatter.name.lower()
        ctx = CommandContext(
            channel=channel,
            user_id=str(payload.chatter.id or login),
            login=login,
            display_name=payload.chatter.display_name or payload.chatter.name,
            reply=reply,
            is_broadcaster=bool(payload.chatter.broadcaster),
        )
        try:
            await self.dispatcher.dispatch(payload.text, ctx)
        except Exception:
            log.error("Failed to answer chat command in #%s", channel, exc_info=True)

    # ------------------------------------------------------------------
    # !ping / !help
    # ------------------------------------------------------------------

    async def ping_command(self, ctx: CommandContext):
        await ctx.reply(f"Pong! 🏓 @{ctx.name}")

    async def help_command(self, ctx: CommandContext):
        listing = ", ".join(f"{self.prefix}{name}" for name in self.dispatcher.commands)
        await ctx.reply(f"@{ctx.name} Available commands: {listing}")

    # ------------------------------------------------------------------
    # !discount
    # ------------------------------------------------------------------

    async def discount_command(self, ctx: CommandContext):
        """
        !discount — personal single-use code for the viewer.

        The cooldown is committed only once a code was actually issued.
        """
        remaining = self.ledger.remaining_cooldown("discount", ctx.user_id)
        if remaining > 0:
            await ctx.reply(f"@{ctx.name} wait {remaining}s before requesting another code.")
            return False

        result = await self.issuer.request_personal(
            ctx.channel, ctx.user_id, ctx.login, ctx.name
        )

        if not result.ok:
            if result.reason in _UNCLASSIFIED:
                log.error("Viewer discount failed in #%s: %s", ctx.channel, result.raw or result)
            existing = None
            if result.reason is FailureReason.LIMIT_REACHED:
                existing = self.ledger.get_active_claim(ctx.channel, ctx.user_id)
            await ctx.reply(discount_failure_message(ctx.name, result, existing))
            return False

        code = result.discount_code
        self.ledger.record_claim(ctx.channel, ctx.user_id, code)
        self.ledger.set_cooldown("discount", ctx.user_id, CommandCooldowns.DISCOUNT)
        log.info("Issued %s to %s in #%s", code, ctx.login, ctx.channel)

        await ctx.reply(f"🎁 @{ctx.name} your code: {code} — valid for ~10 minutes!")

    # ------------------------------------------------------------------
    # !drop
    # ------------------------------------------------------------------

    async def drop_command(self, ctx: CommandContext):
        """!drop <1-50> — stream-wide unlimited code (broadcaster only)."""
        if not ctx.is_broadcaster:
            await ctx.reply(f"@{ctx.name} only the streamer can activate global drops.")
            return

        remaining = self.ledger.global_drop_remaining(ctx.channel)
        if remaining > 0:
            await ctx.reply(f"@{ctx.name} global drop is on cooldown. Try again in {remaining}s.")
            return False

        percent = parse_drop_percent(ctx.args)
        if percent is None:
            await ctx.reply(
                f"@{ctx.name} use: {self.prefix}drop <{DiscountConfig.MIN_DROP_PERCENT}-"
                f"{DiscountConfig.MAX_DROP_PERCENT}> (example: {self.prefix}drop 10)"
            )
            return False

        result = await self.issuer.request_global(ctx.channel, percent)
        if not result.ok:
            log.error("Global drop failed in #%s: %s", ctx.channel, result.raw or result)
            await ctx.reply(drop_failure_message(ctx.name, result))
            return False

        self.ledger.mark_global_drop_used(ctx.channel)
        log.info("Global drop %s (%d%%) in #%s", result.discount_code, percent, ctx.channel)

        await ctx.reply(
            f"🔥 GLOBAL DROP ACTIVATED! 🎁 Code: {result.discount_code} "
            f"💸 {percent}% OFF for the next 10 minutes ⏳"
        )

    # ------------------------------------------------------------------
    # !reload
    # ------------------------------------------------------------------

    async def reload_command(self, ctx: CommandContext):
        """!reload — re-run the channel sync now (owner only)."""
        if not self.owner_username or ctx.login != self.owner_username:
            await ctx.reply(f"@{ctx.name} You are not allowed to use this command.")
            return

        joined = await self.synchronizer.sync_once()
        await ctx.reply(f"Channel list synced ✅ ({len(joined)} new)")
