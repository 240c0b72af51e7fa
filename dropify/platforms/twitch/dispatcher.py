# dropify/platforms/twitch/dispatcher.py
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable

from dropify.core.constants import CommandCooldowns
from dropify.platforms.twitch.ledger import ClaimLedger

log = logging.getLogger(__name__)

ReplyFn = Callable[[str], Awaitable[None]]


@dataclass
class CommandContext:
    """One parsed chat command, independent of the chat transport."""

    channel: str
    user_id: str
    login: str
    display_name: str
    reply: ReplyFn
    is_broadcaster: bool = False
    command: str = ""
    args: list[str] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.display_name or self.login


# A handler returning False did not run its command (bad arguments, or an
# external call that failed), so no cooldown is committed for it. Permission
# refusals return normally and do consume the cooldown.
Handler = Callable[[CommandContext], Awaitable[bool | None]]


@dataclass(frozen=True)
class Command:
    name: str
    description: str
    handler: Handler
    cooldown_seconds: float | None = None
    manages_cooldown: bool = False  # handler checks and commits its own cooldown


class CommandDispatcher:
    """
    Turns a raw chat line into at most one command run and at most one reply.

    Non-prefixed lines, empty commands and unknown names are ignored without
    a reply. A handler that raises is logged and answered with a generic
    failure message; the exception never leaves dispatch().
    """

    def __init__(
        self,
        ledger: ClaimLedger,
        prefix: str = "!",
        default_cooldown_seconds: float = CommandCooldowns.DEFAULT,
    ):
        self.ledger = ledger
        self.prefix = prefix
        self.default_cooldown_seconds = default_cooldown_seconds
        self.commands: dict[str, Command] = {}

    def register(self, command: Command) -> None:
        self.commands[command.name.lower()] = command

    def parse(self, text: str) -> tuple[str, list[str]] | None:
        """Split a chat line into (command, args), or None if it is not a command."""
        if not text.startswith(self.prefix):
            return None
        parts = text[len(self.prefix):].split()
        if not parts:
            return None
        return parts[0].lower(), parts[1:]

    async def dispatch(self, text: str, ctx: CommandContext) -> bool:
        """Returns True when a registered command was matched."""
        parsed = self.parse(text)
        if parsed is None:
            return False

        name, args = parsed
        command = self.commands.get(name)
        if command is None:
            return False

        ctx.command = name
        ctx.args = args

        if not command.manages_cooldown:
            remaining = self.ledger.remaining_cooldown(name, ctx.user_id)
            if remaining > 0:
                await ctx.reply(
                    f"@{ctx.name} wait {remaining}s before using {self.prefix}{name} again."
                )
                return True

        try:
            outcome = await command.handler(ctx)
        except Exception:
            log.error("Command %s%s failed in #%s", self.prefix, name, ctx.channel, exc_info=True)
            await ctx.reply(f"@{ctx.name} something went wrong executing {self.prefix}{name}.")
            return True

        if not command.manages_cooldown and outcome is not False:
            cooldown = command.cooldown_seconds
            if cooldown is None:
                cooldown = self.default_cooldown_seconds
            self.ledger.set_cooldown(name, ctx.user_id, cooldown)
        return True
