# dropify/platforms/twitch/channel_sync.py
import asyncio
import logging
from typing import Awaitable, Callable, Iterable

from dropify.core.clients.backend import BackendClient
from dropify.core.constants import ChannelSyncConfig

log = logging.getLogger(__name__)


class ChannelSynchronizer:
    """
    Keeps the bot in every channel the backend lists as active.

    Channels are only ever added: one dropping off the roster stays joined
    until the process restarts. A failed join, static or from the roster, is
    logged and retried on the next pass.
    """

    def __init__(
        self,
        backend: BackendClient,
        join: Callable[[str], Awaitable[None]],
        initial_channels: Iterable[str] = (),
        interval_seconds: float = 60.0,
        join_delay_seconds: float = ChannelSyncConfig.JOIN_DELAY_SECONDS,
    ):
        self._backend = backend
        self._join = join
        self.interval_seconds = interval_seconds
        self.join_delay_seconds = join_delay_seconds
        self.joined: set[str] = set()
        self._static = [c.strip().lower() for c in initial_channels if c.strip()]
        self._task: asyncio.Task | None = None

    async def join_static(self) -> list[str]:
        """Join the channels from configuration."""
        return await self._join_missing(self._static)

    async def sync_once(self) -> list[str]:
        """Fetch the roster and join what is missing. Returns the newly joined channels."""
        roster = await self._backend.fetch_active_channels()
        if not roster:
            return []
        return await self._join_missing(roster)

    async def _join_missing(self, channels: Iterable[str]) -> list[str]:
        joined_now = []
        for channel in channels:
            if channel in self.joined:
                continue
            log.info("Joining channel #%s", channel)
            try:
                await self._join(channel)
            except Exception:
                log.error("Failed to join #%s", channel, exc_info=True)
                continue
            self.joined.add(channel)
            joined_now.append(channel)
            await asyncio.sleep(self.join_delay_seconds)
        return joined_now

    def start(self) -> None:
        if self._task and not self._task.done():
            self._task.cancel()
        self._task = asyncio.create_task(self._run_loop())

    def stop(self) -> None:
        if self._task and not self._task.done():
            self._task.cancel()
        self._task = None

    async def _run_loop(self) -> None:
        log.info(
            "Static channels: %s",
            ", ".join(f"#{c}" for c in self._static) or "(none)",
        )

        while True:
            try:
                # Static channels that failed to join earlier are retried here.
                await self.join_static()
                joined = await self.sync_once()
                if joined:
                    log.info("Channel sync joined %d channel(s).", len(joined))
            except Exception:
                log.error("Error in channel sync loop", exc_info=True)
            await asyncio.sleep(self.interval_seconds)
