# dropify/platforms/twitch/ledger.py
import math
import time
import logging
from typing import Callable

from dropify.core.constants import DiscountConfig, GlobalDropScope
from dropify.core.models import ClaimedDiscount

log = logging.getLogger(__name__)

_PROCESS_KEY = "*"


class ClaimLedger:
    """
    In-memory record of command cooldowns, claimed discount codes and the
    global drop gate.

    Entries are never purged: an expired cooldown or claim simply stops
    counting and is overwritten the next time it is set. State lives as long
    as the process does.

    Callers check, run the command, then commit. Nothing here locks, so two
    overlapping invocations can both pass a check before either commits.
    """

    def __init__(
        self,
        claim_lifetime_seconds: float = DiscountConfig.LIFETIME_SECONDS,
        global_drop_cooldown_seconds: float = DiscountConfig.GLOBAL_DROP_COOLDOWN_SECONDS,
        global_drop_scope: GlobalDropScope = GlobalDropScope.PROCESS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.claim_lifetime_seconds = claim_lifetime_seconds
        self.global_drop_cooldown_seconds = global_drop_cooldown_seconds
        self.global_drop_scope = GlobalDropScope(global_drop_scope)
        self._clock = clock
        self._cooldowns: dict[str, dict[str, float]] = {}  # cmd -> {user_id -> expiry}
        self._claims: dict[str, dict[str, ClaimedDiscount]] = {}  # channel -> {user_id -> claim}
        self._last_global_drop: dict[str, float] = {}  # scope key -> timestamp

    # ------------------------------------------------------------------
    # per-user command cooldowns
    # ------------------------------------------------------------------

    def remaining_cooldown(self, cmd: str, user_id: str) -> int:
        """Whole seconds left on this user's cooldown for cmd, 0 if none."""
        expires_at = self._cooldowns.get(cmd, {}).get(user_id)
        if expires_at is None:
            return 0
        now = self._clock()
        if now >= expires_at:
            return 0
        return math.ceil(expires_at - now)

    def set_cooldown(self, cmd: str, user_id: str, seconds: float) -> None:
        self._cooldowns.setdefault(cmd, {})[user_id] = self._clock() + seconds

    # ------------------------------------------------------------------
    # claimed discount codes
    # ------------------------------------------------------------------

    def record_claim(self, channel: str, user_id: str, code: str) -> None:
        self._claims.setdefault(channel, {})[user_id] = ClaimedDiscount(
            code=code, created_at=self._clock()
        )

    def get_active_claim(self, channel: str, user_id: str) -> ClaimedDiscount | None:
        """The user's last code in this channel, or None once its lifetime has passed."""
        claim = self._claims.get(channel, {}).get(user_id)
        if claim is None:
            return None
        if self._clock() - claim.created_at > self.claim_lifetime_seconds:
            return None
        return claim

    # ------------------------------------------------------------------
    # global drop gate
    # ------------------------------------------------------------------

    def _scope_key(self, channel: str | None) -> str:
        if self.global_drop_scope is GlobalDropScope.CHANNEL and channel:
            return channel
        return _PROCESS_KEY

    def global_drop_remaining(self, channel: str | None = None) -> int:
        last = self._last_global_drop.get(self._scope_key(channel))
        if last is None:
            return 0
        since_last = self._clock() - last
        if since_last >= self.global_drop_cooldown_seconds:
            return 0
        return math.ceil(self.global_drop_cooldown_seconds - since_last)

    def is_global_drop_ready(self, channel: str | None = None) -> bool:
        return self.global_drop_remaining(channel) == 0

    def mark_global_drop_used(self, channel: str | None = None) -> None:
        key = self._scope_key(channel)
        self._last_global_drop[key] = self._clock()
        log.debug("Global drop gate closed for %s", key)
