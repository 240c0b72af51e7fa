# dropify/core/constants.py
from enum import Enum


class IssuerMode(str, Enum):
    BACKEND = "backend"  # ask the Dropify backend to issue codes
    STORE = "store"  # talk to the Shopify Admin API directly


class GlobalDropScope(str, Enum):
    PROCESS = "process"  # one gate shared by every channel this process serves
    CHANNEL = "channel"


class CommandCooldowns:
    DEFAULT = 10
    PING = 1
    HELP = 2
    DISCOUNT = 30  # per viewer, committed only after a code is issued
    DROP = 5 * 60


class DiscountConfig:
    LIFETIME_SECONDS = 10 * 60  # how long a claimed code is remembered and valid
    PERSONAL_PERCENT = 10
    MIN_DROP_PERCENT = 1
    MAX_DROP_PERCENT = 50
    GLOBAL_DROP_COOLDOWN_SECONDS = 5 * 60
    START_SKEW_SECONDS = 1  # starts_at is backdated to tolerate store clock drift
    CODE_PREFIX = "DROP"
    CODE_SUFFIX_MIN = 1000
    CODE_SUFFIX_MAX = 9999
    DEFAULT_RETRY_AFTER_SECONDS = 10


class ShopifyConfig:
    BASE_URL = "https://{domain}/admin/api/{version}"
    TOKEN_HEADER = "X-Shopify-Access-Token"
    DISCOUNT_URL = "https://{domain}/discount/{code}"


class BackendRoutes:
    VIEWER_DISCOUNT = "/api/discounts/{channel}"
    GLOBAL_DROP = "/api/discounts/{channel}/global"
    ACTIVE_STREAMERS = "/api/streamers/active"


class ChannelSyncConfig:
    JOIN_DELAY_SECONDS = 0.9  # spacing joins avoids Twitch join-rate limits


class BotConfig:
    USER_AGENT = "DropifyBot/1.0"
    BRAND = "Dropify"
