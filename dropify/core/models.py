# dropify/core/models.py
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class FailureReason(str, Enum):
    NETWORK_ERROR = "network_error"  # could not reach the backend
    HTTP_ERROR = "http_error"  # non-JSON or unexpected response
    NOT_FOUND = "not_found"  # channel is not registered
    DISABLED = "disabled"
    NOT_CONNECTED = "not_connected"  # store integration incomplete
    COOLDOWN = "cooldown"
    LIMIT_REACHED = "limit_reached"  # viewer already claimed this stream
    PLAN_LIMIT = "plan_limit"
    BAD_RESPONSE = "bad_response"  # JSON body without an ok flag
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> "FailureReason":
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True)
class DiscountResult:
    """Outcome of one issuance attempt, from either the backend or the store."""

    ok: bool
    discount_code: str | None = None
    reason: FailureReason | None = None
    message: str | None = None
    retry_after_seconds: int | None = None
    error: str | None = None
    raw: Any = field(default=None, compare=False, repr=False)

    @classmethod
    def success(cls, code: str, raw: Any = None) -> "DiscountResult":
        return cls(ok=True, discount_code=code, raw=raw)

    @classmethod
    def failure(
        cls, reason: FailureReason, error: str | None = None, raw: Any = None
    ) -> "DiscountResult":
        return cls(ok=False, reason=reason, error=error, raw=raw)

    @classmethod
    def from_payload(cls, data: dict, code: str | None = None) -> "DiscountResult":
        """
        Build a result from a backend JSON body.

        code: the issued code when it lives somewhere other than
              ``discountCode`` (global drops nest it under ``drop.code``).
        """
        if "ok" not in data:
            return cls.failure(
                FailureReason.BAD_RESPONSE, "Backend response had no ok flag", raw=data
            )
        if data.get("ok") is True:
            code = code or data.get("discountCode")
            if not code:
                return cls.failure(
                    FailureReason.HTTP_ERROR, "Backend response had no discount code", raw=data
                )
            return cls.success(code, raw=data)

        retry_after = data.get("retryAfterSeconds")
        return cls(
            ok=False,
            reason=FailureReason.parse(data.get("reason")),
            message=data.get("message") or None,
            retry_after_seconds=int(retry_after) if isinstance(retry_after, (int, float)) else None,
            error=data.get("error") or None,
            raw=data,
        )


@dataclass(frozen=True)
class ClaimedDiscount:
    code: str
    created_at: float


@dataclass(frozen=True)
class IssuedDiscount:
    """A personal code created directly in the store."""

    code: str
    url: str
    id: int | str
