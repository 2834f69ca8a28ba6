"""
PromotionCatalog — read-only snapshot of promotions, plus display helpers.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from typing import TYPE_CHECKING

from kungfu import Result, Ok, Error

from cartflow.catalog._types import Product, Promotion, DiscountKind
from cartflow.errors import BackendUnavailable
from cartflow.lift import backend_call

if TYPE_CHECKING:
    from cartflow.backend._protocols import PromotionSource

# ═══════════════════════════════════════════════════════════════════════════════
# Snapshot
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class PromotionCatalog:
    """
    Promotions as read at `fetched_at`.

    The snapshot is never used to answer "is this active" on its own:
    every query takes the instant to evaluate against, because windows
    open and close between renders.
    """

    promotions: tuple[Promotion, ...]
    fetched_at: datetime

    @classmethod
    async def fetch(
        cls,
        source: PromotionSource,
        at: datetime,
    ) -> Result[PromotionCatalog, BackendUnavailable]:
        result = await backend_call("promotions.read", source.read)
        match result:
            case Ok(promotions):
                return Ok(cls(tuple(promotions), at))
            case Error(e):
                return Error(e)

    def active(self, at: datetime | None = None) -> tuple[Promotion, ...]:
        at = at if at is not None else self.fetched_at
        return tuple(p for p in self.promotions if p.is_active_at(at))

    def applicable_to(
        self, product: Product, at: datetime | None = None
    ) -> tuple[Promotion, ...]:
        return tuple(p for p in self.active(at) if p.matches(product))


# ═══════════════════════════════════════════════════════════════════════════════
# Display helpers
# ═══════════════════════════════════════════════════════════════════════════════

_DAY = timedelta(hours=24)


@dataclass(frozen=True, slots=True)
class TimeRemaining:
    expired: bool
    days: int
    hours: int
    minutes: int
    seconds: int

    @property
    def total_seconds(self) -> int:
        return ((self.days * 24 + self.hours) * 60 + self.minutes) * 60 + self.seconds

    @property
    def formatted(self) -> str:
        if self.expired:
            return "Expired"
        if self.days > 0:
            return f"{self.days}d {self.hours}h"
        if self.hours > 0:
            return f"{self.hours}h {self.minutes}m"
        if self.minutes > 0:
            return f"{self.minutes}m {self.seconds}s"
        return f"{self.seconds}s"


def time_remaining(promotion: Promotion, at: datetime) -> TimeRemaining:
    total = int((promotion.end - at).total_seconds())
    if total <= 0:
        return TimeRemaining(True, 0, 0, 0, 0)
    days, rest = divmod(total, 86400)
    hours, rest = divmod(rest, 3600)
    minutes, seconds = divmod(rest, 60)
    return TimeRemaining(False, days, hours, minutes, seconds)


def is_ending_soon(promotion: Promotion, at: datetime) -> bool:
    """Less than a day left."""
    remaining = time_remaining(promotion, at)
    return not remaining.expired and remaining.total_seconds <= _DAY.total_seconds()


def is_new(promotion: Promotion, at: datetime) -> bool:
    """Started within the last day."""
    return timedelta(0) <= at - promotion.start <= _DAY


def badge_text(promotion: Promotion, currency: str = "₱") -> str:
    match promotion.kind:
        case DiscountKind.PERCENTAGE:
            return f"-{promotion.value.normalize():f}%"
        case DiscountKind.FIXED_AMOUNT:
            return f"-{currency}{promotion.value.normalize():f}"


__all__ = (
    "PromotionCatalog",
    "TimeRemaining",
    "time_remaining",
    "is_ending_soon",
    "is_new",
    "badge_text",
)
