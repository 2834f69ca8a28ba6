"""
Checkout policy — behavior configuration.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto


# ═══════════════════════════════════════════════════════════════════════════════
# On Busy — Second Trigger Strategy
# ═══════════════════════════════════════════════════════════════════════════════


class OnBusy(Enum):
    """
    What to do when checkout is triggered while another attempt is in flight.

    WAIT: Queue behind the running attempt; run once it finishes.
          The queued attempt re-validates stock, so it fails cleanly if the
          first one consumed it.

    REJECT: Answer immediately with CheckoutInProgress.
            Use for a double-tapped "Place order" button.
    """

    WAIT = auto()
    REJECT = auto()


WAIT = OnBusy.WAIT
REJECT = OnBusy.REJECT


# ═══════════════════════════════════════════════════════════════════════════════
# Policy — Full Configuration
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class CheckoutPolicy:
    """
    Checkout configuration.

    Example:
        policy = (
            CheckoutPolicy()
            .with_min_phone_digits(11)
            .with_pickup_lead_days(2)
            .with_on_busy(WAIT)
        )

    Note: Immutable — each method returns new CheckoutPolicy.
    """

    min_phone_digits: int = 10
    # Earliest pickup is today + lead days, compared at local midnight.
    pickup_lead_days: int = 1
    on_busy: OnBusy = OnBusy.REJECT
    clear_cart_on_success: bool = True

    def with_min_phone_digits(self, digits: int) -> CheckoutPolicy:
        return CheckoutPolicy(
            min_phone_digits=digits,
            pickup_lead_days=self.pickup_lead_days,
            on_busy=self.on_busy,
            clear_cart_on_success=self.clear_cart_on_success,
        )

    def with_pickup_lead_days(self, days: int) -> CheckoutPolicy:
        if days < 0:
            raise ValueError("pickup_lead_days must be >= 0")
        return CheckoutPolicy(
            min_phone_digits=self.min_phone_digits,
            pickup_lead_days=days,
            on_busy=self.on_busy,
            clear_cart_on_success=self.clear_cart_on_success,
        )

    def with_on_busy(self, strategy: OnBusy) -> CheckoutPolicy:
        return CheckoutPolicy(
            min_phone_digits=self.min_phone_digits,
            pickup_lead_days=self.pickup_lead_days,
            on_busy=strategy,
            clear_cart_on_success=self.clear_cart_on_success,
        )

    def with_clear_cart(self, enabled: bool = True) -> CheckoutPolicy:
        return CheckoutPolicy(
            min_phone_digits=self.min_phone_digits,
            pickup_lead_days=self.pickup_lead_days,
            on_busy=self.on_busy,
            clear_cart_on_success=enabled,
        )


__all__ = ("OnBusy", "WAIT", "REJECT", "CheckoutPolicy")
