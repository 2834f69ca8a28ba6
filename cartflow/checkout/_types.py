"""
Checkout types — form input, order snapshot, pipeline state.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum, auto

from cartflow._types import Money

# ═══════════════════════════════════════════════════════════════════════════════
# Form
# ═══════════════════════════════════════════════════════════════════════════════


class PickupSlot(Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"

    @property
    def label(self) -> str:
        return _SLOT_LABELS[self]


_SLOT_LABELS = {
    PickupSlot.MORNING: "9:00 AM - 12:00 PM",
    PickupSlot.AFTERNOON: "1:00 PM - 5:00 PM",
    PickupSlot.EVENING: "6:00 PM - 8:00 PM",
}


class PaymentMethod(Enum):
    """Settled at the counter on pickup, never online."""

    CASH = "cash"
    CARD = "card"
    E_WALLET = "e-wallet"


@dataclass(frozen=True, slots=True)
class CheckoutForm:
    contact_name: str
    phone: str
    pickup_date: date
    pickup_slot: PickupSlot = PickupSlot.MORNING
    payment_method: PaymentMethod = PaymentMethod.CASH
    notes: str = ""


# ═══════════════════════════════════════════════════════════════════════════════
# Order
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class PickupSchedule:
    date: date
    slot: PickupSlot


@dataclass(frozen=True, slots=True)
class ContactInfo:
    name: str
    phone: str


@dataclass(frozen=True, slots=True)
class OrderLine:
    """Priced snapshot of one cart line at submission."""

    product_id: str
    product_name: str
    variant_ids: tuple[str, ...]
    quantity: int
    original_unit_price: Money
    unit_price: Money
    line_total: Money


@dataclass(frozen=True, slots=True)
class OrderInput:
    """What the order collaborator receives. Totals are final; nothing re-prices them."""

    user_id: str
    pickup: PickupSchedule
    contact: ContactInfo
    payment_method: PaymentMethod
    lines: tuple[OrderLine, ...]
    subtotal: Money
    discount: Money
    total: Money
    notes: str = ""


class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    READY_FOR_PICKUP = "ready_for_pickup"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass(frozen=True, slots=True)
class Order:
    id: str
    order_number: str
    user_id: str
    status: OrderStatus
    pickup: PickupSchedule
    contact: ContactInfo
    payment_method: PaymentMethod
    lines: tuple[OrderLine, ...]
    subtotal: Money
    discount: Money
    total: Money
    created_at: datetime
    notes: str = ""


# ═══════════════════════════════════════════════════════════════════════════════
# Pipeline state
# ═══════════════════════════════════════════════════════════════════════════════


class CheckoutState(Enum):
    """
    Checkout lifecycle.

        IDLE → VALIDATING_FORM → VALIDATING_STOCK → SUBMITTING → SUCCEEDED
                     │                  │               │
                     └──────────────────┴───────────────┴──→ FAILED → IDLE
    """

    IDLE = auto()
    VALIDATING_FORM = auto()
    VALIDATING_STOCK = auto()
    SUBMITTING = auto()
    SUCCEEDED = auto()
    FAILED = auto()


TRANSITIONS: dict[CheckoutState, frozenset[CheckoutState]] = {
    CheckoutState.IDLE: frozenset({CheckoutState.VALIDATING_FORM}),
    CheckoutState.VALIDATING_FORM: frozenset({CheckoutState.VALIDATING_STOCK, CheckoutState.FAILED}),
    CheckoutState.VALIDATING_STOCK: frozenset({CheckoutState.SUBMITTING, CheckoutState.FAILED}),
    CheckoutState.SUBMITTING: frozenset({CheckoutState.SUCCEEDED, CheckoutState.FAILED}),
    CheckoutState.SUCCEEDED: frozenset({CheckoutState.IDLE}),
    CheckoutState.FAILED: frozenset({CheckoutState.IDLE}),
}


__all__ = (
    "PickupSlot",
    "PaymentMethod",
    "CheckoutForm",
    "PickupSchedule",
    "ContactInfo",
    "OrderLine",
    "OrderInput",
    "OrderStatus",
    "Order",
    "CheckoutState",
    "TRANSITIONS",
)
