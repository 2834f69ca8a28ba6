"""
Checkout — stock revalidation and order placement.

    from cartflow import checkout as Co

    checkout = Co.CheckoutCoordinator(
        store, promotions=api.promotions, stock=api.stock, orders=api.orders
    )
    result = await checkout.place_order(Co.CheckoutForm("Ana Cruz", "09171234567", tomorrow))
"""

from cartflow.checkout._types import (
    PickupSlot,
    PaymentMethod,
    CheckoutForm,
    PickupSchedule,
    ContactInfo,
    OrderLine,
    OrderInput,
    OrderStatus,
    Order,
    CheckoutState,
    TRANSITIONS,
)
from cartflow.checkout._policy import OnBusy, WAIT, REJECT, CheckoutPolicy
from cartflow.checkout._validate import earliest_pickup, validate_form, validate_stock
from cartflow.checkout._order import build_order_input
from cartflow.checkout._coordinator import StateListener, CheckoutCoordinator

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
    "OnBusy",
    "WAIT",
    "REJECT",
    "CheckoutPolicy",
    "earliest_pickup",
    "validate_form",
    "validate_stock",
    "build_order_input",
    "StateListener",
    "CheckoutCoordinator",
)
