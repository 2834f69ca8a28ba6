"""
Checkout validation stages.

validate_form is pure and synchronous. validate_stock reads live stock,
one line at a time in cart order, and stops at the first violation.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace
from datetime import date, timedelta
from typing import TYPE_CHECKING

from kungfu import Result, Ok, Error

from cartflow.cart._types import CartLine
from cartflow.checkout._policy import CheckoutPolicy
from cartflow.checkout._types import CheckoutForm
from cartflow.errors import (
    BackendUnavailable,
    InsufficientStock,
    OutOfStock,
    StockError,
    ValidationError,
)
from cartflow.lift import backend_call

if TYPE_CHECKING:
    from cartflow.backend._protocols import StockSource


def earliest_pickup(today: date, policy: CheckoutPolicy) -> date:
    return today + timedelta(days=policy.pickup_lead_days)


def validate_form(
    form: CheckoutForm,
    *,
    today: date,
    policy: CheckoutPolicy | None = None,
) -> Result[CheckoutForm, ValidationError]:
    """Check required fields; returns the form with name and phone trimmed."""
    policy = policy if policy is not None else CheckoutPolicy()
    name = form.contact_name.strip()
    phone = form.phone.strip()

    if not name:
        return Error(ValidationError("contact_name", "Please enter your full name"))

    if sum(ch.isdigit() for ch in phone) < policy.min_phone_digits:
        return Error(ValidationError("phone", "Please enter a valid phone number"))

    earliest = earliest_pickup(today, policy)
    if form.pickup_date < earliest:
        return Error(ValidationError(
            "pickup_date",
            "Pickup date must be at least tomorrow"
            if policy.pickup_lead_days == 1
            else f"Pickup date must be on or after {earliest.isoformat()}",
        ))

    return Ok(replace(form, contact_name=name, phone=phone))


async def validate_stock(
    lines: Sequence[CartLine],
    stock: StockSource,
) -> Result[None, StockError | BackendUnavailable]:
    """
    Compare each line against live stock, in cart order.

    Stops at the first line that is out of stock or short, so the reported
    error always names the earliest offending line and later lines are not
    read.
    """
    for line in lines:
        if line.product is None:
            return Error(OutOfStock(line.product_id, line.product_name))

        result = await backend_call("stock.read", lambda pid=line.product_id: stock.read(pid))
        match result:
            case Error(e):
                return Error(e)
            case Ok(available):
                if available <= 0:
                    return Error(OutOfStock(line.product_id, line.product_name))
                if line.quantity > available:
                    return Error(InsufficientStock(
                        line.product_id, line.product_name, line.quantity, available
                    ))

    return Ok(None)


__all__ = ("earliest_pickup", "validate_form", "validate_stock")
