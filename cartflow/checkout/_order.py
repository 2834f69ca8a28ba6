"""
Order snapshot — prices every line once, at submission.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from cartflow.cart._types import CartLine
from cartflow.catalog._types import Promotion
from cartflow.checkout._types import (
    CheckoutForm,
    ContactInfo,
    OrderInput,
    OrderLine,
    PickupSchedule,
)
from cartflow.pricing._engine import cart_totals


def build_order_input(
    user_id: str,
    form: CheckoutForm,
    lines: Sequence[CartLine],
    promotions: Sequence[Promotion],
    at: datetime | None = None,
) -> OrderInput:
    totals = cart_totals(lines, promotions, at)
    order_lines = tuple(
        OrderLine(
            product_id=line.product_id,
            product_name=line.product_name,
            variant_ids=line.variant_ids,
            quantity=line.quantity,
            original_unit_price=price.original_unit_price,
            unit_price=price.final_unit_price,
            line_total=price.line_total,
        )
        for line, price in zip(lines, totals.lines, strict=True)
    )
    return OrderInput(
        user_id=user_id,
        pickup=PickupSchedule(form.pickup_date, form.pickup_slot),
        contact=ContactInfo(form.contact_name, form.phone),
        payment_method=form.payment_method,
        lines=order_lines,
        subtotal=totals.subtotal,
        discount=totals.discount,
        # Pickup orders carry no tax or shipping.
        total=totals.subtotal,
        notes=form.notes,
    )


__all__ = ("build_order_input",)
