"""
Pricing — line prices and cart totals under time-bound promotions.

    from cartflow import pricing as P

    breakdown = P.price_for(product, variants, catalog.active(now), quantity=2)
    totals = P.cart_totals(store.lines, catalog.active(now))
"""

from cartflow.pricing._types import PricedLine, PriceBreakdown, CartTotals
from cartflow.pricing._engine import (
    discounted_price,
    best_promotion,
    variant_adjustment,
    price_for,
    discount_percent,
    cart_totals,
)

__all__ = (
    "PricedLine",
    "PriceBreakdown",
    "CartTotals",
    "discounted_price",
    "best_promotion",
    "variant_adjustment",
    "price_for",
    "discount_percent",
    "cart_totals",
)
