"""
Pricing engine — pure functions over product, variants and promotions.

Nothing here is cached: callers recompute on every render and at
submission, because promotions open and close between the two.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import datetime
from decimal import Decimal

from cartflow._types import Money, ZERO, money, round_half_up
from cartflow.catalog._types import Product, Promotion, PromotionScope, DiscountKind, Variant
from cartflow.errors import ValidationError
from cartflow.pricing._types import PricedLine, PriceBreakdown, CartTotals

logger = logging.getLogger(__name__)

_HUNDRED = Decimal(100)

# ═══════════════════════════════════════════════════════════════════════════════
# Promotion selection
# ═══════════════════════════════════════════════════════════════════════════════


def discounted_price(base: Money, promotion: Promotion) -> Money:
    """Base price after one promotion, never below zero."""
    match promotion.kind:
        case DiscountKind.PERCENTAGE:
            price = base - money(base * promotion.value / _HUNDRED)
        case DiscountKind.FIXED_AMOUNT:
            price = base - money(promotion.value)
    return max(price, ZERO)


def best_promotion(
    product: Product,
    promotions: Iterable[Promotion],
    at: datetime | None = None,
) -> tuple[Promotion, Money] | None:
    """
    Pick the promotion that applies to `product`.

    Scope tiers are tried in order PRODUCT, CATEGORY, ALL; the first tier
    with a match is the only one considered. Within it the lowest price
    wins, ties going to the earliest end then the smallest id, so the
    answer never depends on the order of `promotions`.

    With `at`, promotions outside their window are skipped as well.
    """
    base = money(product.base_price)
    candidates = [
        p
        for p in promotions
        if p.is_active and p.matches(product) and (at is None or p.is_active_at(at))
    ]

    for scope in PromotionScope:
        tier = [p for p in candidates if p.scope is scope]
        if not tier:
            continue
        best = min(tier, key=lambda p: (discounted_price(base, p), p.end, p.id))
        return best, discounted_price(base, best)

    return None


# ═══════════════════════════════════════════════════════════════════════════════
# Line pricing
# ═══════════════════════════════════════════════════════════════════════════════


def variant_adjustment(variants: Iterable[Variant]) -> Money:
    return money(sum((v.price_adjustment for v in variants), ZERO))


def _clamp(price: Money, product_id: str) -> Money:
    if price < ZERO:
        logger.debug("price for %s clamped from %s to 0", product_id, price)
        return ZERO
    return price


def price_for(
    product: Product,
    selected_variants: Sequence[Variant],
    active_promotions: Iterable[Promotion],
    *,
    quantity: int = 1,
    at: datetime | None = None,
) -> PriceBreakdown:
    """
    Effective price of `quantity` units of `product` with the selected variants.

    The unit price before variants is the lowest of the base price, the
    product's standing sale price and the best promotion's price; the
    promotion is reported as applied only when it is strictly the lowest.
    Variant adjustments are added afterwards, identically to the original
    and discounted price.

    Raises:
        ValidationError: quantity <= 0.

    Example:
        >>> b = price_for(shirt, [size_xl], promotions, quantity=2)
        >>> b.final_unit_price, b.line_total
    """
    if quantity <= 0:
        raise ValidationError("quantity", f"Quantity must be positive, got {quantity}")

    base = money(product.base_price)
    adjustment = variant_adjustment(selected_variants)

    discounted = base
    if product.discounted_price:
        discounted = min(base, max(money(product.discounted_price), ZERO))

    applied: Promotion | None = None
    best = best_promotion(product, active_promotions, at)
    if best is not None and best[1] < discounted:
        applied, discounted = best

    original_unit = _clamp(base + adjustment, product.id)
    final_unit = _clamp(discounted + adjustment, product.id)
    # Clamping can erase the difference entirely.
    has_discount = final_unit < original_unit
    if not has_discount:
        applied = None

    return PriceBreakdown(
        original_unit_price=original_unit,
        final_unit_price=final_unit,
        variant_adjustment=adjustment,
        has_discount=has_discount,
        quantity=quantity,
        line_total=final_unit * quantity,
        applied_promotion=applied,
    )


def _missing_product(quantity: int) -> PriceBreakdown:
    return PriceBreakdown(ZERO, ZERO, ZERO, False, quantity, ZERO)


# ═══════════════════════════════════════════════════════════════════════════════
# Cart aggregate
# ═══════════════════════════════════════════════════════════════════════════════


def discount_percent(discount: Money, original_total: Money) -> int:
    """Whole-number share of the original total that was discounted."""
    if original_total <= ZERO:
        return 0
    return round_half_up(discount / original_total * _HUNDRED)


def cart_totals(
    lines: Iterable[PricedLine],
    promotions: Iterable[Promotion],
    at: datetime | None = None,
) -> CartTotals:
    """Recompute every line and the cart aggregate from scratch."""
    promotions = tuple(promotions)
    breakdowns: list[PriceBreakdown] = []
    applied: dict[str, Promotion] = {}

    for line in lines:
        if line.product is None:
            breakdowns.append(_missing_product(line.quantity))
            continue
        breakdown = price_for(
            line.product, line.variants, promotions, quantity=line.quantity, at=at
        )
        breakdowns.append(breakdown)
        if breakdown.applied_promotion is not None:
            applied.setdefault(breakdown.applied_promotion.id, breakdown.applied_promotion)

    subtotal = sum((b.line_total for b in breakdowns), ZERO)
    original_total = sum((b.original_line_total for b in breakdowns), ZERO)
    discount = original_total - subtotal

    return CartTotals(
        subtotal=subtotal,
        original_total=original_total,
        discount=discount,
        discount_percent=discount_percent(discount, original_total),
        item_count=sum(b.quantity for b in breakdowns),
        lines=tuple(breakdowns),
        applied_promotions=tuple(applied.values()),
    )


__all__ = (
    "discounted_price",
    "best_promotion",
    "variant_adjustment",
    "price_for",
    "discount_percent",
    "cart_totals",
)
