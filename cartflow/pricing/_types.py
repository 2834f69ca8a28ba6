"""
Pricing types — derived, never persisted.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from cartflow._types import Money
from cartflow.catalog._types import Product, Promotion, Variant


class PricedLine(Protocol):
    """Anything with a product, a variant selection and a quantity."""

    @property
    def product(self) -> Product | None: ...

    @property
    def variants(self) -> Sequence[Variant]: ...

    @property
    def quantity(self) -> int: ...


@dataclass(frozen=True, slots=True)
class PriceBreakdown:
    """
    Price of one line at one instant.

    original_unit_price and final_unit_price both include the variant
    adjustment; only the promotion separates them.
    """

    original_unit_price: Money
    final_unit_price: Money
    variant_adjustment: Money
    has_discount: bool
    quantity: int
    line_total: Money
    applied_promotion: Promotion | None = None

    @property
    def original_line_total(self) -> Money:
        return self.original_unit_price * self.quantity

    @property
    def savings(self) -> Money:
        return self.original_line_total - self.line_total


@dataclass(frozen=True, slots=True)
class CartTotals:
    subtotal: Money
    original_total: Money
    discount: Money
    discount_percent: int
    item_count: int
    lines: tuple[PriceBreakdown, ...]
    applied_promotions: tuple[Promotion, ...]

    @property
    def has_discount(self) -> bool:
        return self.discount > 0


__all__ = ("PricedLine", "PriceBreakdown", "CartTotals")
