"""
Catalog types — products, promotions, variants.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from cartflow._types import Money

# ═══════════════════════════════════════════════════════════════════════════════
# Product
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class ProductImage:
    id: str
    url: str
    is_primary: bool = False
    sort_order: int = 0
    alt_text: str | None = None


@dataclass(frozen=True, slots=True)
class Product:
    """
    Catalog product as embedded in cart lines.

    stock_quantity is the snapshot taken when the product was read; it is
    only a hint. Checkout re-reads live stock.

    discounted_price is a standing sale price; zero or None means no sale.
    A promotion only applies when it goes lower.
    """

    id: str
    name: str
    base_price: Money
    stock_quantity: int
    category_id: str | None = None
    discounted_price: Money | None = None
    images: tuple[ProductImage, ...] = ()
    is_active: bool = True
    # Promotions the backend associates with the product, for display.
    promotions: tuple[Promotion, ...] = field(default=(), compare=False)

    def __post_init__(self) -> None:
        if self.stock_quantity < 0:
            raise ValueError(f"stock_quantity must be >= 0, got {self.stock_quantity}")

    @property
    def primary_image(self) -> ProductImage | None:
        for image in self.images:
            if image.is_primary:
                return image
        return self.images[0] if self.images else None


def sort_images(images: tuple[ProductImage, ...]) -> tuple[ProductImage, ...]:
    """Primary first, then by sort_order; stable otherwise."""
    return tuple(sorted(images, key=lambda i: (not i.is_primary, i.sort_order)))


# ═══════════════════════════════════════════════════════════════════════════════
# Promotion
# ═══════════════════════════════════════════════════════════════════════════════


class PromotionScope(Enum):
    """What a promotion targets. Declared in precedence order."""

    PRODUCT = "product"
    CATEGORY = "category"
    ALL = "all"


class DiscountKind(Enum):
    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"


@dataclass(frozen=True, slots=True)
class Promotion:
    """
    Time-bound discount rule.

    target_ids holds product ids for PRODUCT scope and category ids for
    CATEGORY scope; it is ignored for ALL.
    """

    id: str
    title: str
    kind: DiscountKind
    value: Money
    scope: PromotionScope
    start: datetime
    end: datetime
    target_ids: frozenset[str] = frozenset()
    is_active: bool = True

    def is_active_at(self, at: datetime) -> bool:
        """Active flag set and `at` inside [start, end]."""
        return self.is_active and self.start <= at <= self.end

    def matches(self, product: Product) -> bool:
        match self.scope:
            case PromotionScope.ALL:
                return True
            case PromotionScope.PRODUCT:
                return product.id in self.target_ids
            case PromotionScope.CATEGORY:
                return product.category_id is not None and product.category_id in self.target_ids


# ═══════════════════════════════════════════════════════════════════════════════
# Variant
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Variant:
    """Selectable product option (size, color, ...) with a signed price adjustment."""

    id: str
    product_id: str
    type: str
    value: str
    price_adjustment: Money
    is_active: bool = True

    @property
    def label(self) -> str:
        return f"{self.type.capitalize()}: {self.value}"


__all__ = (
    "ProductImage",
    "Product",
    "sort_images",
    "PromotionScope",
    "DiscountKind",
    "Promotion",
    "Variant",
)
