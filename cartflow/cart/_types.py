"""
Cart types.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime

from cartflow.catalog._types import Product, Variant


def selection_key(product_id: str, variant_ids: tuple[str, ...] | list[str]) -> str:
    """Identity of a product+variant selection, independent of selection order."""
    return f"{product_id}:{','.join(sorted(variant_ids))}"


@dataclass(frozen=True, slots=True)
class CartLine:
    """
    One cart entry.

    product is None when the backend could not embed it (e.g. the product
    was deleted); such a line prices at zero and fails stock validation.
    """

    id: str
    user_id: str
    product_id: str
    quantity: int
    product: Product | None = None
    variants: tuple[Variant, ...] = ()
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def variant_ids(self) -> tuple[str, ...]:
        return tuple(v.id for v in self.variants)

    @property
    def selection(self) -> str:
        return selection_key(self.product_id, self.variant_ids)

    @property
    def product_name(self) -> str:
        return self.product.name if self.product is not None else "Product"

    def with_quantity(self, quantity: int) -> CartLine:
        return replace(self, quantity=quantity)

    def with_variants(self, variants: tuple[Variant, ...]) -> CartLine:
        return replace(self, variants=variants)


__all__ = ("selection_key", "CartLine")
