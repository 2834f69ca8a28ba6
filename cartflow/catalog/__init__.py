"""
Catalog — products, promotions and variants.

    from cartflow import catalog as K

    promos = await K.PromotionCatalog.fetch(source, at=now)
    sizes = (await K.VariantCatalog.fetch(source, "SHIRT")).value.by_type()["size"]
"""

from cartflow.catalog._types import (
    ProductImage,
    Product,
    sort_images,
    PromotionScope,
    DiscountKind,
    Promotion,
    Variant,
)
from cartflow.catalog._promotions import (
    PromotionCatalog,
    TimeRemaining,
    time_remaining,
    is_ending_soon,
    is_new,
    badge_text,
)
from cartflow.catalog._variants import VariantCatalog

__all__ = (
    "ProductImage",
    "Product",
    "sort_images",
    "PromotionScope",
    "DiscountKind",
    "Promotion",
    "Variant",
    "PromotionCatalog",
    "TimeRemaining",
    "time_remaining",
    "is_ending_soon",
    "is_new",
    "badge_text",
    "VariantCatalog",
)
