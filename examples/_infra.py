"""Shared infrastructure for examples."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from datetime import datetime, timedelta
from decimal import Decimal

from cartflow.backend import MemoryBackend
from cartflow.catalog import DiscountKind, Product, Promotion, PromotionScope, Variant


# Catalog
SHIRT = Product("SHIRT", "Linen Shirt", Decimal("100.00"), 5, category_id="apparel")
MUG = Product("MUG", "Stoneware Mug", Decimal("50.00"), 2, category_id="home")
TOTE = Product("TOTE", "Canvas Tote", Decimal("35.00"), 0, category_id="apparel")

SIZE_M = Variant("SHIRT-M", "SHIRT", "size", "M", Decimal("0.00"))
SIZE_XL = Variant("SHIRT-XL", "SHIRT", "size", "XL", Decimal("15.00"))
COLOR_SAND = Variant("SHIRT-SAND", "SHIRT", "color", "Sand", Decimal("5.00"))


def promotions(now: datetime) -> list[Promotion]:
    return [
        Promotion(
            "SUMMER20", "Summer Linen", DiscountKind.PERCENTAGE, Decimal("20"),
            PromotionScope.PRODUCT, now - timedelta(days=2), now + timedelta(hours=6),
            target_ids=frozenset({"SHIRT"}),
        ),
        Promotion(
            "HOME10", "Home Week", DiscountKind.FIXED_AMOUNT, Decimal("10"),
            PromotionScope.CATEGORY, now - timedelta(hours=3), now + timedelta(days=4),
            target_ids=frozenset({"home"}),
        ),
    ]


# Fake backend
def demo_backend(latency: float = 0.01) -> MemoryBackend:
    backend = MemoryBackend(latency=latency)
    backend.seed(
        products=[SHIRT, MUG, TOTE],
        variants=[SIZE_M, SIZE_XL, COLOR_SAND],
        promotions=promotions(backend.clock()),
    )
    return backend


# Helpers
def banner(title: str) -> None:
    print(f"\n{'─' * 50}\n{title}\n{'─' * 50}")


def run(main: Callable[[], Coroutine[object, object, None]]) -> None:
    logging.basicConfig(level=logging.INFO, format="  %(levelname)-7s %(name)s: %(message)s")
    asyncio.run(main())
