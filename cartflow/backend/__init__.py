"""
Backend — collaborator protocols and in-memory implementations.

    from cartflow import backend as B

    api = B.MemoryBackend()
    store = CartStore(api.cart, variants=api.variants)
"""

from cartflow.backend._protocols import (
    CartBackend,
    PromotionSource,
    VariantSource,
    StockSource,
    OrderBackend,
)
from cartflow.backend._memory import (
    MemoryBackend,
    MemoryCart,
    MemoryPromotions,
    MemoryVariants,
    MemoryStock,
    MemoryOrders,
)

__all__ = (
    "CartBackend",
    "PromotionSource",
    "VariantSource",
    "StockSource",
    "OrderBackend",
    "MemoryBackend",
    "MemoryCart",
    "MemoryPromotions",
    "MemoryVariants",
    "MemoryStock",
    "MemoryOrders",
)
