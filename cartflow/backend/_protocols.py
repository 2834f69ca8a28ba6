"""
Collaborator protocols — what the engine needs from the hosted backend.

Implementations raise on transport/backend failure; the engine lifts every
call with `backend_call` so the exception surfaces as BackendUnavailable.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Protocol

from kungfu import Result

if TYPE_CHECKING:
    from cartflow.cart._types import CartLine
    from cartflow.catalog._types import Promotion, Variant
    from cartflow.checkout._types import Order, OrderInput

# ═══════════════════════════════════════════════════════════════════════════════
# Cart
# ═══════════════════════════════════════════════════════════════════════════════


class CartBackend(Protocol):
    """
    Durable cart storage.

    Every write returns the line as the backend now holds it; that value is
    the confirmation the store reconciles against.

    Example — REST client:

        class HttpCart:
            def __init__(self, client: httpx.AsyncClient) -> None:
                self.client = client

            async def read(self, user_id: str) -> list[CartLine]:
                resp = await self.client.get(f"/cart/{user_id}")
                resp.raise_for_status()
                return [to_line(row) for row in resp.json()]

            # ... other methods
    """

    async def read(self, user_id: str) -> Sequence[CartLine]:
        """Lines in display order, with product and variants embedded."""
        ...

    async def add(
        self,
        user_id: str,
        product_id: str,
        variant_ids: Sequence[str],
        quantity: int,
    ) -> CartLine:
        """Insert a line, or add to the quantity of the same product+selection."""
        ...

    async def update_quantity(self, line_id: str, quantity: int) -> CartLine:
        ...

    async def update_variants(self, line_id: str, variant_ids: Sequence[str]) -> CartLine:
        ...

    async def remove(self, line_id: str) -> None:
        ...

    async def clear(self, user_id: str) -> None:
        ...


# ═══════════════════════════════════════════════════════════════════════════════
# Catalog reads
# ═══════════════════════════════════════════════════════════════════════════════


class PromotionSource(Protocol):
    async def read(self) -> Sequence[Promotion]:
        """Promotions the backend considers current."""
        ...


class VariantSource(Protocol):
    async def read(self, product_id: str) -> Sequence[Variant]:
        """Active variants of one product."""
        ...


class StockSource(Protocol):
    async def read(self, product_id: str) -> int:
        """Live stock quantity. Never served from a cache."""
        ...


# ═══════════════════════════════════════════════════════════════════════════════
# Orders
# ═══════════════════════════════════════════════════════════════════════════════


class OrderBackend(Protocol):
    async def create(self, order: OrderInput) -> Result[Order, str]:
        """
        Atomically create the order.

        Returns Error(reason) when the backend refuses it; raises only on
        transport failure.
        """
        ...


__all__ = (
    "CartBackend",
    "PromotionSource",
    "VariantSource",
    "StockSource",
    "OrderBackend",
)
