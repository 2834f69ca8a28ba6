"""
In-memory collaborators.

One MemoryBackend holds the data; its `.cart`, `.promotions`, `.variants`,
`.stock` and `.orders` views implement the collaborator protocols over it.
Used by the examples and the test suite, and as a stand-in while a real
client is wired.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from datetime import datetime

from kungfu import Result, Ok, Error

from cartflow._types import Clock, system_clock
from cartflow.cart._types import CartLine, selection_key
from cartflow.catalog._types import Product, Promotion, Variant
from cartflow.checkout._types import Order, OrderInput, OrderStatus


@dataclass(slots=True)
class _StoredLine:
    id: str
    user_id: str
    product_id: str
    variant_ids: tuple[str, ...]
    quantity: int
    created_at: datetime
    updated_at: datetime


@dataclass
class MemoryBackend:
    """
    Example:
        backend = MemoryBackend()
        backend.seed(products=[shirt], variants=[size_m, size_l], promotions=[sale])

        store = CartStore(backend.cart, variants=backend.variants)

        backend.fail("cart.update_quantity")   # next call raises ConnectionError
    """

    clock: Clock = system_clock
    # Seconds each call sleeps; 0 still yields to the event loop.
    latency: float = 0.0
    products: dict[str, Product] = field(default_factory=dict[str, Product])
    variant_rows: dict[str, Variant] = field(default_factory=dict[str, Variant])
    promotion_rows: list[Promotion] = field(default_factory=list[Promotion])
    orders_created: list[Order] = field(default_factory=list[Order])
    calls: list[str] = field(default_factory=list[str])
    _lines: dict[str, _StoredLine] = field(default_factory=dict[str, _StoredLine])
    _failures: dict[str, int] = field(default_factory=dict[str, int])
    _line_counter: int = 0
    _order_counter: int = 0

    def seed(
        self,
        products: Sequence[Product] = (),
        variants: Sequence[Variant] = (),
        promotions: Sequence[Promotion] = (),
    ) -> None:
        for product in products:
            self.products[product.id] = product
        for variant in variants:
            self.variant_rows[variant.id] = variant
        self.promotion_rows.extend(promotions)

    def set_stock(self, product_id: str, quantity: int) -> None:
        self.products[product_id] = replace(self.products[product_id], stock_quantity=quantity)

    def fail(self, operation: str, times: int = 1) -> None:
        """Make the next `times` calls of `operation` raise ConnectionError."""
        self._failures[operation] = self._failures.get(operation, 0) + times

    async def _call(self, operation: str) -> None:
        self.calls.append(operation)
        await asyncio.sleep(self.latency)
        remaining = self._failures.get(operation, 0)
        if remaining > 0:
            self._failures[operation] = remaining - 1
            raise ConnectionError(f"{operation}: backend unreachable")

    # ─────────────────────────────────────────────────────────────────────────
    # Views
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def cart(self) -> MemoryCart:
        return MemoryCart(self)

    @property
    def promotions(self) -> MemoryPromotions:
        return MemoryPromotions(self)

    @property
    def variants(self) -> MemoryVariants:
        return MemoryVariants(self)

    @property
    def stock(self) -> MemoryStock:
        return MemoryStock(self)

    @property
    def orders(self) -> MemoryOrders:
        return MemoryOrders(self)

    # ─────────────────────────────────────────────────────────────────────────
    # Row helpers
    # ─────────────────────────────────────────────────────────────────────────

    def _hydrate(self, row: _StoredLine) -> CartLine:
        return CartLine(
            id=row.id,
            user_id=row.user_id,
            product_id=row.product_id,
            quantity=row.quantity,
            product=self.products.get(row.product_id),
            variants=tuple(
                self.variant_rows[v] for v in row.variant_ids if v in self.variant_rows
            ),
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def _row(self, line_id: str) -> _StoredLine:
        row = self._lines.get(line_id)
        if row is None:
            raise LookupError(f"cart line {line_id} not found")
        return row


# ═══════════════════════════════════════════════════════════════════════════════
# Protocol views
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class MemoryCart:
    db: MemoryBackend

    async def read(self, user_id: str) -> list[CartLine]:
        await self.db._call("cart.read")
        return [self.db._hydrate(r) for r in self.db._lines.values() if r.user_id == user_id]

    async def add(
        self,
        user_id: str,
        product_id: str,
        variant_ids: Sequence[str],
        quantity: int,
    ) -> CartLine:
        await self.db._call("cart.add")
        if product_id not in self.db.products:
            raise LookupError(f"product {product_id} not found")
        now = self.db.clock()
        key = selection_key(product_id, list(variant_ids))

        for row in self.db._lines.values():
            if row.user_id == user_id and selection_key(row.product_id, list(row.variant_ids)) == key:
                row.quantity += quantity
                row.updated_at = now
                return self.db._hydrate(row)

        self.db._line_counter += 1
        row = _StoredLine(
            id=f"line-{self.db._line_counter:04d}",
            user_id=user_id,
            product_id=product_id,
            variant_ids=tuple(variant_ids),
            quantity=quantity,
            created_at=now,
            updated_at=now,
        )
        self.db._lines[row.id] = row
        return self.db._hydrate(row)

    async def update_quantity(self, line_id: str, quantity: int) -> CartLine:
        await self.db._call("cart.update_quantity")
        row = self.db._row(line_id)
        row.quantity = quantity
        row.updated_at = self.db.clock()
        return self.db._hydrate(row)

    async def update_variants(self, line_id: str, variant_ids: Sequence[str]) -> CartLine:
        await self.db._call("cart.update_variants")
        row = self.db._row(line_id)
        row.variant_ids = tuple(variant_ids)
        row.updated_at = self.db.clock()
        return self.db._hydrate(row)

    async def remove(self, line_id: str) -> None:
        await self.db._call("cart.remove")
        self.db._lines.pop(line_id, None)

    async def clear(self, user_id: str) -> None:
        await self.db._call("cart.clear")
        for line_id in [r.id for r in self.db._lines.values() if r.user_id == user_id]:
            del self.db._lines[line_id]


@dataclass(frozen=True, slots=True)
class MemoryPromotions:
    db: MemoryBackend

    async def read(self) -> list[Promotion]:
        await self.db._call("promotions.read")
        now = self.db.clock()
        return [p for p in self.db.promotion_rows if p.is_active_at(now)]


@dataclass(frozen=True, slots=True)
class MemoryVariants:
    db: MemoryBackend

    async def read(self, product_id: str) -> list[Variant]:
        await self.db._call("variants.read")
        return [
            v for v in self.db.variant_rows.values()
            if v.product_id == product_id and v.is_active
        ]


@dataclass(frozen=True, slots=True)
class MemoryStock:
    db: MemoryBackend

    async def read(self, product_id: str) -> int:
        await self.db._call("stock.read")
        product = self.db.products.get(product_id)
        if product is None:
            raise LookupError(f"product {product_id} not found")
        return product.stock_quantity


@dataclass(frozen=True, slots=True)
class MemoryOrders:
    db: MemoryBackend

    async def create(self, order: OrderInput) -> Result[Order, str]:
        """Check and decrement stock for every line, then record the order. All or nothing."""
        await self.db._call("orders.create")

        needed: dict[str, int] = {}
        for line in order.lines:
            needed[line.product_id] = needed.get(line.product_id, 0) + line.quantity
        for product_id, quantity in needed.items():
            product = self.db.products.get(product_id)
            if product is None or product.stock_quantity < quantity:
                name = product.name if product is not None else product_id
                return Error(f"Insufficient stock for {name}")

        for product_id, quantity in needed.items():
            self.db.set_stock(product_id, self.db.products[product_id].stock_quantity - quantity)

        now = self.db.clock()
        self.db._order_counter += 1
        created = Order(
            id=f"order-{self.db._order_counter:04d}",
            order_number=f"MZ-{now:%Y%m%d}-{self.db._order_counter:03d}",
            user_id=order.user_id,
            status=OrderStatus.PENDING,
            pickup=order.pickup,
            contact=order.contact,
            payment_method=order.payment_method,
            lines=order.lines,
            subtotal=order.subtotal,
            discount=order.discount,
            total=order.total,
            created_at=now,
            notes=order.notes,
        )
        self.db.orders_created.append(created)
        return Ok(created)


__all__ = (
    "MemoryBackend",
    "MemoryCart",
    "MemoryPromotions",
    "MemoryVariants",
    "MemoryStock",
    "MemoryOrders",
)
