"""
CartStore — owns the active user's cart lines.

State is kept in two layers:

    confirmed   last state the backend acknowledged
    pending     optimistic patches for writes still in flight, per line

`lines` is confirmed with pending applied. A failed write drops its patch,
so the confirmed state is never touched by a failure. A successful write
folds the backend's answer into confirmed, then re-reads the whole cart.

At most one write per line is in flight: writes to the same line queue on
a per-line lock and run in arrival order (last write wins).
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from datetime import datetime
from typing import TYPE_CHECKING

from kungfu import Result, Ok, Error

from cartflow.cart._policy import CartPolicy
from cartflow.cart._types import CartLine, selection_key
from cartflow.catalog._types import Product, Promotion, Variant
from cartflow.catalog._variants import VariantCatalog
from cartflow.errors import (
    CartError,
    InsufficientStock,
    OutOfStock,
    UnknownLine,
    ValidationError,
)
from cartflow.lift import backend_call
from cartflow.pricing._engine import cart_totals
from cartflow.pricing._types import CartTotals

if TYPE_CHECKING:
    from cartflow.backend._protocols import CartBackend, VariantSource

logger = logging.getLogger(__name__)

type Listener = Callable[[tuple[CartLine, ...]], None]

# Sentinel patch value: line removed, not yet acknowledged.
_REMOVED = None


class CartStore:
    """
    Example:
        store = CartStore(api.cart, variants=api.variants)
        await store.load("user-1")

        match await store.add(product, [size_m], 2):
            case Ok(line):
                ...
            case Error(e):
                show_retryable(str(e))

        totals = store.totals(catalog.active(now))
    """

    def __init__(
        self,
        backend: CartBackend,
        variants: VariantSource,
        policy: CartPolicy | None = None,
    ) -> None:
        self._backend = backend
        self._variants = variants
        self._policy = policy if policy is not None else CartPolicy()
        self._user_id: str | None = None
        self._confirmed: tuple[CartLine, ...] = ()
        self._pending: dict[str, CartLine | None] = {}
        self._clearing = False
        # Bumped whenever confirmed state is replaced wholesale (load, clear);
        # answers to calls issued under an older generation are not folded in.
        self._generation = 0
        self._locks: dict[str, asyncio.Lock] = {}
        self._listeners: list[Listener] = []

    # ─────────────────────────────────────────────────────────────────────────
    # Observation
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def user_id(self) -> str | None:
        return self._user_id

    @property
    def confirmed_lines(self) -> tuple[CartLine, ...]:
        return self._confirmed

    @property
    def lines(self) -> tuple[CartLine, ...]:
        if self._clearing:
            return ()
        view: list[CartLine] = []
        for line in self._confirmed:
            if line.id not in self._pending:
                view.append(line)
            elif (patched := self._pending[line.id]) is not _REMOVED:
                view.append(patched)
        return tuple(view)

    @property
    def count(self) -> int:
        return sum(line.quantity for line in self.lines)

    def line(self, line_id: str) -> CartLine | None:
        for line in self.lines:
            if line.id == line_id:
                return line
        return None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call `listener` with the visible lines after every change."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def totals(self, promotions: Sequence[Promotion], at: datetime | None = None) -> CartTotals:
        """Fresh totals over the visible lines. Never cached."""
        return cart_totals(self.lines, promotions, at)

    # ─────────────────────────────────────────────────────────────────────────
    # Load
    # ─────────────────────────────────────────────────────────────────────────

    async def load(self, user_id: str) -> Result[tuple[CartLine, ...], CartError]:
        result = await backend_call("cart.read", lambda: self._backend.read(user_id))
        match result:
            case Ok(lines):
                self._user_id = user_id
                self._generation += 1
                self._confirmed = tuple(lines)
                logger.debug("cart loaded for %s: %d lines", user_id, len(self._confirmed))
                self._notify()
                return Ok(self.lines)
            case Error(e):
                logger.warning("cart load failed for %s: %s", user_id, e)
                return Error(e)

    # ─────────────────────────────────────────────────────────────────────────
    # Mutations
    # ─────────────────────────────────────────────────────────────────────────

    async def add(
        self,
        product: Product,
        variants: Sequence[Variant],
        quantity: int,
    ) -> Result[CartLine, CartError]:
        """Add `quantity` of a product+selection; merges into an existing line."""
        if self._user_id is None:
            return Error(ValidationError("user", "Cart is not loaded"))
        user_id = self._user_id
        if quantity <= 0:
            return Error(ValidationError("quantity", "Quantity must be at least 1"))

        match VariantCatalog(product.id, tuple(variants)).resolve(v.id for v in variants):
            case Error(e):
                return Error(e)
            case Ok(selected):
                variant_ids = [v.id for v in selected]

        # Lock order: selection, then line. Line writes take only the line lock.
        key = selection_key(product.id, variant_ids)
        async with self._lock(key):
            existing = next((line for line in self.lines if line.selection == key), None)
            if existing is None:
                return await self._add(user_id, product, variant_ids, quantity, 0)
            async with self._lock(existing.id):
                current = self.line(existing.id)
                in_cart = current.quantity if current is not None else 0
                return await self._add(user_id, product, variant_ids, quantity, in_cart)

    async def _add(
        self,
        user_id: str,
        product: Product,
        variant_ids: list[str],
        quantity: int,
        in_cart: int,
    ) -> Result[CartLine, CartError]:
        if self._policy.check_stock_hint:
            if product.stock_quantity == 0:
                return Error(OutOfStock(product.id, product.name))
            if in_cart + quantity > product.stock_quantity:
                return Error(InsufficientStock(
                    product.id, product.name, in_cart + quantity, product.stock_quantity
                ))

        generation = self._generation
        result = await backend_call(
            "cart.add",
            lambda: self._backend.add(user_id, product.id, variant_ids, quantity),
        )
        match result:
            case Ok(line):
                if generation == self._generation:
                    self._confirm(line)
                else:
                    logger.debug("cart replaced during add of %s, not folding line in", product.id)
                await self._refresh()
                return Ok(self.line(line.id) or line)
            case Error(e):
                logger.warning("cart add of %s failed: %s", product.id, e)
                return Error(e)

    async def update_quantity(
        self,
        line_id: str,
        quantity: int,
    ) -> Result[CartLine | None, CartError]:
        """Set a line's quantity. quantity <= 0 removes the line and yields Ok(None)."""
        if quantity <= 0:
            removed = await self.remove(line_id)
            match removed:
                case Ok(_):
                    return Ok(None)
                case Error(e):
                    return Error(e)

        async with self._lock(line_id):
            line = self.line(line_id)
            if line is None:
                return Error(UnknownLine(line_id))

            product = line.product
            if self._policy.check_stock_hint and product is not None and quantity > product.stock_quantity:
                return Error(InsufficientStock(
                    product.id, product.name, quantity, product.stock_quantity
                ))

            return await self._write(
                line_id,
                line.with_quantity(quantity),
                "cart.update_quantity",
                lambda: self._backend.update_quantity(line_id, quantity),
            )

    async def update_variants(
        self,
        line_id: str,
        variant_ids: Sequence[str],
    ) -> Result[CartLine | None, CartError]:
        async with self._lock(line_id):
            line = self.line(line_id)
            if line is None:
                return Error(UnknownLine(line_id))

            match await VariantCatalog.fetch(self._variants, line.product_id):
                case Error(e):
                    return Error(e)
                case Ok(catalog):
                    pass

            match catalog.resolve(variant_ids):
                case Error(e):
                    return Error(e)
                case Ok(selected):
                    ids = [v.id for v in selected]

            return await self._write(
                line_id,
                line.with_variants(selected),
                "cart.update_variants",
                lambda: self._backend.update_variants(line_id, ids),
            )

    async def remove(self, line_id: str) -> Result[None, CartError]:
        async with self._lock(line_id):
            if self.line(line_id) is None:
                return Error(UnknownLine(line_id))

            result = await self._write(
                line_id,
                _REMOVED,
                "cart.remove",
                lambda: self._backend.remove(line_id),
            )
            match result:
                case Ok(_):
                    return Ok(None)
                case Error(e):
                    return Error(e)

    async def clear(self) -> Result[None, CartError]:
        if self._user_id is None:
            return Error(ValidationError("user", "Cart is not loaded"))
        user_id = self._user_id

        self._clearing = True
        self._generation += 1
        self._notify()
        result = await backend_call("cart.clear", lambda: self._backend.clear(user_id))
        self._clearing = False

        match result:
            case Ok(_):
                self._generation += 1
                self._confirmed = ()
                self._pending.clear()
                self._notify()
                return Ok(None)
            case Error(e):
                logger.warning("cart clear failed, restoring %d lines: %s", len(self._confirmed), e)
                self._notify()
                return Error(e)

    # ─────────────────────────────────────────────────────────────────────────
    # Internals
    # ─────────────────────────────────────────────────────────────────────────

    def _lock(self, key: str) -> asyncio.Lock:
        return self._locks.setdefault(key, asyncio.Lock())

    async def _write(
        self,
        line_id: str,
        patch: CartLine | None,
        operation: str,
        call: Callable[[], Awaitable[CartLine | None]],
    ) -> Result[CartLine | None, CartError]:
        """Apply `patch` optimistically, run `call`, then reconcile or roll back."""
        self._pending[line_id] = patch
        self._notify()

        generation = self._generation
        result = await backend_call(operation, call)
        # A clear may already have dropped the patch.
        self._pending.pop(line_id, None)

        if generation != self._generation:
            logger.debug("cart replaced during %s on line %s, reconciling", operation, line_id)
            match result:
                case Ok(_):
                    await self._refresh()
                    return Ok(self.line(line_id))
                case Error(e):
                    self._notify()
                    return Error(e)

        match result:
            case Ok(acknowledged):
                if isinstance(acknowledged, CartLine):
                    self._confirm(acknowledged)
                else:
                    self._confirmed = tuple(c for c in self._confirmed if c.id != line_id)
                    self._locks.pop(line_id, None)
                await self._refresh()
                return Ok(self.line(line_id))
            case Error(e):
                logger.warning("%s on line %s failed, rolled back: %s", operation, line_id, e)
                self._notify()
                return Error(e)

    def _confirm(self, line: CartLine) -> None:
        if any(c.id == line.id for c in self._confirmed):
            self._confirmed = tuple(line if c.id == line.id else c for c in self._confirmed)
        else:
            self._confirmed = (*self._confirmed, line)
        self._notify()

    async def _refresh(self) -> None:
        """Re-read the authoritative cart. Failure keeps the acknowledged state."""
        if not self._policy.refresh_after_write or self._user_id is None:
            return
        user_id = self._user_id
        generation = self._generation
        result = await backend_call("cart.read", lambda: self._backend.read(user_id))
        match result:
            case Ok(lines):
                if generation != self._generation:
                    logger.debug("dropping cart read issued before the cart was replaced")
                    return
                self._confirmed = tuple(lines)
                logger.debug("cart reconciled: %d lines", len(self._confirmed))
                self._notify()
            case Error(e):
                logger.warning("cart refresh after write failed: %s", e)

    def _notify(self) -> None:
        lines = self.lines
        for listener in tuple(self._listeners):
            listener(lines)


__all__ = ("Listener", "CartStore")
