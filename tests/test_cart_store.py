"""Tests for CartStore: optimistic writes, rollback and reconciliation."""

import asyncio
from dataclasses import dataclass, field

import pytest
from kungfu import Error, Ok

from cartflow.backend import MemoryCart
from cartflow.cart import CartPolicy, CartStore
from cartflow.errors import (
    BackendUnavailable,
    InsufficientStock,
    OutOfStock,
    UnknownLine,
    ValidationError,
)

from .factories import NOW, err, make_promotion, ok


@dataclass
class TrackingCart:
    """Cart backend that records how many adds and quantity writes overlap."""

    inner: MemoryCart
    in_flight: int = 0
    peak: int = 0
    seen: list[int] = field(default_factory=list)

    async def update_quantity(self, line_id, quantity):
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        try:
            await asyncio.sleep(0.01)
            self.seen.append(quantity)
            return await self.inner.update_quantity(line_id, quantity)
        finally:
            self.in_flight -= 1

    async def add(self, user_id, product_id, variant_ids, quantity):
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        try:
            await asyncio.sleep(0.01)
            return await self.inner.add(user_id, product_id, variant_ids, quantity)
        finally:
            self.in_flight -= 1

    def __getattr__(self, name):
        return getattr(self.inner, name)


@pytest.fixture
async def shirt_line(store, shirt, shirt_variants):
    return ok(await store.add(shirt, [shirt_variants["m"]], 1))


@pytest.fixture
async def tracked(backend):
    tracking = TrackingCart(backend.cart)
    store = CartStore(tracking, variants=backend.variants)
    await store.load("user-1")
    return tracking, store


class TestLoad:
    async def test_load_empty(self, backend):
        store = CartStore(backend.cart, variants=backend.variants)

        result = await store.load("user-1")

        assert ok(result) == ()
        assert store.user_id == "user-1"

    async def test_load_failure_keeps_store_unloaded(self, backend):
        store = CartStore(backend.cart, variants=backend.variants)
        backend.fail("cart.read")

        result = await store.load("user-1")

        assert isinstance(err(result), BackendUnavailable)
        assert store.user_id is None

    async def test_load_reads_only_own_lines(self, backend, shirt):
        await backend.cart.add("someone-else", shirt.id, [], 1)
        await backend.cart.add("user-1", shirt.id, [], 2)
        store = CartStore(backend.cart, variants=backend.variants)

        await store.load("user-1")

        assert [line.quantity for line in store.lines] == [2]
        assert store.lines[0].product == shirt


class TestAdd:
    async def test_add_creates_confirmed_line(self, store, backend, shirt, shirt_variants):
        result = await store.add(shirt, [shirt_variants["xl"], shirt_variants["red"]], 2)

        line = ok(result)
        assert line.quantity == 2
        assert set(line.variant_ids) == {"shirt-xl", "shirt-red"}
        assert store.confirmed_lines == store.lines
        assert store.count == 2

    async def test_same_selection_merges(self, store, shirt, shirt_variants):
        await store.add(shirt, [shirt_variants["m"], shirt_variants["red"]], 1)
        await store.add(shirt, [shirt_variants["red"], shirt_variants["m"]], 2)

        assert len(store.lines) == 1
        assert store.lines[0].quantity == 3

    async def test_different_selection_is_new_line(self, store, shirt, shirt_variants):
        await store.add(shirt, [shirt_variants["m"]], 1)
        await store.add(shirt, [shirt_variants["xl"]], 1)

        assert [line.variant_ids for line in store.lines] == [("shirt-m",), ("shirt-xl",)]

    async def test_out_of_stock_product_not_sent(self, store, backend, cap):
        result = await store.add(cap, [], 1)

        assert err(result) == OutOfStock("cap", "Cap")
        assert "cart.add" not in backend.calls

    async def test_quantity_over_stock_counts_existing_line(self, store, shirt, shirt_line):
        result = await store.add(shirt, [store.lines[0].variants[0]], 5)

        assert err(result) == InsufficientStock("shirt", "Shirt", 6, 5)
        assert store.lines[0].quantity == 1

    async def test_stock_hint_can_be_disabled(self, backend, cap):
        store = CartStore(
            backend.cart,
            variants=backend.variants,
            policy=CartPolicy().with_stock_hint(False),
        )
        await store.load("user-1")

        result = await store.add(cap, [], 1)

        assert isinstance(result, Ok)

    @pytest.mark.parametrize("quantity", [0, -2])
    async def test_non_positive_quantity(self, store, shirt, quantity):
        result = await store.add(shirt, [], quantity)

        assert isinstance(err(result), ValidationError)

    async def test_two_variants_of_one_type(self, store, shirt, shirt_variants):
        result = await store.add(shirt, [shirt_variants["m"], shirt_variants["xl"]], 1)

        assert err(result).field == "variants"

    async def test_requires_loaded_cart(self, backend, shirt):
        store = CartStore(backend.cart, variants=backend.variants)

        result = await store.add(shirt, [], 1)

        assert err(result).field == "user"

    async def test_backend_failure(self, store, backend, shirt):
        backend.fail("cart.add")

        result = await store.add(shirt, [], 1)

        assert isinstance(err(result), BackendUnavailable)
        assert store.lines == ()

    async def test_merging_add_waits_for_line_writes(self, tracked, shirt):
        tracking, store = tracked
        first = asyncio.create_task(store.add(shirt, [], 1))
        second = asyncio.create_task(store.add(shirt, [], 1))

        line = ok(await first)
        await store.update_quantity(line.id, 3)
        ok(await second)

        assert tracking.peak == 1
        assert len(store.lines) == 1

    async def test_concurrent_merges_check_stock_in_turn(self, tracked, shirt):
        _, store = tracked

        results = await asyncio.gather(
            store.add(shirt, [], 3),
            store.add(shirt, [], 3),
        )

        assert isinstance(results[0], Ok)
        assert err(results[1]) == InsufficientStock("shirt", "Shirt", 6, 5)
        assert store.lines[0].quantity == 3


class TestUpdateQuantity:
    async def test_update(self, store, backend, shirt_line):
        result = await store.update_quantity(shirt_line.id, 4)

        assert ok(result).quantity == 4
        assert store.confirmed_lines[0].quantity == 4
        assert (await backend.cart.read("user-1"))[0].quantity == 4

    async def test_zero_is_remove(self, store, backend, shirt, shirt_variants):
        first = ok(await store.add(shirt, [shirt_variants["m"]], 1))
        second = ok(await store.add(shirt, [shirt_variants["xl"]], 1))
        backend.calls.clear()

        by_zero = await store.update_quantity(first.id, 0)
        by_remove = await store.remove(second.id)

        assert ok(by_zero) is None
        assert isinstance(by_remove, Ok)
        assert store.lines == ()
        assert await backend.cart.read("user-1") == []
        assert "cart.update_quantity" not in backend.calls
        assert backend.calls.count("cart.remove") == 2

    async def test_negative_is_remove(self, store, shirt_line):
        result = await store.update_quantity(shirt_line.id, -1)

        assert isinstance(result, Ok)
        assert store.lines == ()

    async def test_unknown_line(self, store):
        result = await store.update_quantity("line-9999", 2)

        assert err(result) == UnknownLine("line-9999")

    async def test_over_stock_hint(self, store, backend, shirt_line):
        result = await store.update_quantity(shirt_line.id, 6)

        assert isinstance(err(result), InsufficientStock)
        assert "cart.update_quantity" not in backend.calls

    async def test_failure_rolls_back(self, store, backend, shirt_line):
        backend.fail("cart.update_quantity")

        result = await store.update_quantity(shirt_line.id, 3)

        assert isinstance(err(result), BackendUnavailable)
        assert store.line(shirt_line.id).quantity == 1
        assert store.confirmed_lines[0].quantity == 1

    async def test_patch_visible_while_in_flight(self, store, backend, shirt_line):
        backend.latency = 0.01
        backend.fail("cart.update_quantity")

        task = asyncio.create_task(store.update_quantity(shirt_line.id, 3))
        await asyncio.sleep(0)

        assert store.line(shirt_line.id).quantity == 3
        assert store.confirmed_lines[0].quantity == 1

        await task
        assert store.line(shirt_line.id).quantity == 1

    async def test_writes_to_one_line_never_overlap(self, tracked, shirt):
        tracking, store = tracked
        line = ok(await store.add(shirt, [], 1))

        await asyncio.gather(
            store.update_quantity(line.id, 2),
            store.update_quantity(line.id, 4),
        )

        assert tracking.peak == 1
        assert tracking.seen == [2, 4]
        assert store.line(line.id).quantity == 4

    async def test_refresh_failure_keeps_acknowledged_state(self, store, backend, shirt_line):
        backend.fail("cart.read")

        result = await store.update_quantity(shirt_line.id, 2)

        assert isinstance(result, Ok)
        assert store.line(shirt_line.id).quantity == 2


class TestUpdateVariants:
    async def test_change_size(self, store, backend, shirt_line):
        result = await store.update_variants(shirt_line.id, ["shirt-xl"])

        assert ok(result).variant_ids == ("shirt-xl",)
        assert (await backend.cart.read("user-1"))[0].variant_ids == ("shirt-xl",)

    async def test_invalid_selection_not_sent(self, store, backend, shirt_line):
        result = await store.update_variants(shirt_line.id, ["shirt-m", "shirt-xl"])

        assert isinstance(err(result), ValidationError)
        assert "cart.update_variants" not in backend.calls

    async def test_variant_read_failure(self, store, backend, shirt_line):
        backend.fail("variants.read")

        result = await store.update_variants(shirt_line.id, ["shirt-xl"])

        assert err(result).operation == "variants.read"
        assert store.line(shirt_line.id).variant_ids == ("shirt-m",)


class TestRemoveAndClear:
    async def test_remove_failure_restores_line(self, store, backend, shirt_line):
        backend.fail("cart.remove")

        result = await store.remove(shirt_line.id)

        assert isinstance(result, Error)
        assert store.line(shirt_line.id) is not None

    async def test_remove_unknown(self, store):
        result = await store.remove("line-0404")

        assert isinstance(err(result), UnknownLine)

    async def test_clear(self, store, backend, shirt_line, mug):
        await store.add(mug, [], 1)

        result = await store.clear()

        assert isinstance(result, Ok)
        assert store.lines == ()
        assert store.confirmed_lines == ()
        assert await backend.cart.read("user-1") == []

    async def test_clear_is_optimistic_and_rolls_back(self, store, backend, shirt_line):
        backend.latency = 0.01
        backend.fail("cart.clear")

        task = asyncio.create_task(store.clear())
        await asyncio.sleep(0)
        assert store.lines == ()

        result = await task
        assert isinstance(result, Error)
        assert [line.id for line in store.lines] == [shirt_line.id]

    async def test_clear_while_write_in_flight(self, tracked, backend, shirt):
        tracking, store = tracked
        line = ok(await store.add(shirt, [], 1))

        write = asyncio.create_task(store.update_quantity(line.id, 2))
        while tracking.in_flight == 0:
            await asyncio.sleep(0)

        cleared = await store.clear()
        outcome = await write

        assert isinstance(cleared, Ok)
        # The row was gone by the time the write reached the backend.
        assert isinstance(err(outcome), BackendUnavailable)
        assert store.lines == ()
        assert store.confirmed_lines == ()
        assert await backend.cart.read("user-1") == []


class TestObservation:
    async def test_listeners_see_each_change(self, store, shirt_line):
        seen = []
        unsubscribe = store.subscribe(lambda lines: seen.append(tuple(line.quantity for line in lines)))

        await store.update_quantity(shirt_line.id, 2)
        unsubscribe()
        await store.update_quantity(shirt_line.id, 3)

        assert seen[0] == (2,)
        assert seen[-1] == (2,)

    async def test_totals_follow_visible_lines(self, store, shirt, shirt_variants):
        await store.add(shirt, [shirt_variants["xl"]], 2)
        promotions = [make_promotion("shirt-20", 20, targets=("shirt",))]

        totals = store.totals(promotions, at=NOW)

        # (100 - 20 + 15) * 2
        assert str(totals.subtotal) == "190.00"
        assert totals.item_count == 2
