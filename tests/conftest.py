"""Pytest fixtures for cartflow tests."""

from datetime import date

import pytest

from cartflow.backend import MemoryBackend
from cartflow.cart import CartStore
from cartflow.catalog import Product, Variant
from cartflow.checkout import CheckoutForm, PaymentMethod, PickupSlot

from .factories import clock, make_product, make_promotion, make_variant


@pytest.fixture
def shirt() -> Product:
    return make_product("shirt", price=100, stock=5)


@pytest.fixture
def mug() -> Product:
    return make_product("mug", price=50, stock=2, category="home")


@pytest.fixture
def cap() -> Product:
    return make_product("cap", price=80, stock=0)


@pytest.fixture
def shirt_variants() -> dict[str, Variant]:
    return {
        "m": make_variant("shirt-m", "shirt", "size", "M"),
        "xl": make_variant("shirt-xl", "shirt", "size", "XL", 15),
        "red": make_variant("shirt-red", "shirt", "color", "Red", 5),
        "gold": make_variant("shirt-gold", "shirt", "color", "Gold", 40, active=False),
    }


@pytest.fixture
def backend(shirt, mug, cap, shirt_variants) -> MemoryBackend:
    api = MemoryBackend(clock=clock)
    api.seed(
        products=[shirt, mug, cap],
        variants=list(shirt_variants.values()),
        promotions=[make_promotion("shirt-20", 20, targets=("shirt",))],
    )
    return api


@pytest.fixture
async def store(backend) -> CartStore:
    cart = CartStore(backend.cart, variants=backend.variants)
    await cart.load("user-1")
    return cart


@pytest.fixture
def form() -> CheckoutForm:
    return CheckoutForm(
        contact_name="Ana Cruz",
        phone="0917 123 4567",
        pickup_date=date(2026, 3, 11),
        pickup_slot=PickupSlot.AFTERNOON,
        payment_method=PaymentMethod.CASH,
    )
