"""Tests for promotion and variant catalogs."""

from datetime import timedelta
from decimal import Decimal

from kungfu import Error

from cartflow.catalog import (
    DiscountKind,
    ProductImage,
    PromotionCatalog,
    VariantCatalog,
    badge_text,
    is_ending_soon,
    is_new,
    sort_images,
    time_remaining,
)
from cartflow.errors import BackendUnavailable, ValidationError

from .factories import NOW, err, make_product, make_promotion, make_variant, ok


class TestPromotionCatalog:
    async def test_fetch_reads_active_promotions(self, backend):
        result = await PromotionCatalog.fetch(backend.promotions, at=NOW)

        catalog = ok(result)
        assert [p.id for p in catalog.promotions] == ["shirt-20"]
        assert catalog.fetched_at == NOW

    async def test_fetch_failure(self, backend):
        backend.fail("promotions.read")

        result = await PromotionCatalog.fetch(backend.promotions, at=NOW)

        assert isinstance(err(result), BackendUnavailable)
        assert err(result).operation == "promotions.read"

    def test_window_is_inclusive(self):
        promo = make_promotion("p", 10, start=NOW, end=NOW + timedelta(hours=1))
        catalog = PromotionCatalog((promo,), NOW)

        assert catalog.active(NOW) == (promo,)
        assert catalog.active(NOW + timedelta(hours=1)) == (promo,)
        assert catalog.active(NOW + timedelta(hours=1, seconds=1)) == ()

    def test_applicable_to(self):
        shirt = make_product("shirt")
        mine = make_promotion("mine", 10, targets=("shirt",))
        other = make_promotion("other", 10, targets=("mug",))
        catalog = PromotionCatalog((mine, other), NOW)

        assert catalog.applicable_to(shirt) == (mine,)


class TestDisplayHelpers:
    def test_time_remaining_days(self):
        promo = make_promotion("p", 10, end=NOW + timedelta(days=2, hours=3, minutes=5))
        remaining = time_remaining(promo, NOW)

        assert not remaining.expired
        assert (remaining.days, remaining.hours, remaining.minutes) == (2, 3, 5)
        assert remaining.formatted == "2d 3h"

    def test_time_remaining_minutes(self):
        promo = make_promotion("p", 10, end=NOW + timedelta(minutes=4, seconds=7))
        assert time_remaining(promo, NOW).formatted == "4m 7s"

    def test_expired(self):
        promo = make_promotion("p", 10, end=NOW - timedelta(seconds=1))
        remaining = time_remaining(promo, NOW)

        assert remaining.expired
        assert remaining.formatted == "Expired"

    def test_ending_soon_and_new(self):
        promo = make_promotion(
            "p", 10, start=NOW - timedelta(hours=2), end=NOW + timedelta(hours=5)
        )
        assert is_ending_soon(promo, NOW)
        assert is_new(promo, NOW)

        later = make_promotion("q", 10, start=NOW - timedelta(days=3), end=NOW + timedelta(days=3))
        assert not is_ending_soon(later, NOW)
        assert not is_new(later, NOW)

    def test_badge_text(self):
        assert badge_text(make_promotion("p", "20.00")) == "-20%"
        assert badge_text(make_promotion("p", "150", kind=DiscountKind.FIXED_AMOUNT)) == "-₱150"

    def test_sort_images_primary_first(self):
        images = (
            ProductImage("a", "a.jpg", sort_order=1),
            ProductImage("b", "b.jpg", sort_order=0),
            ProductImage("c", "c.jpg", is_primary=True, sort_order=5),
        )
        assert [i.id for i in sort_images(images)] == ["c", "b", "a"]


class TestVariantCatalog:
    def test_resolve_keeps_selection_order(self, shirt_variants):
        catalog = VariantCatalog("shirt", tuple(shirt_variants.values()))

        result = catalog.resolve(["shirt-red", "shirt-xl"])

        assert ok(result) == (shirt_variants["red"], shirt_variants["xl"])

    def test_resolve_rejects_two_of_one_type(self, shirt_variants):
        catalog = VariantCatalog("shirt", tuple(shirt_variants.values()))

        result = catalog.resolve(["shirt-m", "shirt-xl"])

        assert isinstance(err(result), ValidationError)
        assert err(result).message == "Only one size can be selected"

    def test_resolve_rejects_inactive(self, shirt_variants):
        catalog = VariantCatalog("shirt", tuple(shirt_variants.values()))

        result = catalog.resolve(["shirt-gold"])

        assert "no longer available" in str(err(result))

    def test_resolve_rejects_foreign_variant(self, shirt_variants):
        foreign = make_variant("mug-big", "mug", "size", "Big")
        catalog = VariantCatalog("shirt", (*shirt_variants.values(), foreign))

        assert isinstance(catalog.resolve(["mug-big"]), Error)
        assert isinstance(catalog.resolve(["nope"]), Error)

    def test_by_type_groups_active_only(self, shirt_variants):
        catalog = VariantCatalog("shirt", tuple(shirt_variants.values()))

        groups = catalog.by_type()

        assert [v.id for v in groups["size"]] == ["shirt-m", "shirt-xl"]
        assert [v.id for v in groups["color"]] == ["shirt-red"]

    async def test_fetch(self, backend):
        result = await VariantCatalog.fetch(backend.variants, "shirt")

        variants = ok(result).variants
        assert {v.id for v in variants} == {"shirt-m", "shirt-xl", "shirt-red"}
        assert all(v.price_adjustment >= Decimal("0") for v in variants)
