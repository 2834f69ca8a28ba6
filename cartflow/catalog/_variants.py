"""
VariantCatalog — read-only snapshot of one product's selectable variants.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from typing import TYPE_CHECKING

from kungfu import Result, Ok, Error

from cartflow.catalog._types import Variant
from cartflow.errors import BackendUnavailable, ValidationError
from cartflow.lift import backend_call

if TYPE_CHECKING:
    from cartflow.backend._protocols import VariantSource


@dataclass(frozen=True, slots=True)
class VariantCatalog:
    product_id: str
    variants: tuple[Variant, ...]

    @classmethod
    async def fetch(
        cls,
        source: VariantSource,
        product_id: str,
    ) -> Result[VariantCatalog, BackendUnavailable]:
        result = await backend_call("variants.read", lambda: source.read(product_id))
        match result:
            case Ok(variants):
                return Ok(cls(product_id, tuple(variants)))
            case Error(e):
                return Error(e)

    def by_type(self) -> dict[str, tuple[Variant, ...]]:
        """Active variants grouped by type, in catalog order."""
        groups: dict[str, list[Variant]] = {}
        for variant in self.variants:
            if variant.is_active and variant.product_id == self.product_id:
                groups.setdefault(variant.type, []).append(variant)
        return {t: tuple(vs) for t, vs in groups.items()}

    def resolve(self, variant_ids: Iterable[str]) -> Result[tuple[Variant, ...], ValidationError]:
        """
        Turn a selection of ids into variants.

        Rejects unknown, inactive or foreign variants, and more than one
        variant of the same type.
        """
        known = {v.id: v for v in self.variants}
        selected: list[Variant] = []
        seen_types: set[str] = set()

        for variant_id in variant_ids:
            variant = known.get(variant_id)
            if variant is None or variant.product_id != self.product_id:
                return Error(ValidationError("variants", f"Unknown variant {variant_id}"))
            if not variant.is_active:
                return Error(ValidationError("variants", f"{variant.label} is no longer available"))
            if variant.type in seen_types:
                return Error(ValidationError("variants", f"Only one {variant.type} can be selected"))
            seen_types.add(variant.type)
            selected.append(variant)

        return Ok(tuple(selected))


__all__ = ("VariantCatalog",)
