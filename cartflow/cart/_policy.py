"""
Cart policy — behavior configuration.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class CartPolicy:
    """
    Cart store configuration.

    Example:
        policy = CartPolicy().with_stock_hint(False).with_refresh(True)

    Note: Immutable — each method returns new CartPolicy.
    """

    # Check the product's stock snapshot before add/update. Best effort
    # only: checkout re-reads live stock regardless.
    check_stock_hint: bool = True
    # Re-read the whole cart after each acknowledged write.
    refresh_after_write: bool = True

    def with_stock_hint(self, enabled: bool = True) -> CartPolicy:
        return CartPolicy(
            check_stock_hint=enabled,
            refresh_after_write=self.refresh_after_write,
        )

    def with_refresh(self, enabled: bool = True) -> CartPolicy:
        return CartPolicy(
            check_stock_hint=self.check_stock_hint,
            refresh_after_write=enabled,
        )


__all__ = ("CartPolicy",)
