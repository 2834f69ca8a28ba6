"""
Cart — the active user's cart with optimistic, reconciled mutations.

    from cartflow import cart as Ct

    store = Ct.CartStore(api.cart, variants=api.variants, policy=Ct.CartPolicy())
    await store.load(user_id)
    await store.update_quantity(line_id, 0)   # same as remove(line_id)
"""

from cartflow.cart._types import selection_key, CartLine
from cartflow.cart._policy import CartPolicy
from cartflow.cart._store import Listener, CartStore

__all__ = (
    "selection_key",
    "CartLine",
    "CartPolicy",
    "Listener",
    "CartStore",
)
