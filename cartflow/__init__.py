"""
cartflow — cart pricing and pickup checkout for a mobile storefront.

    from cartflow import catalog as K    # Products, promotions, variants
    from cartflow import pricing as P    # Line prices and cart totals
    from cartflow import cart as Ct      # Cart store
    from cartflow import checkout as Co  # Stock revalidation + order placement
    from cartflow import backend as B    # Collaborator protocols, in-memory backend
"""

from cartflow import catalog
from cartflow import pricing
from cartflow import cart
from cartflow import checkout
from cartflow import backend
from cartflow import errors
from cartflow import lift
from cartflow._types import (
    Result,
    Ok,
    Error,
    LazyCoroResult,
    Lazy,
    Money,
    Clock,
    money,
    system_clock,
)

__version__ = "0.1.0"

__all__ = (
    "catalog",
    "pricing",
    "cart",
    "checkout",
    "backend",
    "errors",
    "lift",
    "Result",
    "Ok",
    "Error",
    "LazyCoroResult",
    "Lazy",
    "Money",
    "Clock",
    "money",
    "system_clock",
)
