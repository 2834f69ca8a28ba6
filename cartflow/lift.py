"""
Lift — turning collaborator calls into LazyCoroResult.

Re-exports catching_async from combinators.lift with the one wrapper every
backend call goes through.
"""

from __future__ import annotations

from collections.abc import Callable, Awaitable

# Re-export from combinators.lift
from combinators.lift import catching_async

from cartflow._types import Lazy
from cartflow.errors import BackendUnavailable


def backend_call[T](
    operation: str,
    awaitable_fn: Callable[[], Awaitable[T]],
) -> Lazy[T, BackendUnavailable]:
    """
    Wrap a collaborator call; any exception becomes BackendUnavailable.

    Example:
        result = await backend_call("stock.read", lambda: stock.read(pid))
    """
    return catching_async(
        awaitable_fn,
        on_error=lambda e: BackendUnavailable(operation, str(e) or type(e).__name__),
    )


__all__ = (
    # From combinators.lift
    "catching_async",
    # Cartflow additions
    "backend_call",
)
