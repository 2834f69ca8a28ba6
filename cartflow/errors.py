"""
Error taxonomy.

Every error is a frozen value that can travel inside ``Error(...)`` or be
raised. None of them is fatal: each one is rendered by the UI and the user
may retry.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ValidationError(Exception):
    """A form field or argument is unacceptable."""

    field: str
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True, slots=True)
class UnknownLine(Exception):
    line_id: str

    def __str__(self) -> str:
        return f"Cart line {self.line_id} not found"


@dataclass(frozen=True, slots=True)
class OutOfStock(Exception):
    product_id: str
    product_name: str

    def __str__(self) -> str:
        return (
            f"{self.product_name} is currently out of stock. "
            "Please remove it from your cart."
        )


@dataclass(frozen=True, slots=True)
class InsufficientStock(Exception):
    product_id: str
    product_name: str
    requested: int
    available: int

    def __str__(self) -> str:
        return (
            f"Only {self.available} units of {self.product_name} available. "
            f"You have {self.requested} in your cart."
        )


@dataclass(frozen=True, slots=True)
class BackendUnavailable(Exception):
    """A collaborator call failed. Retryable."""

    operation: str
    message: str

    def __str__(self) -> str:
        return f"{self.operation} failed: {self.message}"


@dataclass(frozen=True, slots=True)
class OrderRejected(Exception):
    """The order collaborator refused the order; reason is passed through verbatim."""

    reason: str

    def __str__(self) -> str:
        return self.reason


@dataclass(frozen=True, slots=True)
class CheckoutInProgress(Exception):
    def __str__(self) -> str:
        return "A checkout is already in progress"


@dataclass(frozen=True, slots=True)
class CheckoutCancelled(Exception):
    def __str__(self) -> str:
        return "Checkout was cancelled"


type StockError = OutOfStock | InsufficientStock

type CartError = ValidationError | UnknownLine | StockError | BackendUnavailable

type CheckoutError = (
    ValidationError
    | StockError
    | BackendUnavailable
    | OrderRejected
    | CheckoutInProgress
    | CheckoutCancelled
)


__all__ = (
    "ValidationError",
    "UnknownLine",
    "OutOfStock",
    "InsufficientStock",
    "BackendUnavailable",
    "OrderRejected",
    "CheckoutInProgress",
    "CheckoutCancelled",
    "StockError",
    "CartError",
    "CheckoutError",
)
