"""
CheckoutCoordinator — one order placement attempt at a time.

Stages run strictly in sequence and stop at the first failure:

    ValidatingForm   required fields, pickup date, non-empty cart (no I/O)
    ValidatingStock  live stock per line, cart order
    Submitting       fresh promotions → priced snapshot → order collaborator

Nothing is created unless every stage passes. A cancelled attempt stops
touching coordinator state; a backend call already in flight is left to
finish and its result is dropped.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from kungfu import Result, Ok, Error

from cartflow._types import Clock, system_clock
from cartflow.cart._store import CartStore
from cartflow.catalog._promotions import PromotionCatalog
from cartflow.checkout._order import build_order_input
from cartflow.checkout._policy import CheckoutPolicy, OnBusy
from cartflow.checkout._types import (
    CheckoutForm,
    CheckoutState,
    Order,
    TRANSITIONS,
)
from cartflow.checkout._validate import validate_form, validate_stock
from cartflow.errors import (
    CheckoutCancelled,
    CheckoutError,
    CheckoutInProgress,
    OrderRejected,
    ValidationError,
)
from cartflow.lift import backend_call

if TYPE_CHECKING:
    from cartflow.backend._protocols import OrderBackend, PromotionSource, StockSource

logger = logging.getLogger(__name__)

type StateListener = Callable[[CheckoutState], None]


@dataclass(slots=True)
class _Attempt:
    cancelled: bool = False


class CheckoutCoordinator:
    """
    Example:
        checkout = CheckoutCoordinator(
            store, promotions=api.promotions, stock=api.stock, orders=api.orders
        )

        match await checkout.place_order(form):
            case Ok(order):
                navigate_to_confirmation(order)
            case Error(InsufficientStock() as e):
                show(str(e))
            case Error(e):
                show_retryable(str(e))
    """

    def __init__(
        self,
        cart: CartStore,
        promotions: PromotionSource,
        stock: StockSource,
        orders: OrderBackend,
        policy: CheckoutPolicy | None = None,
        clock: Clock = system_clock,
    ) -> None:
        self._cart = cart
        self._promotions = promotions
        self._stock = stock
        self._orders = orders
        self._policy = policy if policy is not None else CheckoutPolicy()
        self._clock = clock
        self._lock = asyncio.Lock()
        self._attempt: _Attempt | None = None
        self._state = CheckoutState.IDLE
        self._last_error: CheckoutError | None = None
        self._last_order: Order | None = None
        self._listeners: list[StateListener] = []

    # ─────────────────────────────────────────────────────────────────────────
    # Observation
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def state(self) -> CheckoutState:
        return self._state

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    @property
    def last_error(self) -> CheckoutError | None:
        return self._last_error

    @property
    def last_order(self) -> Order | None:
        return self._last_order

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ─────────────────────────────────────────────────────────────────────────
    # Commands
    # ─────────────────────────────────────────────────────────────────────────

    async def validate(self, form: CheckoutForm) -> Result[CheckoutForm, CheckoutError]:
        """Run form and stock validation only. Touches no state."""
        match self._check_form(form):
            case Error(e):
                return Error(e)
            case Ok((_, clean)):
                pass

        match await validate_stock(self._cart.confirmed_lines, self._stock):
            case Error(e):
                return Error(e)
            case Ok(_):
                return Ok(clean)

    async def place_order(self, form: CheckoutForm) -> Result[Order, CheckoutError]:
        if self._lock.locked() and self._policy.on_busy is OnBusy.REJECT:
            logger.debug("checkout already in flight, rejecting second trigger")
            return Error(CheckoutInProgress())

        async with self._lock:
            attempt = _Attempt()
            self._attempt = attempt
            try:
                return await self._run(form, attempt)
            finally:
                if self._attempt is attempt:
                    self._attempt = None

    def cancel(self) -> None:
        """Abandon the in-flight attempt, if any, and return to IDLE."""
        if self._attempt is None:
            return
        self._attempt.cancelled = True
        self._attempt = None
        logger.debug("checkout cancelled in %s", self._state.name)
        self._set(CheckoutState.IDLE)

    def reset(self) -> None:
        """Return a finished (SUCCEEDED/FAILED) coordinator to IDLE."""
        if self._state in (CheckoutState.SUCCEEDED, CheckoutState.FAILED):
            self._set(CheckoutState.IDLE)

    # ─────────────────────────────────────────────────────────────────────────
    # Pipeline
    # ─────────────────────────────────────────────────────────────────────────

    async def _run(self, form: CheckoutForm, attempt: _Attempt) -> Result[Order, CheckoutError]:
        self.reset()
        self._last_error = None

        self._enter(CheckoutState.VALIDATING_FORM, attempt)
        match self._check_form(form):
            case Error(e):
                return self._fail(e, attempt)
            case Ok((user_id, clean)):
                pass

        lines = self._cart.confirmed_lines

        self._enter(CheckoutState.VALIDATING_STOCK, attempt)
        stock_result = await validate_stock(lines, self._stock)
        if attempt.cancelled:
            return Error(CheckoutCancelled())
        match stock_result:
            case Error(e):
                return self._fail(e, attempt)
            case Ok(_):
                pass

        self._enter(CheckoutState.SUBMITTING, attempt)
        now = self._clock()
        promotions = await PromotionCatalog.fetch(self._promotions, at=now)
        if attempt.cancelled:
            return Error(CheckoutCancelled())
        match promotions:
            case Error(e):
                return self._fail(e, attempt)
            case Ok(catalog):
                pass

        order_input = build_order_input(user_id, clean, lines, catalog.active(now), at=now)
        created = await backend_call("orders.create", lambda: self._orders.create(order_input))
        if attempt.cancelled:
            match created:
                case Ok(Ok(order)):
                    logger.warning("order %s created after checkout was cancelled", order.order_number)
                case _:
                    pass
            return Error(CheckoutCancelled())

        match created:
            case Error(e):
                return self._fail(e, attempt)
            case Ok(Error(reason)):
                return self._fail(OrderRejected(reason), attempt)
            case Ok(Ok(order)):
                return await self._succeed(order, attempt)

        raise AssertionError("unreachable")

    def _check_form(self, form: CheckoutForm) -> Result[tuple[str, CheckoutForm], ValidationError]:
        """The cart owner and the normalized form, or the first form error."""
        user_id = self._cart.user_id
        if user_id is None:
            return Error(ValidationError("user", "You must be logged in to place an order"))
        match validate_form(form, today=self._clock().date(), policy=self._policy):
            case Error(e):
                return Error(e)
            case Ok(clean):
                if not self._cart.confirmed_lines:
                    return Error(ValidationError("cart", "Your cart is empty"))
                return Ok((user_id, clean))

    async def _succeed(self, order: Order, attempt: _Attempt) -> Result[Order, CheckoutError]:
        self._last_order = order
        self._enter(CheckoutState.SUCCEEDED, attempt)
        logger.info("order %s placed for %s, total %s", order.order_number, order.user_id, order.total)

        if self._policy.clear_cart_on_success:
            match await self._cart.clear():
                case Error(e):
                    logger.warning("order %s placed but cart clear failed: %s", order.order_number, e)
                case Ok(_):
                    pass

        return Ok(order)

    def _fail(self, error: CheckoutError, attempt: _Attempt) -> Result[Order, CheckoutError]:
        if attempt.cancelled:
            return Error(CheckoutCancelled())
        logger.debug("checkout failed in %s: %s", self._state.name, error)
        self._last_error = error
        self._enter(CheckoutState.FAILED, attempt)
        self._enter(CheckoutState.IDLE, attempt)
        return Error(error)

    # ─────────────────────────────────────────────────────────────────────────
    # State
    # ─────────────────────────────────────────────────────────────────────────

    def _enter(self, state: CheckoutState, attempt: _Attempt) -> None:
        if attempt.cancelled:
            return
        if state not in TRANSITIONS[self._state]:
            raise RuntimeError(f"illegal checkout transition {self._state.name} → {state.name}")
        self._set(state)

    def _set(self, state: CheckoutState) -> None:
        logger.debug("checkout %s → %s", self._state.name, state.name)
        self._state = state
        for listener in tuple(self._listeners):
            listener(state)


__all__ = ("StateListener", "CheckoutCoordinator")
