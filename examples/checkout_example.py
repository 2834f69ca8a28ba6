"""
Checkout — stock revalidation, then one atomic order.

Level 3: cartflow.checkout
Level 2: kungfu.Result
"""

from datetime import timedelta

from kungfu import Ok, Error
from cartflow import cart as Ct
from cartflow import checkout as Co
from cartflow.errors import InsufficientStock, OutOfStock
from examples._infra import banner, run, demo_backend, SHIRT, MUG, SIZE_M


async def main() -> None:
    api = demo_backend()
    store = Ct.CartStore(api.cart, variants=api.variants)
    await store.load("user-1")
    await store.add(SHIRT, [SIZE_M], 2)
    await store.add(MUG, [], 2)

    checkout = Co.CheckoutCoordinator(
        store, promotions=api.promotions, stock=api.stock, orders=api.orders
    )
    checkout.subscribe(lambda state: print(f"  → {state.name}"))

    form = Co.CheckoutForm(
        contact_name="Ana Cruz",
        phone="0917 123 4567",
        pickup_date=api.clock().date() + timedelta(days=1),
        pickup_slot=Co.PickupSlot.MORNING,
    )

    banner("Someone else bought the mugs")
    api.set_stock("MUG", 1)
    match await checkout.place_order(form):
        case Error(InsufficientStock() | OutOfStock() as e):
            print(f"  ✗ {e}")
        case Error(e):
            print(f"  ✗ retry later: {e}")
        case Ok(order):
            print(f"  ✓ {order.order_number}")

    banner("Fix the cart, try again")
    await store.update_quantity(store.lines[1].id, 1)
    match await checkout.place_order(form):
        case Ok(order):
            print(f"  ✓ {order.order_number}: ₱{order.total} (saved ₱{order.discount})")
            print(f"    pickup {order.pickup.date} {order.pickup.slot.label}")
        case Error(e):
            print(f"  ✗ {e}")

    print(f"\n  cart after checkout: {len(store.lines)} lines")


if __name__ == "__main__":
    run(main)
