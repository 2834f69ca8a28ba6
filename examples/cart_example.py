"""
Cart — optimistic writes, rollback, live totals.

Level 3: cartflow.cart, cartflow.pricing
Level 2: kungfu.Result
"""

from kungfu import Ok, Error
from cartflow import cart as Ct
from cartflow import catalog as K
from examples._infra import banner, run, demo_backend, SHIRT, MUG, TOTE, SIZE_XL, COLOR_SAND


def show(store: Ct.CartStore, catalog: K.PromotionCatalog) -> None:
    totals = store.totals(catalog.active(), at=catalog.fetched_at)
    for line, price in zip(store.lines, totals.lines):
        promo = f"  [{price.applied_promotion.title}]" if price.applied_promotion else ""
        print(f"  {line.quantity} × {line.product_name:<14} ₱{price.line_total:>8}{promo}")
    print(f"  subtotal ₱{totals.subtotal}  (saved ₱{totals.discount}, {totals.discount_percent}%)")


async def main() -> None:
    api = demo_backend()
    store = Ct.CartStore(api.cart, variants=api.variants)
    await store.load("user-1")
    store.subscribe(lambda lines: print(f"  · {sum(line.quantity for line in lines)} items visible"))

    match await K.PromotionCatalog.fetch(api.promotions, at=api.clock()):
        case Ok(catalog):
            pass
        case Error(e):
            print(f"✗ {e}")
            return

    banner("Promotions")
    for promo in catalog.active():
        left = K.time_remaining(promo, catalog.fetched_at)
        soon = " (ending soon)" if K.is_ending_soon(promo, catalog.fetched_at) else ""
        print(f"  {K.badge_text(promo):>6}  {promo.title}: {left.formatted} left{soon}")

    banner("Add")
    await store.add(SHIRT, [SIZE_XL, COLOR_SAND], 2)
    await store.add(MUG, [], 1)
    match await store.add(TOTE, [], 1):
        case Error(e):
            print(f"  ✗ {e}")
    show(store, catalog)

    banner("Failed write rolls back")
    mug_line = store.lines[1]
    api.fail("cart.update_quantity")
    match await store.update_quantity(mug_line.id, 2):
        case Error(e):
            print(f"  ✗ {e}")
    show(store, catalog)

    banner("Quantity 0 removes")
    await store.update_quantity(mug_line.id, 0)
    show(store, catalog)


if __name__ == "__main__":
    run(main)
