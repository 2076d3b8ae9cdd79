"""Cart validation against the live catalog.

Validation is read-only: it reports what checkout would trip over (a
product that is gone, stock that no longer covers a line, a price that
moved since the line was added) and broadcasts the report. Lines are
never repriced here.
"""

from checkout.cart.lookup import find_cart
from checkout.catalog import get_catalog
from checkout.domain import logger
from checkout.realtime import get_hub
from checkout.realtime.broadcast import channel_for
from checkout.shared.caller import Caller


def line_issues(cart) -> list[dict]:
    catalog = get_catalog()
    issues = []

    for line in cart.active_lines:
        product = catalog.get_product(line.product_id)
        if product is None:
            issues.append({"item_id": str(line.id), "type": "unavailable", "message": "Product is no longer available"})
            continue

        if product.stock < line.quantity:
            issues.append(
                {
                    "item_id": str(line.id),
                    "type": "insufficient_stock",
                    "message": f"Only {product.stock} available",
                    "available": product.stock,
                }
            )

        if round(product.effective_price, 2) != round(line.unit_price, 2):
            issues.append(
                {
                    "item_id": str(line.id),
                    "type": "price_changed",
                    "message": "Price has changed",
                    "old_price": line.unit_price,
                    "new_price": product.effective_price,
                }
            )

    return issues


def validate_cart(caller: Caller) -> dict:
    cart = find_cart(caller)
    if cart is None:
        return {"valid": True, "issues": []}

    issues = line_issues(cart)
    result = {"valid": not issues, "issues": issues}

    logger.info("Cart validated", cart_id=str(cart.id), issue_count=len(issues))
    get_hub().publish(
        channel_for(cart.owner_id, cart.session_id),
        "cart-validated",
        {"cart_id": str(cart.id), **result},
    )
    return result
