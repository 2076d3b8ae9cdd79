"""Order materialization: turn a completed intent or a priced cart into an Order.

Callers guarantee it runs once per intent or cart checkout by checking
their own state before invoking it.
"""

import random
import string
import time

from protean.utils.globals import current_domain

from checkout import settings
from checkout.domain import logger
from checkout.notifications.dispatch import dispatch_notification
from checkout.order.order import Order

_SUFFIX_ALPHABET = string.ascii_uppercase + string.digits


def generate_order_number(clock=time.time, rng=random) -> str:
    """``ORD-`` + last six digits of the millisecond timestamp + six random characters."""
    timestamp = str(int(clock() * 1000))
    suffix = "".join(rng.choice(_SUFFIX_ALPHABET) for _ in range(6))
    return f"ORD-{timestamp[-6:]}{suffix}"


def shipping_for(subtotal: float) -> float:
    return 0.0 if subtotal >= settings.FREE_SHIPPING_THRESHOLD else settings.ORDER_SHIPPING_FEE


def price_lines(lines: list[dict]) -> dict:
    """Subtotal, shipping, tax and total for a set of priced lines."""
    subtotal = round(sum(line["unit_price"] * line["quantity"] for line in lines), 2)
    shipping = round(shipping_for(subtotal), 2)
    tax = round(subtotal * settings.TAX_RATE, 2)
    return {
        "subtotal": subtotal,
        "shipping": shipping,
        "tax": tax,
        "total": round(subtotal + shipping + tax, 2),
    }


def _unique_order_number() -> str:
    repo = current_domain.repository_for(Order)
    while True:
        order_number = generate_order_number()
        if not repo._dao.query.filter(order_number=order_number).all().items:
            return order_number


def materialize(
    owner_id,
    lines: list[dict],
    source: str,
    shipping_address=None,
    payment_method=None,
    email=None,
    phone=None,
    intent_id=None,
) -> Order:
    """Persist an order with one item per line and announce it.

    Args:
        lines: Dicts carrying product_id, variant_id, quantity, unit_price,
            customization and the product's name, sku and description as of
            now.
    """
    pricing = price_lines(lines)
    order = Order.place(
        order_number=_unique_order_number(),
        owner_id=owner_id,
        source=source,
        items=lines,
        shipping_address=shipping_address,
        payment_method=payment_method,
        intent_id=intent_id,
        email=email,
        phone=phone,
        currency=settings.CURRENCY,
        **pricing,
    )
    current_domain.repository_for(Order).add(order)

    logger.info(
        "Order materialized",
        order_id=str(order.id),
        order_number=order.order_number,
        source=source,
        total=order.total,
    )

    dispatch_notification(
        str(owner_id),
        "order_confirmation",
        {
            "order_id": str(order.id),
            "order_number": order.order_number,
            "total": order.total,
            "item_count": len(lines),
        },
    )
    return order
