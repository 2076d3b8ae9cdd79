"""Checkout domain API package."""

from checkout.api.errors import register_checkout_error_handlers
from checkout.api.routes import cart_router, intent_router, order_router, payment_router

__all__ = [
    "cart_router",
    "intent_router",
    "order_router",
    "payment_router",
    "register_checkout_error_handlers",
]
