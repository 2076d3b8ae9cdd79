"""Checkout bounded context: purchase intents, payments and orders.

Handles the buy-now purchase intent lifecycle, the payment transaction ledger
with its gateway abstraction, 3-D Secure challenges, order materialization and
the shopping cart that feeds the cart-checkout path.
"""

from protean.domain import Domain

from checkout.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

checkout = Domain(name="checkout")
