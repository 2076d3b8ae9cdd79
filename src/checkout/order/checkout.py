"""Cart checkout: command, handler and entry point.

The cart path to an order. ``checkout_cart`` takes stock for every active
line, then the handler materializes a single order from the cart's lines and
clears the cart. If any line cannot be covered, or anything after the stock
is taken fails, every line's stock is put back and nothing is written.
"""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, Dict, Identifier, String
from protean.utils.globals import current_domain

from checkout.cart.cart import Cart
from checkout.cart.lookup import find_cart
from checkout.catalog import get_catalog
from checkout.catalog.reservation import reserved_stock
from checkout.domain import checkout, logger
from checkout.errors import Conflict, NotFound
from checkout.order.materializer import materialize
from checkout.order.order import Order, OrderSource
from checkout.realtime.broadcast import publish_cart_event
from checkout.shared.address import ShippingAddress
from checkout.shared.caller import Caller, caller_from, command_fields, require_signed_in
from checkout.shared.email import EmailAddress


@checkout.command(part_of="Order")
class CheckoutCart:
    """Materialize the caller's cart into an order.

    ``reserved_quantities`` maps product id to the quantity already taken from the
    catalog. Go through ``checkout_cart``, which takes it.
    """

    owner_id = Identifier()
    session_id = String(max_length=255)
    is_authenticated = Boolean(default=False)
    is_staff = Boolean(default=False)
    shipping_address = Dict(required=True)
    payment_method = String(max_length=50, default="online")
    email = String(max_length=254)
    phone = String(max_length=20)
    reserved_quantities = Dict(required=True)


def _quantities(cart: Cart) -> dict:
    """Total active quantity per product."""
    totals = {}
    for line in cart.active_lines:
        totals[str(line.product_id)] = totals.get(str(line.product_id), 0) + line.quantity
    return totals


def _order_lines(cart: Cart) -> list[dict]:
    catalog = get_catalog()
    lines = []
    for line in cart.active_lines:
        product = catalog.get_product(line.product_id)
        if product is None:
            raise NotFound(f"Product {line.product_id} is no longer available")
        lines.append(
            {
                "product_id": str(line.product_id),
                "variant_id": str(line.variant_id) if line.variant_id else None,
                "name": product.name,
                "sku": product.sku,
                "description": product.description,
                "quantity": line.quantity,
                "unit_price": line.unit_price,
                "customization": line.to_dict()["customization"],
            }
        )
    return lines


@checkout.command_handler(part_of=Order)
class CheckoutCartHandler:
    @handle(CheckoutCart)
    def checkout_cart(self, command):
        caller = caller_from(command)
        owner_id = require_signed_in(caller)

        cart = find_cart(caller)
        if cart is None or not cart.active_lines:
            raise ValidationError({"cart": ["Cart is empty"]})
        if _quantities(cart) != command.reserved_quantities:
            raise Conflict("Cart changed during checkout, please review it and try again")

        shipping_address = ShippingAddress(**command.shipping_address)
        if command.email:
            EmailAddress(address=command.email)
        lines = _order_lines(cart)

        order = materialize(
            owner_id=owner_id,
            lines=lines,
            source=OrderSource.CART.value,
            shipping_address=shipping_address,
            payment_method=command.payment_method,
            email=command.email,
            phone=command.phone,
        )

        cart.clear()
        current_domain.repository_for(Cart).add(cart)

        logger.info(
            "Cart checked out",
            cart_id=str(cart.id),
            order_id=str(order.id),
            line_count=len(lines),
        )
        publish_cart_event(cart, "cart-cleared", {"order_id": str(order.id)})

        return {
            "order_id": str(order.id),
            "order_number": order.order_number,
            "total": order.total,
            "redirect_url": "/orders",
        }


def checkout_cart(caller: Caller, shipping_address: dict, payment_method="online", email=None, phone=None) -> dict:
    """Take stock for the caller's active cart lines and check the cart out."""
    require_signed_in(caller)
    cart = find_cart(caller)
    if cart is None or not cart.active_lines:
        raise ValidationError({"cart": ["Cart is empty"]})

    quantities = _quantities(cart)
    command = CheckoutCart(
        **command_fields(caller),
        shipping_address=shipping_address,
        payment_method=payment_method,
        email=email,
        phone=phone,
        reserved_quantities=quantities,
    )
    with reserved_stock(quantities.items(), product_label=True):
        return current_domain.process(command, asynchronous=False)
