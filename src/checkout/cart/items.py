"""Cart line management: commands and handler.

Each mutation re-derives the cart totals, persists the cart and then
publishes the matching event plus ``cart-updated`` on the owner's channel.
"""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, Dict, Identifier, Integer, String
from protean.utils.globals import current_domain

from checkout.cart.cart import Cart
from checkout.cart.lookup import find_cart, get_or_create_cart
from checkout.catalog import get_catalog
from checkout.domain import checkout, logger
from checkout.errors import InsufficientStock, NotFound
from checkout.realtime.broadcast import publish_cart_event
from checkout.shared.caller import caller_from


@checkout.command(part_of="Cart")
class AddCartItem:
    owner_id = Identifier()
    session_id = String(max_length=255)
    is_authenticated = Boolean(default=False)
    is_staff = Boolean(default=False)
    product_id = Identifier(required=True)
    variant_id = Identifier()
    quantity = Integer(required=True, min_value=1)
    customization = Dict()


@checkout.command(part_of="Cart")
class UpdateCartItem:
    owner_id = Identifier()
    session_id = String(max_length=255)
    is_authenticated = Boolean(default=False)
    is_staff = Boolean(default=False)
    item_id = Identifier(required=True)
    quantity = Integer(required=True)  # <= 0 removes the line


@checkout.command(part_of="Cart")
class RemoveCartItem:
    owner_id = Identifier()
    session_id = String(max_length=255)
    is_authenticated = Boolean(default=False)
    is_staff = Boolean(default=False)
    item_id = Identifier(required=True)


def _cart_with_line(caller, item_id) -> Cart:
    cart = find_cart(caller)
    if cart is None or cart.line(item_id) is None:
        raise NotFound("Cart item not found")
    return cart


@checkout.command_handler(part_of=Cart)
class ManageCartItemsHandler:
    @handle(AddCartItem)
    def add_cart_item(self, command):
        caller = caller_from(command)
        if not caller.discriminator:
            raise ValidationError({"owner": ["A session is required to use a cart"]})

        product = get_catalog().get_product(command.product_id)
        if product is None:
            raise NotFound("Product not found")

        cart = get_or_create_cart(caller)
        existing = next(
            (
                line
                for line in cart.active_lines
                if str(line.product_id) == str(command.product_id)
                and str(line.variant_id or "") == str(command.variant_id or "")
            ),
            None,
        )
        wanted = command.quantity + (existing.quantity if existing else 0)
        if product.stock < wanted:
            raise InsufficientStock(available=product.stock)

        line = cart.add_item(
            product_id=command.product_id,
            variant_id=command.variant_id,
            quantity=command.quantity,
            unit_price=product.effective_price,
            customization=command.customization,
        )
        current_domain.repository_for(Cart).add(cart)

        logger.info(
            "Cart item added",
            cart_id=str(cart.id),
            product_id=str(command.product_id),
            quantity=command.quantity,
        )
        publish_cart_event(cart, "cart-item-added", {"item": line.to_dict()})
        return cart.to_dict()

    @handle(UpdateCartItem)
    def update_cart_item(self, command):
        cart = _cart_with_line(caller_from(command), command.item_id)

        if command.quantity > 0:
            line = cart.line(command.item_id)
            product = get_catalog().get_product(line.product_id)
            if product is not None and product.stock < command.quantity:
                raise InsufficientStock(available=product.stock)

        cart.update_quantity(command.item_id, command.quantity)
        current_domain.repository_for(Cart).add(cart)

        if command.quantity <= 0:
            publish_cart_event(cart, "cart-item-removed", {"item_id": str(command.item_id)})
        else:
            publish_cart_event(
                cart,
                "cart-item-updated",
                {"item_id": str(command.item_id), "quantity": command.quantity},
            )
        return cart.to_dict()

    @handle(RemoveCartItem)
    def remove_cart_item(self, command):
        cart = _cart_with_line(caller_from(command), command.item_id)
        cart.remove_item(command.item_id)
        current_domain.repository_for(Cart).add(cart)

        publish_cart_event(cart, "cart-item-removed", {"item_id": str(command.item_id)})
        return cart.to_dict()
