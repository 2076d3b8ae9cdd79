"""Cart management: clearing, guest merging and saved-for-later lines."""

from protean import handle
from protean.fields import Boolean, Identifier, List, String
from protean.utils.globals import current_domain

from checkout.cart.cart import Cart
from checkout.cart.lookup import find_cart, find_guest_cart, get_or_create_cart
from checkout.domain import checkout, logger
from checkout.errors import NotFound
from checkout.realtime.broadcast import publish_cart_event
from checkout.shared.caller import caller_from, require_signed_in


@checkout.command(part_of="Cart")
class ClearCart:
    owner_id = Identifier()
    session_id = String(max_length=255)
    is_authenticated = Boolean(default=False)
    is_staff = Boolean(default=False)


@checkout.command(part_of="Cart")
class MergeGuestCart:
    """Fold a guest session's cart into the signed-in owner's cart."""

    owner_id = Identifier()
    session_id = String(max_length=255)
    is_authenticated = Boolean(default=False)
    is_staff = Boolean(default=False)
    guest_session_id = String(required=True, max_length=255)


@checkout.command(part_of="Cart")
class SaveForLater:
    owner_id = Identifier()
    session_id = String(max_length=255)
    is_authenticated = Boolean(default=False)
    is_staff = Boolean(default=False)
    item_ids = List(content_type=String, required=True)


@checkout.command(part_of="Cart")
class MoveToCart:
    owner_id = Identifier()
    session_id = String(max_length=255)
    is_authenticated = Boolean(default=False)
    is_staff = Boolean(default=False)
    item_ids = List(content_type=String, required=True)


def _existing_cart(caller) -> Cart:
    cart = find_cart(caller)
    if cart is None:
        raise NotFound("Cart not found")
    return cart


@checkout.command_handler(part_of=Cart)
class ManageCartHandler:
    @handle(ClearCart)
    def clear_cart(self, command):
        cart = _existing_cart(caller_from(command))
        removed = cart.clear()
        current_domain.repository_for(Cart).add(cart)

        publish_cart_event(cart, "cart-cleared", {"items_removed": removed})
        return cart.to_dict()

    @handle(MergeGuestCart)
    def merge_guest_cart(self, command):
        caller = caller_from(command)
        require_signed_in(caller)

        repo = current_domain.repository_for(Cart)
        guest_cart = find_guest_cart(command.guest_session_id)
        cart = get_or_create_cart(caller)
        if guest_cart is None or not guest_cart.active_lines:
            return {"cart": cart.to_dict(), "items_merged": 0}

        merged = cart.merge_guest_lines(guest_cart)
        repo.add(cart)

        guest_cart.clear()
        repo.add(guest_cart)

        logger.info(
            "Guest cart merged",
            cart_id=str(cart.id),
            guest_cart_id=str(guest_cart.id),
            items_merged=merged,
        )
        publish_cart_event(cart, "cart-merged", {"items_merged": merged})
        publish_cart_event(guest_cart, "cart-cleared", {"items_removed": merged})
        return {"cart": cart.to_dict(), "items_merged": merged}

    @handle(SaveForLater)
    def save_for_later(self, command):
        cart = _existing_cart(caller_from(command))
        self._require_lines(cart, command.item_ids)

        moved = cart.save_for_later(command.item_ids)
        current_domain.repository_for(Cart).add(cart)

        publish_cart_event(cart, "cart-items-saved", {"item_ids": moved})
        return cart.to_dict()

    @handle(MoveToCart)
    def move_to_cart(self, command):
        cart = _existing_cart(caller_from(command))
        self._require_lines(cart, command.item_ids)

        moved = cart.move_to_cart(command.item_ids)
        current_domain.repository_for(Cart).add(cart)

        publish_cart_event(cart, "cart-items-restored", {"item_ids": moved})
        return cart.to_dict()

    @staticmethod
    def _require_lines(cart, item_ids):
        missing = [item_id for item_id in item_ids if cart.line(item_id) is None]
        if missing:
            raise NotFound(f"Cart items not found: {', '.join(missing)}")
