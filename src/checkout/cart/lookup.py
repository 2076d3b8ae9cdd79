"""Cart lookup keyed by the caller's discriminator."""

from protean.utils.globals import current_domain

from checkout.cart.cart import Cart
from checkout.shared.caller import Caller


def find_cart(caller: Caller) -> Cart | None:
    """The caller's cart: by owner id when signed in, else by session id."""
    repo = current_domain.repository_for(Cart)
    if caller.is_authenticated and caller.owner_id:
        carts = repo._dao.query.filter(owner_id=caller.owner_id).all().items
    elif caller.session_id:
        carts = repo._dao.query.filter(session_id=caller.session_id).all().items
    else:
        return None
    return carts[0] if carts else None


def find_guest_cart(session_id: str) -> Cart | None:
    repo = current_domain.repository_for(Cart)
    carts = repo._dao.query.filter(session_id=session_id).all().items
    return carts[0] if carts else None


def get_or_create_cart(caller: Caller) -> Cart:
    """Return the caller's cart, creating an empty one on first use.

    The new cart is not persisted here; the caller adds it along with its
    first mutation.
    """
    cart = find_cart(caller)
    if cart is not None:
        return cart

    if caller.is_authenticated and caller.owner_id:
        return Cart.create(owner_id=caller.owner_id)
    return Cart.create(session_id=caller.session_id)


def get_cart(caller: Caller) -> dict:
    """The caller's cart with active lines, saved lines and totals.

    A caller with no cart yet sees an empty one; nothing is persisted.
    """
    return get_or_create_cart(caller).to_dict()
