"""Cart broadcast helpers: address owner channels and publish cart events."""

from checkout.realtime import get_hub


def channel_for(owner_id: str | None = None, session_id: str | None = None) -> str:
    """Channel key for an owner: the user channel when known, else the session channel."""
    if owner_id:
        return f"cart-user-{owner_id}"
    if session_id:
        return f"cart-session-{session_id}"
    raise ValueError("An owner id or a session id is required to address a channel")


def publish_cart_event(cart, event: str, payload: dict | None = None) -> int:
    """Publish ``event`` then a ``cart-updated`` carrying the recomputed totals."""
    hub = get_hub()
    channel = channel_for(cart.owner_id, cart.session_id)
    delivered = hub.publish(channel, event, {"cart_id": str(cart.id), **(payload or {})})
    hub.publish(channel, "cart-updated", cart.summary())
    return delivered
