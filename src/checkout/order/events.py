"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from checkout.domain import checkout


@checkout.event(part_of="Order")
class OrderPlaced:
    """An order was materialized from a purchase intent or a cart."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    owner_id = Identifier(required=True)
    source = String(required=True)
    item_count = Integer(required=True)
    subtotal = Float(required=True)
    shipping = Float(required=True)
    tax = Float(required=True)
    total = Float(required=True)
    placed_at = DateTime(required=True)


@checkout.event(part_of="Order")
class OrderConfirmed:
    __version__ = 1

    order_id = Identifier(required=True)
    payment_method = String()
    confirmed_at = DateTime(required=True)


@checkout.event(part_of="Order")
class OrderPaymentStatusChanged:
    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    payment_status = String(required=True)
    transaction_id = Identifier()
    changed_at = DateTime(required=True)


@checkout.event(part_of="Order")
class OrderCancelled:
    __version__ = 1

    order_id = Identifier(required=True)
    owner_id = Identifier(required=True)
    reason = String(required=True)
    cancelled_at = DateTime(required=True)
