"""Domain events for the PurchaseIntent aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from checkout.domain import checkout


@checkout.event(part_of="PurchaseIntent")
class PurchaseIntentCreated:
    __version__ = 1

    intent_id = Identifier(required=True)
    owner_id = Identifier()
    session_id = String()
    product_id = Identifier(required=True)
    variant_id = Identifier()
    quantity = Integer(required=True)
    unit_price = Float(required=True)
    expires_at = DateTime(required=True)
    created_at = DateTime(required=True)


@checkout.event(part_of="PurchaseIntent")
class ContactDetailsAttached:
    __version__ = 1

    intent_id = Identifier(required=True)
    email = String(required=True)
    attached_at = DateTime(required=True)


@checkout.event(part_of="PurchaseIntent")
class PurchaseIntentCompleted:
    __version__ = 1

    intent_id = Identifier(required=True)
    order_id = Identifier(required=True)
    completed_at = DateTime(required=True)


@checkout.event(part_of="PurchaseIntent")
class PurchaseIntentCancelled:
    __version__ = 1

    intent_id = Identifier(required=True)
    cancelled_at = DateTime(required=True)


@checkout.event(part_of="PurchaseIntent")
class PurchaseIntentExpired:
    __version__ = 1

    intent_id = Identifier(required=True)
    expired_at = DateTime(required=True)
