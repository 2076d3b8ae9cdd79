"""PurchaseIntent aggregate: a time-boxed "buy now" reservation.

An intent pins one product, quantity and unit price for a short window
while the buyer supplies delivery details. It converts into at most one
order. Stock is not reserved at creation; it is taken at completion.

Exactly one owner discriminator is recorded at creation: the owner id for
signed-in buyers, else the guest session id. Every later access is checked
against that single field.

State Machine:
    PENDING → COMPLETED
    PENDING → CANCELLED
    PENDING → EXPIRED
    (all three are terminal)
"""

import json
from datetime import UTC, datetime, timedelta
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Identifier, Integer, String, Text, ValueObject

from checkout import settings
from checkout.domain import checkout
from checkout.intent.events import (
    ContactDetailsAttached,
    PurchaseIntentCancelled,
    PurchaseIntentCompleted,
    PurchaseIntentCreated,
    PurchaseIntentExpired,
)
from checkout.shared.address import ShippingAddress


class IntentStatus(Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


_VALID_TRANSITIONS = {
    IntentStatus.PENDING: {IntentStatus.COMPLETED, IntentStatus.CANCELLED, IntentStatus.EXPIRED},
    IntentStatus.COMPLETED: set(),  # Terminal
    IntentStatus.CANCELLED: set(),  # Terminal
    IntentStatus.EXPIRED: set(),  # Terminal
}


def as_aware(value: datetime) -> datetime:
    """Treat naive datetimes read back from storage as UTC."""
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


@checkout.aggregate
class PurchaseIntent:
    owner_id = Identifier()
    session_id = String(max_length=255)
    product_id = Identifier(required=True)
    variant_id = Identifier()
    quantity = Integer(
        required=True,
        min_value=settings.MIN_INTENT_QUANTITY,
        max_value=settings.MAX_INTENT_QUANTITY,
    )
    unit_price = Float(required=True, min_value=0.0)
    customization = Text()  # JSON object
    status = String(choices=IntentStatus, default=IntentStatus.PENDING.value)
    shipping_address = ValueObject(ShippingAddress)
    email = String(max_length=254)
    phone = String(max_length=20)
    order_id = Identifier()
    expires_at = DateTime(required=True)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def exactly_one_owner_discriminator(self):
        if bool(self.owner_id) == bool(self.session_id):
            raise ValidationError({"owner": ["A purchase intent belongs to exactly one owner id or session id"]})

    @classmethod
    def create(cls, product_id, quantity, unit_price, owner_id=None, session_id=None, variant_id=None, customization=None):
        now = datetime.now(UTC)
        intent = cls(
            owner_id=owner_id,
            session_id=None if owner_id else session_id,
            product_id=product_id,
            variant_id=variant_id,
            quantity=quantity,
            unit_price=unit_price,
            customization=json.dumps(customization) if customization else None,
            status=IntentStatus.PENDING.value,
            expires_at=now + timedelta(minutes=settings.INTENT_TTL_MINUTES),
            created_at=now,
            updated_at=now,
        )

        intent.raise_(
            PurchaseIntentCreated(
                intent_id=str(intent.id),
                owner_id=str(owner_id) if owner_id else None,
                session_id=intent.session_id,
                product_id=str(product_id),
                variant_id=str(variant_id) if variant_id else None,
                quantity=quantity,
                unit_price=unit_price,
                expires_at=intent.expires_at,
                created_at=now,
            )
        )
        return intent

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def is_pending(self) -> bool:
        return self.status == IntentStatus.PENDING.value

    @property
    def is_terminal(self) -> bool:
        return not _VALID_TRANSITIONS[IntentStatus(self.status)]

    @property
    def total_price(self) -> float:
        return round(self.unit_price * self.quantity, 2)

    def has_elapsed(self, as_of=None) -> bool:
        """True while still pending past its expiry time."""
        as_of = as_aware(as_of) if as_of else datetime.now(UTC)
        return self.is_pending and as_aware(self.expires_at) < as_of

    # -------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target):
        current = IntentStatus(self.status)
        if target not in _VALID_TRANSITIONS[current]:
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target.value}"]})

    def attach_contact(self, shipping_address, email, phone):
        if not self.is_pending:
            raise ValidationError({"status": ["Contact details can only be attached to a pending intent"]})

        now = datetime.now(UTC)
        self.shipping_address = shipping_address
        self.email = email
        self.phone = phone
        self.updated_at = now

        self.raise_(
            ContactDetailsAttached(
                intent_id=str(self.id),
                email=email,
                attached_at=now,
            )
        )

    def complete(self, order_id):
        self._assert_can_transition(IntentStatus.COMPLETED)
        now = datetime.now(UTC)
        self.status = IntentStatus.COMPLETED.value
        self.order_id = order_id
        self.updated_at = now

        self.raise_(
            PurchaseIntentCompleted(
                intent_id=str(self.id),
                order_id=str(order_id),
                completed_at=now,
            )
        )

    def cancel(self):
        self._assert_can_transition(IntentStatus.CANCELLED)
        now = datetime.now(UTC)
        self.status = IntentStatus.CANCELLED.value
        self.updated_at = now

        self.raise_(PurchaseIntentCancelled(intent_id=str(self.id), cancelled_at=now))

    def expire(self):
        self._assert_can_transition(IntentStatus.EXPIRED)
        now = datetime.now(UTC)
        self.status = IntentStatus.EXPIRED.value
        self.updated_at = now

        self.raise_(PurchaseIntentExpired(intent_id=str(self.id), expired_at=now))

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "product_id": str(self.product_id),
            "variant_id": str(self.variant_id) if self.variant_id else None,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "total_price": self.total_price,
            "customization": json.loads(self.customization) if self.customization else None,
            "status": self.status,
            "shipping_address": self.shipping_address.to_dict() if self.shipping_address else None,
            "email": self.email,
            "phone": self.phone,
            "order_id": str(self.order_id) if self.order_id else None,
            "expires_at": as_aware(self.expires_at).isoformat(),
        }
