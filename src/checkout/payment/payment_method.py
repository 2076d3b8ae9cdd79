"""PaymentMethod aggregate: a payer's stored card or wallet reference.

Only the processor-side reference and display details are kept; card
numbers never reach this service. Removal is a soft delete so historical
transactions still resolve the method they were charged to.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, Integer, String

from checkout.domain import checkout
from checkout.payment.events import PaymentMethodRemoved, PaymentMethodSaved


class PaymentMethodType(Enum):
    CARD = "card"
    WALLET = "wallet"
    BANK_ACCOUNT = "bank_account"


@checkout.aggregate
class PaymentMethod:
    owner_id = Identifier(required=True)
    method_type = String(choices=PaymentMethodType, required=True)
    gateway_method_ref = String(required=True, max_length=255)
    brand = String(max_length=50)
    last4 = String(max_length=4)
    exp_month = Integer(min_value=1, max_value=12)
    exp_year = Integer()
    is_default = Boolean(default=False)
    is_active = Boolean(default=True)
    created_at = DateTime()
    removed_at = DateTime()

    @classmethod
    def save(cls, owner_id, method_type, gateway_method_ref, brand=None, last4=None, exp_month=None, exp_year=None, is_default=False):
        now = datetime.now(UTC)
        method = cls(
            owner_id=owner_id,
            method_type=method_type,
            gateway_method_ref=gateway_method_ref,
            brand=brand,
            last4=last4,
            exp_month=exp_month,
            exp_year=exp_year,
            is_default=is_default,
            is_active=True,
            created_at=now,
        )
        method.raise_(
            PaymentMethodSaved(
                payment_method_id=str(method.id),
                owner_id=str(owner_id),
                method_type=method_type,
                last4=last4,
                is_default=is_default,
                saved_at=now,
            )
        )
        return method

    def remove(self):
        if not self.is_active:
            raise ValidationError({"payment_method": ["Payment method has already been removed"]})

        now = datetime.now(UTC)
        self.is_active = False
        self.is_default = False
        self.removed_at = now

        self.raise_(
            PaymentMethodRemoved(
                payment_method_id=str(self.id),
                owner_id=str(self.owner_id),
                removed_at=now,
            )
        )

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "method_type": self.method_type,
            "brand": self.brand,
            "last4": self.last4,
            "exp_month": self.exp_month,
            "exp_year": self.exp_year,
            "is_default": self.is_default,
        }
