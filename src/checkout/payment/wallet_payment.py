"""WalletPayment aggregate: device wallet details attached to a ledger row."""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.fields import DateTime, Identifier, String, Text

from checkout.domain import checkout
from checkout.payment.events import WalletPaymentRecorded


class WalletType(Enum):
    APPLE_PAY = "apple_pay"
    GOOGLE_PAY = "google_pay"


class WalletVerification(Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    FAILED = "failed"


@checkout.aggregate
class WalletPayment:
    transaction_id = Identifier(required=True)
    wallet_type = String(choices=WalletType, required=True)
    device_attestation = String(max_length=255)  # token fingerprint, never the raw token
    billing_contact = Text()  # JSON object
    shipping_contact = Text()  # JSON object
    verification = String(choices=WalletVerification, default=WalletVerification.PENDING.value)
    created_at = DateTime()

    @classmethod
    def attach(cls, transaction_id, wallet_type, device_attestation, billing_contact=None, shipping_contact=None):
        return cls(
            transaction_id=transaction_id,
            wallet_type=wallet_type,
            device_attestation=device_attestation,
            billing_contact=json.dumps(billing_contact or {}),
            shipping_contact=json.dumps(shipping_contact or {}),
            verification=WalletVerification.PENDING.value,
            created_at=datetime.now(UTC),
        )

    def record_verification(self, verified, risk_score=None):
        self.verification = WalletVerification.VERIFIED.value if verified else WalletVerification.FAILED.value

        self.raise_(
            WalletPaymentRecorded(
                wallet_payment_id=str(self.id),
                transaction_id=str(self.transaction_id),
                wallet_type=self.wallet_type,
                verification=self.verification,
                risk_score=risk_score,
                recorded_at=datetime.now(UTC),
            )
        )
