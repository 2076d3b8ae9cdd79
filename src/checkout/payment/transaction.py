"""Transaction ledger records: PaymentTransaction and Refund aggregates.

The ledger is append-mostly: a row is written once with its outcome and
never rewritten. Rows written ``pending`` are the exception and settle
exactly once:

    cash on delivery   pending → success (delivery confirmed)
    wallet placeholder pending → success/failed (gateway outcome)
    3-D Secure gated   pending → success/failed (challenge outcome)

Capture and refund rows always point at the row they act on through
``original_transaction_id``.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String, ValueObject

from checkout.domain import checkout
from checkout.payment.events import (
    AuthorizationCaptured,
    RefundIssued,
    TransactionRecorded,
    TransactionSettled,
)


class TransactionType(Enum):
    PAYMENT = "payment"
    AUTHORIZATION = "authorization"
    CAPTURE = "capture"
    REFUND = "refund"


class TransactionStatus(Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"


class RefundType(Enum):
    FULL = "full"
    PARTIAL = "partial"


_LINKED_TYPES = {TransactionType.CAPTURE, TransactionType.REFUND}


@checkout.value_object(part_of="PaymentTransaction")
class FeeBreakdown:
    """Processor fees charged on a transaction: flat fee plus a percentage."""

    fixed_fee = Float(default=0.0)
    percentage_fee = Float(default=0.0)
    total_fee = Float(default=0.0)
    net_amount = Float(default=0.0)


@checkout.value_object(part_of="PaymentTransaction")
class FraudAssessment:
    risk_score = Integer(default=0)
    risk_level = String(max_length=20, default="normal")


@checkout.aggregate
class PaymentTransaction:
    order_id = Identifier()
    owner_id = Identifier(required=True)
    transaction_type = String(choices=TransactionType, required=True)
    status = String(choices=TransactionStatus, default=TransactionStatus.PENDING.value)
    amount = Float(required=True, min_value=0.0)
    currency = String(max_length=3, default="USD")
    gateway = String(required=True, max_length=50)
    gateway_reference = String(max_length=255)
    original_transaction_id = Identifier()
    payment_method_id = Identifier()
    fee_breakdown = ValueObject(FeeBreakdown)
    fraud_assessment = ValueObject(FraudAssessment)
    failure_reason = String(max_length=500)
    captured = Boolean(default=False)
    processed_at = DateTime()
    created_at = DateTime()

    @invariant.post
    def linked_rows_must_reference_an_original(self):
        if TransactionType(self.transaction_type) in _LINKED_TYPES and not self.original_transaction_id:
            raise ValidationError(
                {"original_transaction_id": [f"A {self.transaction_type} must reference the transaction it acts on"]}
            )

    @classmethod
    def record(
        cls,
        owner_id,
        transaction_type,
        amount,
        gateway,
        status=TransactionStatus.PENDING.value,
        order_id=None,
        currency="USD",
        gateway_reference=None,
        original_transaction_id=None,
        payment_method_id=None,
        fee_breakdown=None,
        fraud_assessment=None,
        failure_reason=None,
    ):
        now = datetime.now(UTC)
        transaction = cls(
            owner_id=owner_id,
            order_id=order_id,
            transaction_type=transaction_type,
            status=status,
            amount=round(amount, 2),
            currency=currency,
            gateway=gateway,
            gateway_reference=gateway_reference,
            original_transaction_id=original_transaction_id,
            payment_method_id=payment_method_id,
            fee_breakdown=fee_breakdown,
            fraud_assessment=fraud_assessment,
            failure_reason=failure_reason,
            processed_at=now if status != TransactionStatus.PENDING.value else None,
            created_at=now,
        )
        transaction.raise_(
            TransactionRecorded(
                transaction_id=str(transaction.id),
                order_id=str(order_id) if order_id else None,
                owner_id=str(owner_id),
                transaction_type=transaction_type,
                status=status,
                amount=transaction.amount,
                currency=currency,
                gateway=gateway,
                original_transaction_id=str(original_transaction_id) if original_transaction_id else None,
                recorded_at=now,
            )
        )
        return transaction

    @property
    def is_pending(self) -> bool:
        return self.status == TransactionStatus.PENDING.value

    @property
    def succeeded(self) -> bool:
        return self.status == TransactionStatus.SUCCESS.value

    def settle(self, succeeded, failure_reason=None, fraud_assessment=None, gateway_reference=None):
        """Move a pending row to its final outcome. Settled rows never change again."""
        if not self.is_pending:
            raise ValidationError({"status": [f"Transaction is already settled as {self.status}"]})

        now = datetime.now(UTC)
        self.status = TransactionStatus.SUCCESS.value if succeeded else TransactionStatus.FAILED.value
        self.failure_reason = None if succeeded else failure_reason
        if fraud_assessment is not None:
            self.fraud_assessment = fraud_assessment
        if gateway_reference:
            self.gateway_reference = gateway_reference
        self.processed_at = now

        self.raise_(
            TransactionSettled(
                transaction_id=str(self.id),
                order_id=str(self.order_id) if self.order_id else None,
                status=self.status,
                failure_reason=self.failure_reason,
                settled_at=now,
            )
        )

    def mark_captured(self, capture_transaction_id):
        if self.transaction_type != TransactionType.AUTHORIZATION.value:
            raise ValidationError({"transaction_type": ["Only authorizations can be captured"]})
        if not self.succeeded:
            raise ValidationError({"status": ["Only successful authorizations can be captured"]})
        if self.captured:
            raise ValidationError({"captured": ["Authorization has already been captured"]})

        now = datetime.now(UTC)
        self.captured = True

        self.raise_(
            AuthorizationCaptured(
                authorization_id=str(self.id),
                capture_transaction_id=str(capture_transaction_id),
                captured_at=now,
            )
        )

    def to_dict(self) -> dict:
        fees = self.fee_breakdown
        fraud = self.fraud_assessment
        return {
            "id": str(self.id),
            "order_id": str(self.order_id) if self.order_id else None,
            "owner_id": str(self.owner_id),
            "type": self.transaction_type,
            "status": self.status,
            "amount": self.amount,
            "currency": self.currency,
            "gateway": self.gateway,
            "gateway_reference": self.gateway_reference,
            "original_transaction_id": str(self.original_transaction_id) if self.original_transaction_id else None,
            "fee_breakdown": {
                "fixed_fee": fees.fixed_fee,
                "percentage_fee": fees.percentage_fee,
                "total_fee": fees.total_fee,
                "net_amount": fees.net_amount,
            }
            if fees
            else None,
            "fraud_assessment": {"risk_score": fraud.risk_score, "risk_level": fraud.risk_level} if fraud else None,
            "failure_reason": self.failure_reason,
            "captured": self.captured,
            "processed_at": self.processed_at.isoformat() if self.processed_at else None,
        }


@checkout.aggregate
class Refund:
    original_transaction_id = Identifier(required=True)
    refund_transaction_id = Identifier()
    order_id = Identifier()
    amount = Float(required=True, min_value=0.01)
    refund_type = String(choices=RefundType, required=True)
    status = String(choices=TransactionStatus, required=True)
    reason = String(max_length=500)
    requested_by = Identifier(required=True)
    processed_at = DateTime()

    @classmethod
    def issue(cls, original, amount, refund_transaction, reason, requested_by):
        now = datetime.now(UTC)
        refund_type = RefundType.FULL.value if round(amount, 2) == round(original.amount, 2) else RefundType.PARTIAL.value
        refund = cls(
            original_transaction_id=str(original.id),
            refund_transaction_id=str(refund_transaction.id),
            order_id=original.order_id,
            amount=round(amount, 2),
            refund_type=refund_type,
            status=refund_transaction.status,
            reason=reason,
            requested_by=requested_by,
            processed_at=now,
        )
        refund.raise_(
            RefundIssued(
                refund_id=str(refund.id),
                original_transaction_id=str(original.id),
                order_id=str(original.order_id) if original.order_id else None,
                amount=refund.amount,
                refund_type=refund_type,
                status=refund.status,
                requested_by=str(requested_by),
                issued_at=now,
            )
        )
        return refund
