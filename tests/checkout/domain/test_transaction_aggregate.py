"""Tests for PaymentTransaction, Refund and fee computation."""

import pytest
from protean.exceptions import ValidationError

from checkout.payment.events import AuthorizationCaptured, TransactionSettled
from checkout.payment.fees import CASH_ON_DELIVERY, compute_fees, refund_fees
from checkout.payment.transaction import (
    PaymentTransaction,
    Refund,
    RefundType,
    TransactionStatus,
    TransactionType,
)


def _record(**overrides):
    defaults = {
        "owner_id": "owner-001",
        "order_id": "ord-001",
        "transaction_type": TransactionType.PAYMENT.value,
        "amount": 100.0,
        "gateway": "fake",
    }
    defaults.update(overrides)
    return PaymentTransaction.record(**defaults)


class TestRecord:
    def test_pending_row_has_no_processed_time(self):
        tx = _record()
        assert tx.is_pending
        assert tx.processed_at is None

    def test_settled_row_is_stamped(self):
        tx = _record(status=TransactionStatus.SUCCESS.value)
        assert tx.succeeded
        assert tx.processed_at is not None

    @pytest.mark.parametrize("transaction_type", [TransactionType.CAPTURE.value, TransactionType.REFUND.value])
    def test_capture_and_refund_rows_reference_an_original(self, transaction_type):
        with pytest.raises(ValidationError):
            _record(transaction_type=transaction_type)

    def test_amount_is_rounded(self):
        assert _record(amount=10.005001).amount == 10.01


class TestSettle:
    def test_settle_success(self):
        tx = _record()
        tx.settle(succeeded=True)
        assert tx.status == TransactionStatus.SUCCESS.value
        assert any(isinstance(e, TransactionSettled) for e in tx._events)

    def test_settle_failure_keeps_reason(self):
        tx = _record()
        tx.settle(succeeded=False, failure_reason="Card declined")
        assert tx.status == TransactionStatus.FAILED.value
        assert tx.failure_reason == "Card declined"

    def test_settled_rows_are_immutable(self):
        tx = _record()
        tx.settle(succeeded=True)
        with pytest.raises(ValidationError):
            tx.settle(succeeded=False)


class TestCaptureFlag:
    def test_mark_captured_once(self):
        auth = _record(transaction_type=TransactionType.AUTHORIZATION.value, status=TransactionStatus.SUCCESS.value)
        auth.mark_captured("cap-001")
        assert auth.captured
        assert any(isinstance(e, AuthorizationCaptured) for e in auth._events)
        with pytest.raises(ValidationError):
            auth.mark_captured("cap-002")

    def test_payment_rows_cannot_be_captured(self):
        tx = _record(status=TransactionStatus.SUCCESS.value)
        with pytest.raises(ValidationError):
            tx.mark_captured("cap-001")


class TestRefundRecord:
    def _refund_row(self, amount):
        return _record(
            transaction_type=TransactionType.REFUND.value,
            original_transaction_id="tx-original",
            amount=amount,
            status=TransactionStatus.SUCCESS.value,
        )

    def test_full_refund(self):
        original = _record(status=TransactionStatus.SUCCESS.value)
        refund = Refund.issue(original, 100.0, self._refund_row(100.0), "requested_by_customer", "owner-001")
        assert refund.refund_type == RefundType.FULL.value

    def test_partial_refund(self):
        original = _record(status=TransactionStatus.SUCCESS.value)
        refund = Refund.issue(original, 30.0, self._refund_row(30.0), "damaged", "owner-001")
        assert refund.refund_type == RefundType.PARTIAL.value
        assert refund.status == TransactionStatus.SUCCESS.value


class TestFees:
    def test_card_fees(self):
        fees = compute_fees(100.0, "fake")
        assert fees.fixed_fee == 0.30
        assert fees.percentage_fee == 2.90
        assert fees.total_fee == 3.20
        assert fees.net_amount == 96.80

    def test_cash_on_delivery_is_fee_free(self):
        fees = compute_fees(54.25, CASH_ON_DELIVERY)
        assert fees.total_fee == 0.0
        assert fees.net_amount == 54.25

    def test_refund_net_is_negative(self):
        assert refund_fees(20.0).net_amount == -20.0
