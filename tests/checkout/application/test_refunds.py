"""Application tests for refunds against the ledger."""

import pytest
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from checkout.errors import Conflict, Forbidden
from checkout.order.order import Order, PaymentStatus
from checkout.payment.cod import ConfirmCashOnDelivery, ProcessCashOnDelivery
from checkout.payment.ledger import get_transaction
from checkout.payment.processing import ProcessPayment
from checkout.payment.refunds import RefundPayment
from checkout.payment.transaction import Refund, RefundType, TransactionStatus, TransactionType
from checkout.shared.caller import command_fields


def _refund(caller, transaction_id, **extra):
    return current_domain.process(
        RefundPayment(**command_fields(caller), transaction_id=transaction_id, **extra),
        asynchronous=False,
    )


@pytest.fixture()
def payment_id(owner, placed_order, card):
    result = current_domain.process(
        ProcessPayment(**command_fields(owner), order_id=str(placed_order.id)),
        asynchronous=False,
    )
    return result["transaction_id"]


def _payment_status(order_id):
    return current_domain.repository_for(Order).get(order_id).payment_status


class TestRefundPayment:
    def test_full_refund(self, owner, placed_order, payment_id, notifier):
        result = _refund(owner, payment_id)
        assert result["status"] == TransactionStatus.SUCCESS.value
        assert result["refund_type"] == RefundType.FULL.value
        assert result["amount"] == 54.25

        row = get_transaction(result["transaction_id"], owner)
        assert row["type"] == TransactionType.REFUND.value
        assert row["original_transaction_id"] == payment_id
        assert row["fee_breakdown"]["net_amount"] == -54.25

        assert _payment_status(placed_order.id) == PaymentStatus.REFUNDED.value
        assert "refund_processed" in notifier.events_for("owner-001")

    def test_partial_refunds_accumulate(self, owner, placed_order, payment_id):
        first = _refund(owner, payment_id, amount=20.0)
        assert first["refund_type"] == RefundType.PARTIAL.value
        assert _payment_status(placed_order.id) == PaymentStatus.PARTIALLY_REFUNDED.value

        _refund(owner, payment_id, amount=34.25)
        assert _payment_status(placed_order.id) == PaymentStatus.REFUNDED.value

    def test_refund_cannot_exceed_balance(self, owner, payment_id):
        _refund(owner, payment_id, amount=50.0)
        with pytest.raises(ValidationError):
            _refund(owner, payment_id, amount=5.0)

    def test_reason_is_kept(self, owner, payment_id):
        refund_id = _refund(owner, payment_id, amount=5.0, reason="damaged")["refund_id"]
        assert current_domain.repository_for(Refund).get(refund_id).reason == "damaged"

    def test_declined_refund_leaves_order_paid(self, owner, placed_order, payment_id, gateway):
        gateway.configure(should_succeed=False, failure_reason="Refund window closed")
        result = _refund(owner, payment_id, amount=10.0)

        assert result["status"] == TransactionStatus.FAILED.value
        assert result["failure_reason"] == "Refund window closed"
        assert _payment_status(placed_order.id) == PaymentStatus.PAID.value

    def test_declined_refund_does_not_consume_balance(self, owner, payment_id, gateway):
        gateway.configure(should_succeed=False)
        _refund(owner, payment_id, amount=54.25)
        gateway.configure(should_succeed=True)
        assert _refund(owner, payment_id)["status"] == TransactionStatus.SUCCESS.value

    def test_refund_rows_cannot_be_refunded(self, owner, payment_id):
        refund_row = _refund(owner, payment_id, amount=5.0)["transaction_id"]
        with pytest.raises(ValidationError):
            _refund(owner, refund_row)

    def test_failed_payment_cannot_be_refunded(self, owner, placed_order, card, gateway):
        gateway.configure(should_succeed=False)
        failed = current_domain.process(
            ProcessPayment(**command_fields(owner), order_id=str(placed_order.id)),
            asynchronous=False,
        )
        with pytest.raises(Conflict):
            _refund(owner, failed["transaction_id"])

    def test_other_owner_is_forbidden(self, other_owner, payment_id):
        with pytest.raises(Forbidden):
            _refund(other_owner, payment_id)

    def test_cash_on_delivery_is_refunded_offline(self, owner, staff, placed_order):
        cod = current_domain.process(
            ProcessCashOnDelivery(**command_fields(owner), order_id=str(placed_order.id)),
            asynchronous=False,
        )
        current_domain.process(
            ConfirmCashOnDelivery(**command_fields(staff), transaction_id=cod["transaction_id"]),
            asynchronous=False,
        )
        with pytest.raises(ValidationError):
            _refund(owner, cod["transaction_id"])
