"""Refunds: command and handler.

A refund acts on a successful ``payment`` or ``capture`` row. It writes a
``Refund`` record and a mirroring ``refund`` ledger row, and the sum of
successful refunds against one original never exceeds the original amount.
"""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, Float, Identifier, String
from protean.utils.globals import current_domain

from checkout.domain import checkout, logger
from checkout.errors import Conflict, GatewayError
from checkout.gateway import get_gateway
from checkout.gateway.port import GatewayFailure, RefundSucceeded
from checkout.notifications.dispatch import dispatch_notification
from checkout.order.order import Order
from checkout.payment.fees import CASH_ON_DELIVERY, refund_fees
from checkout.payment.ledger import handle_for, load_transaction
from checkout.payment.transaction import (
    PaymentTransaction,
    Refund,
    TransactionStatus,
    TransactionType,
)
from checkout.shared.caller import caller_from, require_signed_in

_REFUNDABLE_TYPES = {TransactionType.PAYMENT.value, TransactionType.CAPTURE.value}


@checkout.command(part_of="Refund")
class RefundPayment:
    owner_id = Identifier()
    session_id = String(max_length=255)
    is_authenticated = Boolean(default=False)
    is_staff = Boolean(default=False)
    transaction_id = Identifier(required=True)
    amount = Float(min_value=0.01)
    reason = String(max_length=500, default="requested_by_customer")


def refunded_total(original_transaction_id) -> float:
    """Sum of successful refunds already issued against a transaction."""
    refunds = (
        current_domain.repository_for(Refund)
        ._dao.query.filter(
            original_transaction_id=str(original_transaction_id),
            status=TransactionStatus.SUCCESS.value,
        )
        .all()
        .items
    )
    return round(sum(r.amount for r in refunds), 2)


def order_refunded_total(order_id) -> float:
    refunds = (
        current_domain.repository_for(Refund)
        ._dao.query.filter(order_id=str(order_id), status=TransactionStatus.SUCCESS.value)
        .all()
        .items
    )
    return round(sum(r.amount for r in refunds), 2)


@checkout.command_handler(part_of=Refund)
class RefundPaymentHandler:
    @handle(RefundPayment)
    def refund_payment(self, command):
        caller = caller_from(command)
        require_signed_in(caller)
        original = load_transaction(command.transaction_id, caller)

        if original.transaction_type not in _REFUNDABLE_TYPES:
            raise ValidationError({"transaction_id": ["Only payments and captures can be refunded"]})
        if not original.succeeded:
            raise Conflict(f"Transaction is {original.status} and cannot be refunded")
        if original.gateway == CASH_ON_DELIVERY:
            raise ValidationError({"transaction_id": ["Cash on delivery payments are refunded outside the processor"]})

        amount = round(command.amount if command.amount is not None else original.amount, 2)
        already_refunded = refunded_total(original.id)
        refundable = round(original.amount - already_refunded, 2)
        if amount > refundable:
            raise ValidationError(
                {"amount": [f"Refund of {amount:.2f} exceeds the refundable balance of {refundable:.2f}"]}
            )

        prior_order_refunds = order_refunded_total(original.order_id) if original.order_id else 0.0

        try:
            result = get_gateway().refund(handle_for(original), amount)
        except GatewayError as exc:
            result = GatewayFailure(reason=exc.message)

        succeeded = isinstance(result, RefundSucceeded)
        refund_row = PaymentTransaction.record(
            owner_id=str(original.owner_id),
            order_id=original.order_id,
            transaction_type=TransactionType.REFUND.value,
            status=TransactionStatus.SUCCESS.value if succeeded else TransactionStatus.FAILED.value,
            amount=amount,
            currency=original.currency,
            gateway=original.gateway,
            gateway_reference=result.refund_reference if succeeded else original.gateway_reference,
            original_transaction_id=str(original.id),
            payment_method_id=original.payment_method_id,
            fee_breakdown=refund_fees(amount),
            failure_reason=None if succeeded else result.reason,
        )
        current_domain.repository_for(PaymentTransaction).add(refund_row)

        refund = Refund.issue(
            original=original,
            amount=amount,
            refund_transaction=refund_row,
            reason=command.reason,
            requested_by=caller.owner_id,
        )
        current_domain.repository_for(Refund).add(refund)

        logger.info(
            "Refund recorded",
            refund_id=str(refund.id),
            transaction_id=str(refund_row.id),
            original_transaction_id=str(original.id),
            amount=amount,
            status=refund.status,
        )

        if succeeded and original.order_id:
            order_repo = current_domain.repository_for(Order)
            order = order_repo.get(original.order_id)
            order.record_refund(prior_order_refunds + amount, transaction_id=str(refund_row.id))
            order_repo.add(order)

            dispatch_notification(
                str(order.owner_id),
                "refund_processed",
                {
                    "order_id": str(order.id),
                    "order_number": order.order_number,
                    "refund_id": str(refund.id),
                    "amount": amount,
                    "refund_type": refund.refund_type,
                },
            )

        response = {
            "refund_id": str(refund.id),
            "transaction_id": str(refund_row.id),
            "status": refund.status,
            "refund_type": refund.refund_type,
            "amount": amount,
        }
        if refund_row.failure_reason:
            response["failure_reason"] = refund_row.failure_reason
        return response
