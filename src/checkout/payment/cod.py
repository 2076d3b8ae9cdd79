"""Cash on delivery: commands and handler.

Choosing cash on delivery confirms the order and writes a ``pending`` ledger
row for the full order total. Staff settle the row once the courier has
collected the money, which marks the order paid.
"""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, Identifier, String
from protean.utils.globals import current_domain

from checkout import settings
from checkout.domain import checkout, logger
from checkout.errors import Conflict, Forbidden
from checkout.order.order import Order, OrderStatus
from checkout.payment.fees import CASH_ON_DELIVERY, compute_fees
from checkout.payment.ledger import load_payable_order, load_transaction, settle_pending
from checkout.payment.transaction import PaymentTransaction, TransactionStatus, TransactionType
from checkout.shared.caller import caller_from, require_signed_in


@checkout.command(part_of="PaymentTransaction")
class ProcessCashOnDelivery:
    owner_id = Identifier()
    session_id = String(max_length=255)
    is_authenticated = Boolean(default=False)
    is_staff = Boolean(default=False)
    order_id = Identifier(required=True)


@checkout.command(part_of="PaymentTransaction")
class ConfirmCashOnDelivery:
    owner_id = Identifier()
    session_id = String(max_length=255)
    is_authenticated = Boolean(default=False)
    is_staff = Boolean(default=False)
    transaction_id = Identifier(required=True)


@checkout.command_handler(part_of=PaymentTransaction)
class CashOnDeliveryHandler:
    @handle(ProcessCashOnDelivery)
    def process_cash_on_delivery(self, command):
        caller = caller_from(command)
        require_signed_in(caller)
        order = load_payable_order(command.order_id, caller)

        existing = (
            current_domain.repository_for(PaymentTransaction)
            ._dao.query.filter(
                order_id=str(order.id),
                gateway=CASH_ON_DELIVERY,
                status=TransactionStatus.PENDING.value,
            )
            .all()
            .items
        )
        if existing:
            raise Conflict("Cash on delivery has already been arranged for this order")

        transaction = PaymentTransaction.record(
            owner_id=str(order.owner_id),
            order_id=str(order.id),
            transaction_type=TransactionType.PAYMENT.value,
            status=TransactionStatus.PENDING.value,
            amount=order.total,
            currency=order.currency or settings.CURRENCY,
            gateway=CASH_ON_DELIVERY,
            fee_breakdown=compute_fees(order.total, CASH_ON_DELIVERY),
        )
        current_domain.repository_for(PaymentTransaction).add(transaction)

        if order.status == OrderStatus.PENDING.value:
            order.confirm(payment_method=CASH_ON_DELIVERY)
        else:
            order.payment_method = CASH_ON_DELIVERY
        current_domain.repository_for(Order).add(order)

        logger.info(
            "Cash on delivery arranged",
            order_id=str(order.id),
            transaction_id=str(transaction.id),
            amount=order.total,
        )

        return {
            "transaction_id": str(transaction.id),
            "status": transaction.status,
            "order_id": str(order.id),
            "payment_method": CASH_ON_DELIVERY,
            "amount": order.total,
            "currency": transaction.currency,
        }

    @handle(ConfirmCashOnDelivery)
    def confirm_cash_on_delivery(self, command):
        caller = caller_from(command)
        if not caller.is_staff:
            raise Forbidden("Only staff can confirm cash collection")

        transaction = load_transaction(command.transaction_id, caller)
        if transaction.gateway != CASH_ON_DELIVERY:
            raise ValidationError({"transaction_id": ["Transaction is not a cash on delivery payment"]})

        settle_pending(transaction, succeeded=True)

        return {"transaction_id": str(transaction.id), "status": transaction.status}
