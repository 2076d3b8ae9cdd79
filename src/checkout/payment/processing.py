"""Direct payment: command and handler.

Charges an order in one step (create + confirm). The outcome is always
written to the ledger: a processor rejection produces a ``failed`` row and
a normal response, and a 3-D Secure demand leaves the row ``pending`` with a
challenge attached.
"""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, Float, Identifier, String
from protean.utils.globals import current_domain

from checkout import settings
from checkout.domain import checkout, logger
from checkout.gateway import get_gateway
from checkout.gateway.port import ChallengeRequired
from checkout.payment.fees import compute_fees
from checkout.payment.ledger import (
    confirmation_outcome,
    create_and_confirm,
    load_payable_order,
    mark_order_paid,
    open_challenge,
    outcome_response,
    resolve_payment_method,
)
from checkout.payment.transaction import PaymentTransaction, TransactionType
from checkout.shared.caller import caller_from, require_signed_in


@checkout.command(part_of="PaymentTransaction")
class ProcessPayment:
    """Charge an order using a stored payment method."""

    owner_id = Identifier()
    session_id = String(max_length=255)
    is_authenticated = Boolean(default=False)
    is_staff = Boolean(default=False)
    order_id = Identifier(required=True)
    payment_method_id = Identifier()
    amount = Float(min_value=0.01)
    return_url = String(max_length=1000)


def charge_amount(order, requested) -> float:
    """The amount to charge: the order total unless a smaller amount is asked for."""
    amount = requested if requested is not None else order.total
    if round(amount, 2) > round(order.total, 2):
        raise ValidationError({"amount": [f"Payment of {amount:.2f} exceeds the order total of {order.total:.2f}"]})
    return amount


def record_gateway_charge(order, owner_id, method, amount, transaction_type, return_url=None):
    """Create + confirm through the gateway and append the resulting row.

    Returns the response dict for the caller.
    """
    gateway = get_gateway()
    manual_capture = transaction_type == TransactionType.AUTHORIZATION.value
    handle, result = create_and_confirm(
        gateway,
        amount=amount,
        currency=order.currency or settings.CURRENCY,
        method_ref=method.gateway_method_ref,
        manual_capture=manual_capture,
        return_url=return_url,
    )
    status, fraud, failure_reason = confirmation_outcome(result)

    transaction = PaymentTransaction.record(
        owner_id=owner_id,
        order_id=str(order.id),
        transaction_type=transaction_type,
        status=status,
        amount=amount,
        currency=order.currency or settings.CURRENCY,
        gateway=gateway.name,
        gateway_reference=handle.reference if handle else None,
        payment_method_id=str(method.id),
        fee_breakdown=compute_fees(amount, gateway.name),
        fraud_assessment=fraud,
        failure_reason=failure_reason,
    )
    current_domain.repository_for(PaymentTransaction).add(transaction)

    logger.info(
        "Transaction recorded",
        transaction_id=str(transaction.id),
        order_id=str(order.id),
        transaction_type=transaction_type,
        status=status,
    )

    challenge = None
    if isinstance(result, ChallengeRequired):
        challenge = open_challenge(transaction, result, return_url=return_url)
    elif transaction.succeeded and transaction_type == TransactionType.PAYMENT.value:
        mark_order_paid(transaction)

    return outcome_response(transaction, challenge)


@checkout.command_handler(part_of=PaymentTransaction)
class ProcessPaymentHandler:
    @handle(ProcessPayment)
    def process_payment(self, command):
        caller = caller_from(command)
        require_signed_in(caller)
        order = load_payable_order(command.order_id, caller)
        owner_id = str(order.owner_id)

        amount = charge_amount(order, command.amount)

        method = resolve_payment_method(owner_id, command.payment_method_id)
        return record_gateway_charge(
            order,
            owner_id,
            method,
            amount,
            TransactionType.PAYMENT.value,
            return_url=command.return_url,
        )
