"""Two-phase payments: authorize now, capture later.

An authorization reserves funds without collecting them. Capturing it
collects up to the authorized amount, writes a ``capture`` row pointing at
the authorization, flags the authorization as captured and marks the order
paid. A captured authorization cannot be captured again.
"""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, Float, Identifier, String
from protean.utils.globals import current_domain

from checkout.domain import checkout, logger
from checkout.errors import Conflict, GatewayError
from checkout.gateway import get_gateway
from checkout.gateway.port import CaptureSucceeded, GatewayFailure
from checkout.payment.fees import compute_fees
from checkout.payment.ledger import (
    handle_for,
    load_payable_order,
    load_transaction,
    mark_order_paid,
    outcome_response,
    resolve_payment_method,
)
from checkout.payment.processing import charge_amount, record_gateway_charge
from checkout.payment.transaction import PaymentTransaction, TransactionStatus, TransactionType
from checkout.shared.caller import caller_from, require_signed_in


@checkout.command(part_of="PaymentTransaction")
class AuthorizePayment:
    owner_id = Identifier()
    session_id = String(max_length=255)
    is_authenticated = Boolean(default=False)
    is_staff = Boolean(default=False)
    order_id = Identifier(required=True)
    payment_method_id = Identifier()
    amount = Float(min_value=0.01)
    return_url = String(max_length=1000)


@checkout.command(part_of="PaymentTransaction")
class CapturePayment:
    owner_id = Identifier()
    session_id = String(max_length=255)
    is_authenticated = Boolean(default=False)
    is_staff = Boolean(default=False)
    transaction_id = Identifier(required=True)
    amount = Float(min_value=0.01)


@checkout.command_handler(part_of=PaymentTransaction)
class AuthorizationHandler:
    @handle(AuthorizePayment)
    def authorize_payment(self, command):
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
            TransactionType.AUTHORIZATION.value,
            return_url=command.return_url,
        )

    @handle(CapturePayment)
    def capture_payment(self, command):
        caller = caller_from(command)
        require_signed_in(caller)
        repo = current_domain.repository_for(PaymentTransaction)
        authorization = load_transaction(command.transaction_id, caller)

        if authorization.transaction_type != TransactionType.AUTHORIZATION.value:
            raise ValidationError({"transaction_id": ["Only authorizations can be captured"]})
        if not authorization.succeeded:
            raise Conflict(f"Authorization is {authorization.status} and cannot be captured")
        if authorization.captured:
            raise Conflict("Authorization has already been captured")

        amount = command.amount if command.amount is not None else authorization.amount
        if round(amount, 2) > round(authorization.amount, 2):
            raise ValidationError(
                {"amount": [f"Capture of {amount:.2f} exceeds the authorized amount of {authorization.amount:.2f}"]}
            )

        gateway = get_gateway()
        try:
            result = gateway.capture(handle_for(authorization), amount)
        except GatewayError as exc:
            result = GatewayFailure(reason=exc.message)

        if isinstance(result, CaptureSucceeded):
            status, captured_amount, failure_reason = TransactionStatus.SUCCESS.value, result.captured_amount, None
        else:
            status, captured_amount, failure_reason = TransactionStatus.FAILED.value, amount, result.reason

        capture = PaymentTransaction.record(
            owner_id=str(authorization.owner_id),
            order_id=authorization.order_id,
            transaction_type=TransactionType.CAPTURE.value,
            status=status,
            amount=captured_amount,
            currency=authorization.currency,
            gateway=authorization.gateway,
            gateway_reference=authorization.gateway_reference,
            original_transaction_id=str(authorization.id),
            payment_method_id=authorization.payment_method_id,
            fee_breakdown=compute_fees(captured_amount, authorization.gateway),
            fraud_assessment=authorization.fraud_assessment,
            failure_reason=failure_reason,
        )
        repo.add(capture)

        logger.info(
            "Capture recorded",
            transaction_id=str(capture.id),
            authorization_id=str(authorization.id),
            status=status,
        )

        if capture.succeeded:
            authorization.mark_captured(capture.id)
            repo.add(authorization)
            mark_order_paid(capture)

        return outcome_response(capture)
