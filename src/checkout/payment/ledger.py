"""Ledger helpers shared by every payment operation.

Loading orders and transactions with ownership checks, resolving the payer's
payment method, turning gateway results into row outcomes, and propagating
successful payments onto the order.
"""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from checkout.domain import logger
from checkout.errors import Conflict, Forbidden, GatewayError, NotFound
from checkout.gateway.port import (
    ChallengeRequired,
    ConfirmSucceeded,
    FraudSignal,
    GatewayFailure,
    PaymentHandle,
)
from checkout.notifications.dispatch import dispatch_notification
from checkout.order.order import Order, OrderStatus, PaymentStatus
from checkout.payment.payment_method import PaymentMethod
from checkout.payment.transaction import (
    FraudAssessment,
    PaymentTransaction,
    TransactionStatus,
    TransactionType,
)
from checkout.secure.challenge import ThreeDSecureChallenge
from checkout.shared.caller import Caller


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------
def load_order(order_id, caller: Caller) -> Order:
    try:
        order = current_domain.repository_for(Order).get(order_id)
    except ObjectNotFoundError:
        raise NotFound("Order not found") from None

    if not caller.is_staff and str(order.owner_id) != str(caller.owner_id):
        raise Forbidden("Access denied - you do not own this order")
    return order


def load_payable_order(order_id, caller: Caller) -> Order:
    """Load an order that can still take a payment."""
    order = load_order(order_id, caller)
    if order.status == OrderStatus.CANCELLED.value:
        raise Conflict("Order has been cancelled")
    if order.payment_status != PaymentStatus.PENDING.value:
        raise Conflict(f"Order payment is already {order.payment_status}")
    return order


def load_transaction(transaction_id, caller: Caller) -> PaymentTransaction:
    try:
        transaction = current_domain.repository_for(PaymentTransaction).get(transaction_id)
    except ObjectNotFoundError:
        raise NotFound("Transaction not found") from None

    if not caller.is_staff and str(transaction.owner_id) != str(caller.owner_id):
        raise Forbidden("Access denied - you do not own this transaction")
    return transaction


def get_transaction(transaction_id, caller: Caller) -> dict:
    return load_transaction(transaction_id, caller).to_dict()


def resolve_payment_method(owner_id, payment_method_id=None) -> PaymentMethod:
    """The method named by id, else the owner's default method."""
    repo = current_domain.repository_for(PaymentMethod)

    if payment_method_id:
        try:
            method = repo.get(payment_method_id)
        except ObjectNotFoundError:
            raise NotFound("Payment method not found") from None
        if str(method.owner_id) != str(owner_id) or not method.is_active:
            raise NotFound("Payment method not found")
        return method

    defaults = repo._dao.query.filter(owner_id=str(owner_id), is_default=True, is_active=True).all().items
    if not defaults:
        raise NotFound("No default payment method on file")
    return defaults[0]


# ---------------------------------------------------------------------------
# Gateway outcomes
# ---------------------------------------------------------------------------
def handle_for(transaction: PaymentTransaction) -> PaymentHandle:
    return PaymentHandle(
        reference=transaction.gateway_reference,
        amount=transaction.amount,
        currency=transaction.currency,
    )


def fraud_assessment_from(signal: FraudSignal | None) -> FraudAssessment | None:
    if signal is None:
        return None
    return FraudAssessment(risk_score=signal.risk_score, risk_level=signal.risk_level)


def create_and_confirm(
    gateway, amount, currency, method_ref, manual_capture=False, idempotency_key=None, return_url=None
):
    """Run create + confirm against the processor.

    Transport errors come back as a GatewayFailure so the caller can record a
    failed row instead of failing the request. The handle is None when the
    intent could not even be created.
    """
    try:
        handle = gateway.create_intent(
            amount=amount,
            currency=currency,
            method_ref=method_ref,
            manual_capture=manual_capture,
            idempotency_key=idempotency_key,
        )
    except GatewayError as exc:
        return None, GatewayFailure(reason=exc.message)

    try:
        result = gateway.confirm(handle, return_url=return_url)
    except GatewayError as exc:
        return handle, GatewayFailure(reason=exc.message)
    return handle, result


def confirmation_outcome(result) -> tuple[str, FraudAssessment | None, str | None]:
    """Row status, fraud assessment and failure reason for a confirm result."""
    if isinstance(result, ConfirmSucceeded):
        return TransactionStatus.SUCCESS.value, fraud_assessment_from(result.fraud), None
    if isinstance(result, ChallengeRequired):
        return TransactionStatus.PENDING.value, None, None
    if isinstance(result, GatewayFailure):
        return TransactionStatus.FAILED.value, fraud_assessment_from(result.fraud), result.reason
    raise TypeError(f"Unexpected confirmation result: {result!r}")


def open_challenge(transaction: PaymentTransaction, result: ChallengeRequired, return_url=None) -> ThreeDSecureChallenge:
    """Record the challenge the processor demanded for a pending row."""
    challenge = ThreeDSecureChallenge.issue(
        transaction_id=str(transaction.id),
        redirect_url=result.redirect_url,
        return_url=return_url,
        provider_reference=result.provider_reference,
    )
    current_domain.repository_for(ThreeDSecureChallenge).add(challenge)

    logger.info(
        "3-D Secure challenge required",
        transaction_id=str(transaction.id),
        challenge_id=str(challenge.id),
    )
    return challenge


def outcome_response(transaction: PaymentTransaction, challenge: ThreeDSecureChallenge | None = None) -> dict:
    response = {"transaction_id": str(transaction.id), "status": transaction.status}
    if challenge is not None:
        response.update(
            status="requires_action",
            challenge_id=str(challenge.id),
            challenge_url=challenge.redirect_url,
        )
    if transaction.failure_reason:
        response["failure_reason"] = transaction.failure_reason
    return response


# ---------------------------------------------------------------------------
# Order side effects
# ---------------------------------------------------------------------------
def mark_order_paid(transaction: PaymentTransaction, payment_method=None) -> None:
    """Set the order's payment status to paid after a successful payment or capture."""
    if not transaction.order_id:
        return

    repo = current_domain.repository_for(Order)
    order = repo.get(transaction.order_id)
    if order.payment_status != PaymentStatus.PENDING.value:
        logger.warning(
            "Order payment status already settled",
            order_id=str(order.id),
            payment_status=order.payment_status,
            transaction_id=str(transaction.id),
        )
        return

    order.mark_paid(transaction_id=str(transaction.id), payment_method=payment_method)
    repo.add(order)

    dispatch_notification(
        str(order.owner_id),
        "payment_received",
        {
            "order_id": str(order.id),
            "order_number": order.order_number,
            "transaction_id": str(transaction.id),
            "amount": transaction.amount,
            "currency": transaction.currency,
        },
    )


def settle_pending(transaction: PaymentTransaction, succeeded, failure_reason=None, fraud_assessment=None) -> None:
    """Settle a pending row and apply the order side effect of a successful payment."""
    if not transaction.is_pending:
        raise Conflict(f"Transaction is already settled as {transaction.status}")

    transaction.settle(succeeded=succeeded, failure_reason=failure_reason, fraud_assessment=fraud_assessment)
    current_domain.repository_for(PaymentTransaction).add(transaction)

    logger.info(
        "Pending transaction settled",
        transaction_id=str(transaction.id),
        status=transaction.status,
    )

    if transaction.succeeded and transaction.transaction_type == TransactionType.PAYMENT.value:
        mark_order_paid(transaction)
