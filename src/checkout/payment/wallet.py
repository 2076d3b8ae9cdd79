"""Device wallet payments (Apple Pay, Google Pay): command and handler.

The wallet record needs a transaction id before the processor is called, and
the processor call decides the transaction's outcome. A ``pending``
placeholder row is therefore written first and settled in place once the
processor answers.
"""

import hashlib

from protean import handle
from protean.fields import Boolean, Dict, Identifier, String
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
    open_challenge,
    outcome_response,
    settle_pending,
)
from checkout.payment.transaction import PaymentTransaction, TransactionStatus, TransactionType
from checkout.payment.wallet_payment import WalletPayment, WalletType
from checkout.shared.caller import caller_from, require_signed_in


@checkout.command(part_of="WalletPayment")
class ProcessWalletPayment:
    owner_id = Identifier()
    session_id = String(max_length=255)
    is_authenticated = Boolean(default=False)
    is_staff = Boolean(default=False)
    order_id = Identifier(required=True)
    wallet_type = String(required=True, choices=WalletType)
    device_token = String(required=True, max_length=4096)
    billing_contact = Dict()
    shipping_contact = Dict()
    return_url = String(max_length=1000)


def device_fingerprint(device_token: str) -> str:
    return hashlib.sha256(device_token.encode("utf-8")).hexdigest()[:32]


@checkout.command_handler(part_of=WalletPayment)
class WalletPaymentHandler:
    @handle(ProcessWalletPayment)
    def process_wallet_payment(self, command):
        caller = caller_from(command)
        require_signed_in(caller)
        order = load_payable_order(command.order_id, caller)
        gateway = get_gateway()
        currency = order.currency or settings.CURRENCY

        placeholder = PaymentTransaction.record(
            owner_id=str(order.owner_id),
            order_id=str(order.id),
            transaction_type=TransactionType.PAYMENT.value,
            status=TransactionStatus.PENDING.value,
            amount=order.total,
            currency=currency,
            gateway=gateway.name,
            fee_breakdown=compute_fees(order.total, gateway.name),
        )
        wallet_payment = WalletPayment.attach(
            transaction_id=str(placeholder.id),
            wallet_type=command.wallet_type,
            device_attestation=device_fingerprint(command.device_token),
            billing_contact=command.billing_contact,
            shipping_contact=command.shipping_contact,
        )

        handle, result = create_and_confirm(
            gateway,
            amount=order.total,
            currency=currency,
            method_ref=command.device_token,
            idempotency_key=f"wallet-{placeholder.id}",
            return_url=command.return_url,
        )
        if handle is not None:
            placeholder.gateway_reference = handle.reference
        current_domain.repository_for(PaymentTransaction).add(placeholder)

        status, fraud, failure_reason = confirmation_outcome(result)
        challenge = None
        if isinstance(result, ChallengeRequired):
            challenge = open_challenge(placeholder, result, return_url=command.return_url)
        else:
            settle_pending(
                placeholder,
                succeeded=status == TransactionStatus.SUCCESS.value,
                failure_reason=failure_reason,
                fraud_assessment=fraud,
            )
            wallet_payment.record_verification(
                verified=placeholder.succeeded,
                risk_score=fraud.risk_score if fraud else None,
            )
        current_domain.repository_for(WalletPayment).add(wallet_payment)

        logger.info(
            "Wallet payment processed",
            order_id=str(order.id),
            transaction_id=str(placeholder.id),
            wallet_type=command.wallet_type,
            status=placeholder.status,
        )

        response = outcome_response(placeholder, challenge)
        response["wallet_payment_id"] = str(wallet_payment.id)
        return response
