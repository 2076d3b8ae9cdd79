"""3-D Secure coordination: commands and handler.

Challenges are opened automatically when a confirmation comes back with
"challenge required", or explicitly for a pending transaction. Completing a
challenge re-issues the gated confirmation and settles the pending row.
"""

from urllib.parse import urlencode

from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Boolean, Identifier, String
from protean.utils.globals import current_domain

from checkout import settings
from checkout.domain import checkout, logger
from checkout.errors import Conflict, GatewayError, NotFound
from checkout.gateway import get_gateway
from checkout.gateway.port import ChallengeRequired, GatewayFailure
from checkout.payment.ledger import (
    confirmation_outcome,
    handle_for,
    load_transaction,
    settle_pending,
)
from checkout.payment.fees import CASH_ON_DELIVERY
from checkout.payment.transaction import TransactionStatus
from checkout.payment.wallet_payment import WalletPayment
from checkout.secure.challenge import ThreeDSecureChallenge
from checkout.shared.caller import caller_from, require_signed_in


@checkout.command(part_of="ThreeDSecureChallenge")
class StartThreeDSecure:
    owner_id = Identifier()
    session_id = String(max_length=255)
    is_authenticated = Boolean(default=False)
    is_staff = Boolean(default=False)
    transaction_id = Identifier(required=True)
    return_url = String(max_length=1000)


@checkout.command(part_of="ThreeDSecureChallenge")
class CompleteThreeDSecure:
    owner_id = Identifier()
    session_id = String(max_length=255)
    is_authenticated = Boolean(default=False)
    is_staff = Boolean(default=False)
    challenge_id = Identifier(required=True)
    authenticated = Boolean(required=True)


def challenge_for(transaction_id) -> ThreeDSecureChallenge | None:
    challenges = (
        current_domain.repository_for(ThreeDSecureChallenge)
        ._dao.query.filter(transaction_id=str(transaction_id))
        .all()
        .items
    )
    return challenges[0] if challenges else None


def _challenge_url(transaction_id, return_url=None) -> str:
    url = f"{settings.THREE_DS_CHALLENGE_BASE_URL}/{transaction_id}"
    if return_url:
        url = f"{url}?{urlencode({'return_url': return_url})}"
    return url


def _record_wallet_verification(transaction) -> None:
    wallets = (
        current_domain.repository_for(WalletPayment)
        ._dao.query.filter(transaction_id=str(transaction.id))
        .all()
        .items
    )
    for wallet_payment in wallets:
        wallet_payment.record_verification(verified=transaction.succeeded)
        current_domain.repository_for(WalletPayment).add(wallet_payment)


@checkout.command_handler(part_of=ThreeDSecureChallenge)
class ThreeDSecureHandler:
    @handle(StartThreeDSecure)
    def start_three_d_secure(self, command):
        caller = caller_from(command)
        require_signed_in(caller)
        transaction = load_transaction(command.transaction_id, caller)

        existing = challenge_for(transaction.id)
        if existing is not None:
            if not existing.is_pending:
                raise Conflict(f"3-D Secure challenge is already {existing.status}")
            return {"challenge_id": str(existing.id), "challenge_url": existing.redirect_url}

        if not transaction.is_pending:
            raise Conflict(f"Transaction is already settled as {transaction.status}")
        if transaction.gateway == CASH_ON_DELIVERY:
            raise ValidationError({"transaction_id": ["Cash on delivery payments are not card-authenticated"]})

        challenge = ThreeDSecureChallenge.issue(
            transaction_id=str(transaction.id),
            redirect_url=_challenge_url(transaction.id, command.return_url),
            return_url=command.return_url,
        )
        current_domain.repository_for(ThreeDSecureChallenge).add(challenge)

        logger.info(
            "3-D Secure challenge started",
            transaction_id=str(transaction.id),
            challenge_id=str(challenge.id),
        )
        return {"challenge_id": str(challenge.id), "challenge_url": challenge.redirect_url}

    @handle(CompleteThreeDSecure)
    def complete_three_d_secure(self, command):
        caller = caller_from(command)
        require_signed_in(caller)
        try:
            challenge = current_domain.repository_for(ThreeDSecureChallenge).get(command.challenge_id)
        except ObjectNotFoundError:
            raise NotFound("3-D Secure challenge not found") from None

        transaction = load_transaction(challenge.transaction_id, caller)
        if not challenge.is_pending:
            raise Conflict(f"3-D Secure challenge is already {challenge.status}")

        challenge.complete(authenticated=bool(command.authenticated))
        current_domain.repository_for(ThreeDSecureChallenge).add(challenge)

        if not command.authenticated:
            settle_pending(transaction, succeeded=False, failure_reason="3-D Secure authentication failed")
        else:
            try:
                result = get_gateway().confirm(handle_for(transaction), return_url=challenge.return_url)
            except GatewayError as exc:
                result = GatewayFailure(reason=exc.message)
            if isinstance(result, ChallengeRequired):
                result = GatewayFailure(reason="3-D Secure authentication did not complete")

            status, fraud, failure_reason = confirmation_outcome(result)
            settle_pending(
                transaction,
                succeeded=status == TransactionStatus.SUCCESS.value,
                failure_reason=failure_reason,
                fraud_assessment=fraud,
            )

        _record_wallet_verification(transaction)

        logger.info(
            "3-D Secure challenge completed",
            challenge_id=str(challenge.id),
            transaction_id=str(transaction.id),
            challenge_status=challenge.status,
            transaction_status=transaction.status,
        )

        return {
            "challenge_id": str(challenge.id),
            "status": challenge.status,
            "transaction_id": str(transaction.id),
            "transaction_status": transaction.status,
        }
