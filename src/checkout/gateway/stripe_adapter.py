"""Stripe payment gateway adapter.

Maps the four gateway primitives onto Stripe PaymentIntents:

- ``create_intent`` → ``PaymentIntent.create`` (manual capture for authorizations)
- ``confirm`` → ``PaymentIntent.confirm``; ``requires_action`` becomes a
  3-D Secure challenge, Radar's charge outcome becomes the fraud signal
- ``capture`` → ``PaymentIntent.capture``
- ``refund`` → ``Refund.create``

Amounts cross the boundary in minor units (cents).
"""

import stripe

from checkout.domain import logger
from checkout.errors import GatewayError
from checkout.gateway.port import (
    CaptureSucceeded,
    ChallengeRequired,
    ConfirmSucceeded,
    FraudSignal,
    GatewayFailure,
    PaymentGateway,
    PaymentHandle,
    RefundSucceeded,
)

_CONFIRMED_STATUSES = {"succeeded", "requires_capture", "processing"}


def _to_minor_units(amount: float) -> int:
    return int(round(amount * 100))


class StripeGateway(PaymentGateway):
    """Production Stripe gateway adapter."""

    name = "stripe"

    def __init__(self, api_key: str, return_url: str | None = None) -> None:
        self.api_key = api_key
        self.return_url = return_url

    def create_intent(
        self,
        amount: float,
        currency: str,
        method_ref: str | None,
        manual_capture: bool = False,
        idempotency_key: str | None = None,
    ) -> PaymentHandle:
        params = {
            "amount": _to_minor_units(amount),
            "currency": currency.lower(),
            "capture_method": "manual" if manual_capture else "automatic",
            "api_key": self.api_key,
        }
        if method_ref:
            params["payment_method"] = method_ref
        if idempotency_key:
            params["idempotency_key"] = idempotency_key

        try:
            intent = stripe.PaymentIntent.create(**params)
        except stripe.StripeError as exc:
            logger.error("Stripe intent creation failed", error=str(exc))
            raise GatewayError(f"Payment processor unavailable: {exc}") from exc

        return PaymentHandle(reference=intent.id, amount=amount, currency=currency)

    def _fraud_signal(self, intent) -> FraudSignal | None:
        charge_id = getattr(intent, "latest_charge", None)
        if not charge_id:
            return None
        try:
            charge = stripe.Charge.retrieve(charge_id, api_key=self.api_key)
        except stripe.StripeError as exc:
            logger.warning("Stripe charge lookup failed, no fraud signal", charge_id=charge_id, error=str(exc))
            return None
        outcome = getattr(charge, "outcome", None)
        if outcome is None:
            return None
        level = "normal" if outcome.risk_level in ("normal", "not_assessed") else "elevated"
        return FraudSignal(risk_score=int(outcome.risk_score or 0), risk_level=level)

    def _challenge(self, intent):
        # Only redirect actions can be shown to the payer
        next_action = getattr(intent, "next_action", None)
        redirect = getattr(next_action, "redirect_to_url", None)
        url = getattr(redirect, "url", None)
        if url:
            return ChallengeRequired(redirect_url=url, provider_reference=intent.id)

        action_type = getattr(next_action, "type", None) or "unknown"
        logger.warning("Stripe next action cannot be presented", reference=intent.id, action_type=action_type)
        return GatewayFailure(reason=f"Payment requires an unsupported authentication step ({action_type})")

    def confirm(self, handle: PaymentHandle, return_url: str | None = None):
        params = {"api_key": self.api_key}
        if return_url or self.return_url:
            params["return_url"] = return_url or self.return_url

        try:
            intent = stripe.PaymentIntent.confirm(handle.reference, **params)
        except stripe.CardError as exc:
            return GatewayFailure(reason=exc.user_message or str(exc))
        except stripe.StripeError as exc:
            logger.error("Stripe confirmation failed", reference=handle.reference, error=str(exc))
            raise GatewayError(f"Payment processor unavailable: {exc}") from exc

        if intent.status == "requires_action":
            return self._challenge(intent)

        fraud = self._fraud_signal(intent)
        if intent.status in _CONFIRMED_STATUSES:
            return ConfirmSucceeded(fraud=fraud or FraudSignal(risk_score=0, risk_level="normal"))

        error = getattr(intent, "last_payment_error", None)
        reason = error.message if error is not None else f"Payment intent {intent.status}"
        return GatewayFailure(reason=reason, fraud=fraud)

    def capture(self, handle: PaymentHandle, amount: float | None = None):
        params = {"api_key": self.api_key}
        if amount is not None:
            params["amount_to_capture"] = _to_minor_units(amount)

        try:
            intent = stripe.PaymentIntent.capture(handle.reference, **params)
        except stripe.InvalidRequestError as exc:
            return GatewayFailure(reason=str(exc))
        except stripe.StripeError as exc:
            logger.error("Stripe capture failed", reference=handle.reference, error=str(exc))
            raise GatewayError(f"Payment processor unavailable: {exc}") from exc

        if intent.status != "succeeded":
            return GatewayFailure(reason=f"Capture ended in status {intent.status}")
        return CaptureSucceeded(captured_amount=intent.amount_received / 100)

    def refund(self, handle: PaymentHandle, amount: float):
        try:
            refund = stripe.Refund.create(
                payment_intent=handle.reference,
                amount=_to_minor_units(amount),
                api_key=self.api_key,
            )
        except stripe.InvalidRequestError as exc:
            return GatewayFailure(reason=str(exc))
        except stripe.StripeError as exc:
            logger.error("Stripe refund failed", reference=handle.reference, error=str(exc))
            raise GatewayError(f"Payment processor unavailable: {exc}") from exc

        if refund.status in ("succeeded", "pending"):
            return RefundSucceeded(refund_reference=refund.id)
        return GatewayFailure(reason=getattr(refund, "failure_reason", None) or f"Refund {refund.status}")
