"""Configurable fake payment gateway for development and testing.

No external calls are made. Behaviour is switched at runtime, either through
``configure()`` in tests or the ``/payments/gateway/configure`` endpoint
during manual API testing:

- ``should_succeed`` turns every confirm, capture and refund into a rejection
- ``require_challenge`` makes the first confirm of each intent demand a
  3-D Secure challenge; confirming the same intent again goes through
- ``risk_score`` fixes the fraud score reported on confirmation
"""

from uuid import uuid4

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

ELEVATED_RISK_THRESHOLD = 65


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    name = "fake"

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Card declined"
        self.require_challenge: bool = False
        self.risk_score: int = 12
        self.calls: list[dict] = []
        self._challenged: set[str] = set()

    def configure(
        self,
        should_succeed: bool,
        failure_reason: str = "Card declined",
        require_challenge: bool = False,
        risk_score: int | None = None,
    ) -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.require_challenge = require_challenge
        if risk_score is not None:
            self.risk_score = risk_score

    def _fraud_signal(self) -> FraudSignal:
        level = "elevated" if self.risk_score >= ELEVATED_RISK_THRESHOLD else "normal"
        return FraudSignal(risk_score=self.risk_score, risk_level=level)

    def create_intent(
        self,
        amount: float,
        currency: str,
        method_ref: str | None,
        manual_capture: bool = False,
        idempotency_key: str | None = None,
    ) -> PaymentHandle:
        self.calls.append(
            {
                "method": "create_intent",
                "amount": amount,
                "currency": currency,
                "method_ref": method_ref,
                "manual_capture": manual_capture,
                "idempotency_key": idempotency_key,
            }
        )
        return PaymentHandle(
            reference=f"fake_pi_{uuid4().hex[:12]}",
            amount=amount,
            currency=currency,
        )

    def confirm(self, handle: PaymentHandle, return_url: str | None = None):
        self.calls.append({"method": "confirm", "reference": handle.reference, "return_url": return_url})

        if self.require_challenge and handle.reference not in self._challenged:
            self._challenged.add(handle.reference)
            return ChallengeRequired(
                redirect_url=f"https://fake-gateway.test/3ds/{handle.reference}",
                provider_reference=f"fake_3ds_{uuid4().hex[:12]}",
            )

        if self.should_succeed:
            return ConfirmSucceeded(fraud=self._fraud_signal())
        return GatewayFailure(reason=self.failure_reason, fraud=self._fraud_signal())

    def capture(self, handle: PaymentHandle, amount: float | None = None):
        self.calls.append({"method": "capture", "reference": handle.reference, "amount": amount})

        if self.should_succeed:
            return CaptureSucceeded(captured_amount=amount if amount is not None else handle.amount)
        return GatewayFailure(reason=self.failure_reason)

    def refund(self, handle: PaymentHandle, amount: float):
        self.calls.append({"method": "refund", "reference": handle.reference, "amount": amount})

        if self.should_succeed:
            return RefundSucceeded(refund_reference=f"fake_re_{uuid4().hex[:12]}")
        return GatewayFailure(reason=self.failure_reason)
