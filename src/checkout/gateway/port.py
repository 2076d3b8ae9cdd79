"""Payment gateway port (abstract interface).

Every processor is reduced to four primitives: create an intent, confirm it,
capture it and refund it. Each primitive answers with a tagged result type,
so the ledger never inspects provider-shaped payloads. Transport-level
problems (network, authentication, malformed requests) are raised as
``checkout.errors.GatewayError``.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class PaymentHandle:
    """Processor-side reference to a payment intent."""

    reference: str
    amount: float
    currency: str


@dataclass(frozen=True)
class FraudSignal:
    """Risk assessment returned alongside a confirmation."""

    risk_score: int
    risk_level: str  # normal, elevated


@dataclass(frozen=True)
class ConfirmSucceeded:
    fraud: FraudSignal


@dataclass(frozen=True)
class ChallengeRequired:
    """The card network demands a 3-D Secure challenge before confirming."""

    redirect_url: str
    provider_reference: str | None = None


@dataclass(frozen=True)
class CaptureSucceeded:
    captured_amount: float


@dataclass(frozen=True)
class RefundSucceeded:
    refund_reference: str


@dataclass(frozen=True)
class GatewayFailure:
    """The processor answered, and the answer was a rejection."""

    reason: str
    fraud: FraudSignal | None = None


ConfirmResult = ConfirmSucceeded | ChallengeRequired | GatewayFailure
CaptureResult = CaptureSucceeded | GatewayFailure
RefundResult = RefundSucceeded | GatewayFailure


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    name: str = "gateway"

    @abstractmethod
    def create_intent(
        self,
        amount: float,
        currency: str,
        method_ref: str | None,
        manual_capture: bool = False,
        idempotency_key: str | None = None,
    ) -> PaymentHandle:
        """Register a payment with the processor and return its handle."""
        ...

    @abstractmethod
    def confirm(self, handle: PaymentHandle, return_url: str | None = None) -> ConfirmResult:
        """Confirm a previously created intent.

        ``return_url`` is where the payer comes back to after an out-of-band
        authentication step such as 3-D Secure.
        """
        ...

    @abstractmethod
    def capture(self, handle: PaymentHandle, amount: float | None = None) -> CaptureResult:
        """Collect funds reserved by an authorization."""
        ...

    @abstractmethod
    def refund(self, handle: PaymentHandle, amount: float) -> RefundResult:
        """Return funds collected by a payment or capture."""
        ...
