"""Payment gateway factory.

Provides get_gateway() / set_gateway() to swap implementations:
- FakeGateway for development and testing (default)
- StripeGateway when CHECKOUT_GATEWAY=stripe
"""

from checkout import settings
from checkout.gateway.fake_adapter import FakeGateway
from checkout.gateway.port import PaymentGateway

_current_gateway: PaymentGateway | None = None


def _build_default() -> PaymentGateway:
    if settings.GATEWAY == "stripe":
        from checkout.gateway.stripe_adapter import StripeGateway

        return StripeGateway(api_key=settings.STRIPE_SECRET_KEY, return_url=settings.PAYMENT_RETURN_URL)
    return FakeGateway()


def get_gateway() -> PaymentGateway:
    """Return the current payment gateway."""
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = _build_default()
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    """Reset to default gateway."""
    global _current_gateway
    _current_gateway = None
