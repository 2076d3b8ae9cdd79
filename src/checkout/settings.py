"""Business settings for the Checkout domain.

Infrastructure configuration (databases, brokers, event store) lives in
``domain.toml``. The values here are pricing and lifecycle knobs, each
overridable through an environment variable of the same name.
"""

import os


def _float(name: str, default: float) -> float:
    return float(os.environ.get(name, default))


def _int(name: str, default: int) -> int:
    return int(os.environ.get(name, default))


# Purchase intents
INTENT_TTL_MINUTES = _int("CHECKOUT_INTENT_TTL_MINUTES", 15)
MIN_INTENT_QUANTITY = 1
MAX_INTENT_QUANTITY = 10

# Pricing
TAX_RATE = _float("CHECKOUT_TAX_RATE", 0.085)
FREE_SHIPPING_THRESHOLD = _float("CHECKOUT_FREE_SHIPPING_THRESHOLD", 50.00)
ORDER_SHIPPING_FEE = _float("CHECKOUT_ORDER_SHIPPING_FEE", 9.99)
CART_SHIPPING_FEE = _float("CHECKOUT_CART_SHIPPING_FEE", 5.99)
CURRENCY = os.environ.get("CHECKOUT_CURRENCY", "USD")

# Processor fees
FEE_FIXED = _float("CHECKOUT_FEE_FIXED", 0.30)
FEE_PERCENT = _float("CHECKOUT_FEE_PERCENT", 2.9)

# Gateway selection
GATEWAY = os.environ.get("CHECKOUT_GATEWAY", "fake")
STRIPE_SECRET_KEY = os.environ.get("STRIPE_SECRET_KEY", "")
THREE_DS_CHALLENGE_BASE_URL = os.environ.get("CHECKOUT_3DS_CHALLENGE_URL", "https://3ds.example.com/challenge")
PAYMENT_RETURN_URL = os.environ.get("CHECKOUT_PAYMENT_RETURN_URL") or None

# Development only: stock the in-memory catalog with demo products at startup
SEED_DEMO_CATALOG = os.environ.get("CHECKOUT_SEED_DEMO_CATALOG", "").lower() in ("1", "true", "yes")


def is_production() -> bool:
    return os.environ.get("PROTEAN_ENV") == "production"
