"""Faker-based data generators for Locust load test scenarios.

Each generator produces payloads that pass the checkout API's validation
rules and match the exact field names expected by its Pydantic request
schemas. Product ids refer to the demo catalog the server loads when
started with CHECKOUT_SEED_DEMO_CATALOG=1.
"""

import random
import uuid

from faker import Faker

fake = Faker()

DEMO_PRODUCT_IDS = ["demo-tee", "demo-hoodie", "demo-mug"]
LIMITED_PRODUCT_ID = "demo-poster"


# ---------- Identity ----------


def owner_id() -> str:
    """Generate an authenticated owner id like 'owner-a1b2c3d4'."""
    return f"owner-{uuid.uuid4().hex[:8]}"


def valid_email() -> str:
    local = fake.user_name()[:20]
    domain = fake.free_email_domain()
    return f"{local}.{uuid.uuid4().hex[:4]}@{domain}"


def valid_phone() -> str:
    area = random.randint(200, 999)
    prefix = random.randint(200, 999)
    line = random.randint(1000, 9999)
    return f"+1-{area}-{prefix}-{line}"


def shipping_address() -> dict:
    """Generate ShippingAddressSchema payload."""
    return {
        "full_name": fake.name()[:255],
        "street": fake.street_address()[:255],
        "city": fake.city()[:100],
        "state": fake.state_abbr(),
        "postal_code": fake.zipcode()[:20],
        "country": "US",
    }


# ---------- Purchase Intents ----------


def purchase_intent_data(product_id: str | None = None) -> dict:
    """Generate CreatePurchaseIntentRequest payload."""
    return {
        "product_id": product_id or random.choice(DEMO_PRODUCT_IDS),
        "quantity": random.randint(1, 3),
        "customization": random.choice([None, {"gift_wrap": True}, {"engraving": fake.word()[:20]}]),
    }


def contact_details_data() -> dict:
    """Generate AttachContactDetailsRequest payload."""
    return {
        "shipping_address": shipping_address(),
        "email": valid_email(),
        "phone": valid_phone(),
    }


# ---------- Carts ----------


def cart_item_data() -> dict:
    """Generate AddCartItemRequest payload."""
    return {
        "product_id": random.choice(DEMO_PRODUCT_IDS),
        "quantity": random.randint(1, 3),
    }


def cart_checkout_data() -> dict:
    """Generate CheckoutCartRequest payload."""
    return {
        "shipping_address": shipping_address(),
        "payment_method": "online",
        "email": valid_email(),
        "phone": valid_phone(),
    }


# ---------- Payments ----------


def payment_method_data() -> dict:
    """Generate SavePaymentMethodRequest payload for a test card."""
    return {
        "method_type": "card",
        "gateway_method_ref": f"pm_card_{uuid.uuid4().hex[:12]}",
        "brand": random.choice(["visa", "mastercard", "amex"]),
        "last4": f"{random.randint(0, 9999):04d}",
        "exp_month": random.randint(1, 12),
        "exp_year": random.randint(2027, 2032),
        "is_default": True,
    }
