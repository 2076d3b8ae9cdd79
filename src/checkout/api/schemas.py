"""Pydantic request/response schemas for the Checkout API.

These are external contracts (anti-corruption layer): separate from
internal Protean commands.
"""

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class ShippingAddressSchema(BaseModel):
    full_name: str
    street: str
    city: str
    state: str | None = None
    postal_code: str
    country: str


class ContactSchema(BaseModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    address: dict | None = None


# ---------------------------------------------------------------------------
# Purchase intents
# ---------------------------------------------------------------------------
class CreatePurchaseIntentRequest(BaseModel):
    product_id: str
    variant_id: str | None = None
    quantity: int = Field(ge=1, le=10)
    customization: dict | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "product_id": "prod-001",
                    "quantity": 2,
                    "customization": {"engraving": "J.D."},
                }
            ]
        }
    }


class AttachContactDetailsRequest(BaseModel):
    shipping_address: ShippingAddressSchema
    email: str
    phone: str


class CompletePurchaseIntentRequest(BaseModel):
    payment_method: str = "online"


class SweepIntentsRequest(BaseModel):
    as_of: datetime | None = None


class SweepIntentsResponse(BaseModel):
    expired: int


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------
class ProcessPaymentRequest(BaseModel):
    order_id: str
    payment_method_id: str | None = None
    amount: float | None = Field(default=None, gt=0)
    return_url: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "order_id": "ord-001",
                    "payment_method_id": "pm-001",
                    "amount": 59.99,
                    "return_url": "https://shop.example/checkout/return",
                }
            ]
        }
    }


class AuthorizePaymentRequest(BaseModel):
    order_id: str
    payment_method_id: str | None = None
    amount: float | None = Field(default=None, gt=0)
    return_url: str | None = None


class CapturePaymentRequest(BaseModel):
    amount: float | None = Field(default=None, gt=0)


class RefundPaymentRequest(BaseModel):
    amount: float | None = Field(default=None, gt=0)
    reason: str = "requested_by_customer"


class CashOnDeliveryRequest(BaseModel):
    order_id: str


class WalletPaymentRequest(BaseModel):
    order_id: str
    wallet_type: str  # apple_pay, google_pay
    device_token: str
    billing_contact: ContactSchema | None = None
    shipping_contact: ContactSchema | None = None
    return_url: str | None = None


class StartThreeDSecureRequest(BaseModel):
    transaction_id: str
    return_url: str | None = None


class CompleteThreeDSecureRequest(BaseModel):
    authenticated: bool


class SavePaymentMethodRequest(BaseModel):
    method_type: str  # card, wallet, bank_account
    gateway_method_ref: str
    brand: str | None = None
    last4: str | None = Field(default=None, min_length=4, max_length=4)
    exp_month: int | None = Field(default=None, ge=1, le=12)
    exp_year: int | None = None
    is_default: bool = False


class PaymentMethodIdResponse(BaseModel):
    payment_method_id: str


class ConfigureGatewayRequest(BaseModel):
    should_succeed: bool = True
    failure_reason: str = "Card declined"
    require_challenge: bool = False
    risk_score: int | None = Field(default=None, ge=0, le=100)


class GatewayConfigResponse(BaseModel):
    gateway: str
    should_succeed: bool
    failure_reason: str
    require_challenge: bool


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class CancelOrderRequest(BaseModel):
    reason: str = "Cancelled by customer"


# ---------------------------------------------------------------------------
# Carts
# ---------------------------------------------------------------------------
class AddCartItemRequest(BaseModel):
    product_id: str
    variant_id: str | None = None
    quantity: int = Field(default=1, ge=1)
    customization: dict | None = None


class UpdateCartItemRequest(BaseModel):
    quantity: int


class MergeGuestCartRequest(BaseModel):
    guest_session_id: str


class CartItemIdsRequest(BaseModel):
    item_ids: list[str] = Field(min_length=1)


class CheckoutCartRequest(BaseModel):
    shipping_address: ShippingAddressSchema
    payment_method: str = "online"
    email: str | None = None
    phone: str | None = None


class StatusResponse(BaseModel):
    status: str = "ok"
