"""FastAPI routes for the Checkout domain: intents, payments, orders and carts."""

import asyncio

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect
from protean.utils.globals import current_domain

from checkout import settings
from checkout.api.dependencies import build_caller, resolve_caller
from checkout.api.schemas import (
    AddCartItemRequest,
    AttachContactDetailsRequest,
    AuthorizePaymentRequest,
    CancelOrderRequest,
    CapturePaymentRequest,
    CartItemIdsRequest,
    CashOnDeliveryRequest,
    CheckoutCartRequest,
    CompletePurchaseIntentRequest,
    CompleteThreeDSecureRequest,
    ConfigureGatewayRequest,
    CreatePurchaseIntentRequest,
    GatewayConfigResponse,
    MergeGuestCartRequest,
    PaymentMethodIdResponse,
    ProcessPaymentRequest,
    RefundPaymentRequest,
    SavePaymentMethodRequest,
    StartThreeDSecureRequest,
    StatusResponse,
    SweepIntentsRequest,
    SweepIntentsResponse,
    UpdateCartItemRequest,
    WalletPaymentRequest,
)
from checkout.cart.items import AddCartItem, RemoveCartItem, UpdateCartItem
from checkout.cart.lookup import get_cart
from checkout.cart.management import ClearCart, MergeGuestCart, MoveToCart, SaveForLater
from checkout.cart.validation import validate_cart
from checkout.domain import logger
from checkout.errors import Forbidden
from checkout.gateway import get_gateway
from checkout.gateway.fake_adapter import FakeGateway
from checkout.intent.address import attach_contact_details
from checkout.intent.cancellation import CancelPurchaseIntent
from checkout.intent.completion import complete_purchase_intent
from checkout.intent.creation import CreatePurchaseIntent
from checkout.intent.expiry import sweep_expired
from checkout.intent.retrieval import get_purchase_intent
from checkout.order.cancellation import CancelOrder
from checkout.order.checkout import checkout_cart
from checkout.order.retrieval import get_order, list_orders
from checkout.payment.authorization import AuthorizePayment, CapturePayment
from checkout.payment.cod import ConfirmCashOnDelivery, ProcessCashOnDelivery
from checkout.payment.ledger import get_transaction
from checkout.payment.methods import RemovePaymentMethod, SavePaymentMethod, list_payment_methods
from checkout.payment.processing import ProcessPayment
from checkout.payment.refunds import RefundPayment
from checkout.payment.wallet import ProcessWalletPayment
from checkout.realtime import get_hub
from checkout.realtime.broadcast import channel_for
from checkout.secure.coordinator import CompleteThreeDSecure, StartThreeDSecure
from checkout.shared.caller import Caller, command_fields


def _process(command):
    return current_domain.process(command, asynchronous=False)


# ---------------------------------------------------------------------------
# Purchase Intent Router (buy now)
# ---------------------------------------------------------------------------
intent_router = APIRouter(prefix="/checkout/buy-now", tags=["purchase-intents"])


@intent_router.post("", status_code=201)
async def create_purchase_intent(
    body: CreatePurchaseIntentRequest, caller: Caller = Depends(resolve_caller)
) -> dict:
    """Reserve a single product and quantity for the buy-now flow."""
    command = CreatePurchaseIntent(
        **command_fields(caller),
        product_id=body.product_id,
        variant_id=body.variant_id,
        quantity=body.quantity,
        customization=body.customization,
    )
    return _process(command)


@intent_router.post("/sweep", response_model=SweepIntentsResponse)
async def sweep_intents(body: SweepIntentsRequest, caller: Caller = Depends(resolve_caller)) -> SweepIntentsResponse:
    """Expire every pending intent past its expiry time (maintenance, staff only)."""
    if not caller.is_staff:
        raise Forbidden("Only staff can sweep purchase intents")
    return SweepIntentsResponse(expired=sweep_expired(body.as_of))


@intent_router.get("/{intent_id}")
async def read_purchase_intent(intent_id: str, caller: Caller = Depends(resolve_caller)) -> dict:
    return get_purchase_intent(intent_id, caller)


@intent_router.put("/{intent_id}/address")
async def attach_address(
    intent_id: str, body: AttachContactDetailsRequest, caller: Caller = Depends(resolve_caller)
) -> dict:
    return attach_contact_details(
        intent_id,
        caller,
        shipping_address=body.shipping_address.model_dump(),
        email=body.email,
        phone=body.phone,
    )


@intent_router.post("/{intent_id}/complete", status_code=201)
async def complete_intent(
    intent_id: str, body: CompletePurchaseIntentRequest, caller: Caller = Depends(resolve_caller)
) -> dict:
    """Turn the intent into an order. Requires a signed-in caller."""
    return complete_purchase_intent(intent_id, caller, payment_method=body.payment_method)


@intent_router.delete("/{intent_id}")
async def cancel_intent(intent_id: str, caller: Caller = Depends(resolve_caller)) -> dict:
    return _process(CancelPurchaseIntent(**command_fields(caller), intent_id=intent_id))


# ---------------------------------------------------------------------------
# Payment Router
# ---------------------------------------------------------------------------
payment_router = APIRouter(prefix="/payments", tags=["payments"])


@payment_router.post("/process", status_code=201)
async def process_payment(body: ProcessPaymentRequest, caller: Caller = Depends(resolve_caller)) -> dict:
    """Charge an order in one step.

    A processor rejection still answers 201 with ``status: failed``; the
    transaction row records the reason.
    """
    command = ProcessPayment(
        **command_fields(caller),
        order_id=body.order_id,
        payment_method_id=body.payment_method_id,
        amount=body.amount,
        return_url=body.return_url,
    )
    return _process(command)


@payment_router.post("/authorize", status_code=201)
async def authorize_payment(body: AuthorizePaymentRequest, caller: Caller = Depends(resolve_caller)) -> dict:
    command = AuthorizePayment(
        **command_fields(caller),
        order_id=body.order_id,
        payment_method_id=body.payment_method_id,
        amount=body.amount,
        return_url=body.return_url,
    )
    return _process(command)


@payment_router.post("/transactions/{transaction_id}/capture", status_code=201)
async def capture_payment(
    transaction_id: str, body: CapturePaymentRequest, caller: Caller = Depends(resolve_caller)
) -> dict:
    command = CapturePayment(**command_fields(caller), transaction_id=transaction_id, amount=body.amount)
    return _process(command)


@payment_router.post("/transactions/{transaction_id}/refund", status_code=201)
async def refund_payment(
    transaction_id: str, body: RefundPaymentRequest, caller: Caller = Depends(resolve_caller)
) -> dict:
    command = RefundPayment(
        **command_fields(caller),
        transaction_id=transaction_id,
        amount=body.amount,
        reason=body.reason,
    )
    return _process(command)


@payment_router.get("/transactions/{transaction_id}")
async def read_transaction(transaction_id: str, caller: Caller = Depends(resolve_caller)) -> dict:
    return get_transaction(transaction_id, caller)


@payment_router.post("/cod", status_code=201)
async def process_cash_on_delivery(
    body: CashOnDeliveryRequest, caller: Caller = Depends(resolve_caller)
) -> dict:
    return _process(ProcessCashOnDelivery(**command_fields(caller), order_id=body.order_id))


@payment_router.post("/cod/{transaction_id}/confirm")
async def confirm_cash_on_delivery(transaction_id: str, caller: Caller = Depends(resolve_caller)) -> dict:
    """Record cash collected at the door (staff only)."""
    return _process(ConfirmCashOnDelivery(**command_fields(caller), transaction_id=transaction_id))


@payment_router.post("/wallet", status_code=201)
async def process_wallet_payment(body: WalletPaymentRequest, caller: Caller = Depends(resolve_caller)) -> dict:
    command = ProcessWalletPayment(
        **command_fields(caller),
        order_id=body.order_id,
        wallet_type=body.wallet_type,
        device_token=body.device_token,
        billing_contact=body.billing_contact.model_dump(exclude_none=True) if body.billing_contact else None,
        shipping_contact=body.shipping_contact.model_dump(exclude_none=True) if body.shipping_contact else None,
        return_url=body.return_url,
    )
    return _process(command)


@payment_router.post("/3ds/start", status_code=201)
async def start_three_d_secure(body: StartThreeDSecureRequest, caller: Caller = Depends(resolve_caller)) -> dict:
    command = StartThreeDSecure(
        **command_fields(caller),
        transaction_id=body.transaction_id,
        return_url=body.return_url,
    )
    return _process(command)


@payment_router.post("/3ds/{challenge_id}/complete")
async def complete_three_d_secure(
    challenge_id: str, body: CompleteThreeDSecureRequest, caller: Caller = Depends(resolve_caller)
) -> dict:
    command = CompleteThreeDSecure(
        **command_fields(caller),
        challenge_id=challenge_id,
        authenticated=body.authenticated,
    )
    return _process(command)


@payment_router.post("/methods", status_code=201, response_model=PaymentMethodIdResponse)
async def save_payment_method(
    body: SavePaymentMethodRequest, caller: Caller = Depends(resolve_caller)
) -> PaymentMethodIdResponse:
    command = SavePaymentMethod(**command_fields(caller), **body.model_dump())
    return PaymentMethodIdResponse(payment_method_id=_process(command))


@payment_router.get("/methods")
async def read_payment_methods(caller: Caller = Depends(resolve_caller)) -> list[dict]:
    return list_payment_methods(caller)


@payment_router.delete("/methods/{payment_method_id}", response_model=StatusResponse)
async def remove_payment_method(payment_method_id: str, caller: Caller = Depends(resolve_caller)) -> StatusResponse:
    _process(RemovePaymentMethod(**command_fields(caller), payment_method_id=payment_method_id))
    return StatusResponse(status="removed")


@payment_router.post("/gateway/configure", response_model=GatewayConfigResponse)
async def configure_gateway(body: ConfigureGatewayRequest) -> GatewayConfigResponse:
    """Configure the FakeGateway behavior (non-production only).

    This endpoint is only available when PROTEAN_ENV is not 'production'.
    It allows toggling success/failure and 3-D Secure behavior for manual
    API testing.
    """
    if settings.is_production():
        raise HTTPException(status_code=403, detail="Gateway configuration not available in production")

    gateway = get_gateway()
    if not isinstance(gateway, FakeGateway):
        raise HTTPException(status_code=400, detail="Gateway configuration only available for FakeGateway")

    gateway.configure(
        should_succeed=body.should_succeed,
        failure_reason=body.failure_reason,
        require_challenge=body.require_challenge,
        risk_score=body.risk_score,
    )
    return GatewayConfigResponse(
        gateway=type(gateway).__name__,
        should_succeed=gateway.should_succeed,
        failure_reason=gateway.failure_reason,
        require_challenge=gateway.require_challenge,
    )


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.get("")
async def read_orders(caller: Caller = Depends(resolve_caller)) -> list[dict]:
    return list_orders(caller)


@order_router.get("/{order_id}")
async def read_order(order_id: str, caller: Caller = Depends(resolve_caller)) -> dict:
    return get_order(order_id, caller)


@order_router.post("/{order_id}/cancel")
async def cancel_order(order_id: str, body: CancelOrderRequest, caller: Caller = Depends(resolve_caller)) -> dict:
    return _process(CancelOrder(**command_fields(caller), order_id=order_id, reason=body.reason))


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/carts", tags=["carts"])


@cart_router.get("")
async def read_cart(caller: Caller = Depends(resolve_caller)) -> dict:
    return get_cart(caller)


@cart_router.post("/items", status_code=201)
async def add_cart_item(body: AddCartItemRequest, caller: Caller = Depends(resolve_caller)) -> dict:
    command = AddCartItem(
        **command_fields(caller),
        product_id=body.product_id,
        variant_id=body.variant_id,
        quantity=body.quantity,
        customization=body.customization,
    )
    return _process(command)


@cart_router.put("/items/{item_id}")
async def update_cart_item(item_id: str, body: UpdateCartItemRequest, caller: Caller = Depends(resolve_caller)) -> dict:
    """Set a line's quantity. Zero or less removes the line."""
    return _process(UpdateCartItem(**command_fields(caller), item_id=item_id, quantity=body.quantity))


@cart_router.delete("/items/{item_id}")
async def remove_cart_item(item_id: str, caller: Caller = Depends(resolve_caller)) -> dict:
    return _process(RemoveCartItem(**command_fields(caller), item_id=item_id))


@cart_router.delete("")
async def clear_cart(caller: Caller = Depends(resolve_caller)) -> dict:
    return _process(ClearCart(**command_fields(caller)))


@cart_router.post("/merge")
async def merge_guest_cart(body: MergeGuestCartRequest, caller: Caller = Depends(resolve_caller)) -> dict:
    return _process(MergeGuestCart(**command_fields(caller), guest_session_id=body.guest_session_id))


@cart_router.post("/save-for-later")
async def save_for_later(body: CartItemIdsRequest, caller: Caller = Depends(resolve_caller)) -> dict:
    return _process(SaveForLater(**command_fields(caller), item_ids=body.item_ids))


@cart_router.post("/move-to-cart")
async def move_to_cart(body: CartItemIdsRequest, caller: Caller = Depends(resolve_caller)) -> dict:
    return _process(MoveToCart(**command_fields(caller), item_ids=body.item_ids))


@cart_router.post("/validate")
async def validate(caller: Caller = Depends(resolve_caller)) -> dict:
    return validate_cart(caller)


@cart_router.post("/checkout", status_code=201)
async def check_out_cart(body: CheckoutCartRequest, caller: Caller = Depends(resolve_caller)) -> dict:
    return checkout_cart(
        caller,
        shipping_address=body.shipping_address.model_dump(),
        payment_method=body.payment_method,
        email=body.email,
        phone=body.phone,
    )


@cart_router.websocket("/ws")
async def cart_channel(websocket: WebSocket):
    """Stream the caller's cart events as JSON messages.

    Browsers cannot set headers on a WebSocket handshake, so the identity
    may also arrive as ``owner_id`` / ``session_id`` query parameters.
    """
    caller = build_caller(
        websocket.headers.get("x-owner-id") or websocket.query_params.get("owner_id"),
        websocket.headers.get("x-session-id") or websocket.query_params.get("session_id"),
        None,
    )
    if not caller.discriminator:
        await websocket.close(code=1008)
        return

    await websocket.accept()
    channel = channel_for(caller.owner_id, caller.session_id)
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()

    def forward(event: str, payload: dict) -> None:
        loop.call_soon_threadsafe(queue.put_nowait, {"event": event, "data": payload})

    async def pump() -> None:
        while True:
            await websocket.send_json(await queue.get())

    hub = get_hub()
    subscription = hub.subscribe(channel, forward)
    sender = asyncio.create_task(pump())
    logger.info("Cart channel opened", owner_channel=channel)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info("Cart channel closed", owner_channel=channel)
    finally:
        sender.cancel()
        hub.unsubscribe(subscription)
