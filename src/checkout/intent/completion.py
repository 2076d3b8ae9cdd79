"""Purchase intent completion: command, handler and entry point.

Completion turns a pending intent into an order, at most once. Checks run
in this order: ownership, terminal state (Conflict), expiry (Expired),
authentication (AuthRequired), delivery details, then stock. Stock is taken
with an atomic compare-and-decrement by ``complete_purchase_intent`` around
the command, so two completions racing for the last unit cannot both win,
and stock taken for a completion that then fails is put back.
"""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, String
from protean.utils.globals import current_domain

from checkout.catalog import get_catalog
from checkout.catalog.reservation import reserved_stock
from checkout.domain import checkout, logger
from checkout.errors import AuthRequired, Conflict, Expired, NotFound
from checkout.intent.expiry import guard_live, load_owned_intent
from checkout.intent.intent import IntentStatus, PurchaseIntent
from checkout.order.materializer import materialize
from checkout.order.order import OrderSource
from checkout.shared.caller import Caller, caller_from, command_fields


@checkout.command(part_of="PurchaseIntent")
class CompletePurchaseIntent:
    """Materialize the intent's order.

    Stock is not taken by the handler. Go through ``complete_purchase_intent``.
    """

    owner_id = Identifier()
    session_id = String(max_length=255)
    is_authenticated = Boolean(default=False)
    is_staff = Boolean(default=False)
    intent_id = Identifier(required=True)
    payment_method = String(max_length=50, default="online")
    as_of = DateTime()


def _reject_terminal(intent: PurchaseIntent) -> None:
    if intent.status in (IntentStatus.COMPLETED.value, IntentStatus.CANCELLED.value):
        raise Conflict(f"Purchase intent already {intent.status}")


def _require_ready(intent: PurchaseIntent, caller: Caller) -> None:
    if not caller.is_authenticated or not caller.owner_id:
        raise AuthRequired()
    if not intent.shipping_address or not intent.email or not intent.phone:
        raise ValidationError(
            {
                "shipping_address": [
                    "Shipping address, email, and phone are required. "
                    "Please provide shipping details before completing the order."
                ]
            }
        )


@checkout.command_handler(part_of=PurchaseIntent)
class CompletePurchaseIntentHandler:
    @handle(CompletePurchaseIntent)
    def complete_purchase_intent(self, command):
        caller = caller_from(command)
        intent = load_owned_intent(command.intent_id, caller)

        _reject_terminal(intent)
        if intent.status == IntentStatus.EXPIRED.value or intent.has_elapsed(command.as_of):
            raise Expired()
        _require_ready(intent, caller)

        product = get_catalog().get_product(intent.product_id)
        if product is None:
            raise NotFound("Product not found")

        order = materialize(
            owner_id=caller.owner_id,
            lines=[
                {
                    "product_id": str(intent.product_id),
                    "variant_id": str(intent.variant_id) if intent.variant_id else None,
                    "name": product.name,
                    "sku": product.sku,
                    "description": product.description,
                    "quantity": intent.quantity,
                    "unit_price": intent.unit_price,
                    "customization": intent.to_dict()["customization"],
                }
            ],
            source=OrderSource.BUY_NOW.value,
            shipping_address=intent.shipping_address,
            payment_method=command.payment_method,
            email=intent.email,
            phone=intent.phone,
            intent_id=str(intent.id),
        )

        intent.complete(order_id=str(order.id))
        current_domain.repository_for(PurchaseIntent).add(intent)

        logger.info(
            "Purchase intent completed",
            intent_id=str(intent.id),
            order_id=str(order.id),
        )

        return {
            "intent_id": str(intent.id),
            "order_id": str(order.id),
            "order_number": order.order_number,
            "redirect_url": "/orders",
        }


def complete_purchase_intent(intent_id, caller: Caller, payment_method=None, as_of=None) -> dict:
    intent = load_owned_intent(intent_id, caller)
    _reject_terminal(intent)
    guard_live(intent, as_of)
    _require_ready(intent, caller)

    command = CompletePurchaseIntent(
        **command_fields(caller),
        intent_id=intent_id,
        payment_method=payment_method or "online",
        as_of=as_of,
    )
    with reserved_stock([(str(intent.product_id), intent.quantity)]):
        return current_domain.process(command, asynchronous=False)
