"""Purchase intent creation: command and handler."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, Dict, Identifier, Integer, String
from protean.utils.globals import current_domain

from checkout import settings
from checkout.catalog import get_catalog
from checkout.domain import checkout, logger
from checkout.errors import InsufficientStock, NotFound
from checkout.intent.intent import PurchaseIntent
from checkout.shared.caller import caller_from


@checkout.command(part_of="PurchaseIntent")
class CreatePurchaseIntent:
    owner_id = Identifier()
    session_id = String(max_length=255)
    is_authenticated = Boolean(default=False)
    is_staff = Boolean(default=False)
    product_id = Identifier(required=True)
    variant_id = Identifier()
    quantity = Integer(
        required=True,
        min_value=settings.MIN_INTENT_QUANTITY,
        max_value=settings.MAX_INTENT_QUANTITY,
    )
    customization = Dict()


def address_step_url(intent_id) -> str:
    return f"/checkout/buy-now/{intent_id}/address"


@checkout.command_handler(part_of=PurchaseIntent)
class CreatePurchaseIntentHandler:
    @handle(CreatePurchaseIntent)
    def create_purchase_intent(self, command):
        caller = caller_from(command)
        owner_id = caller.owner_id if caller.is_authenticated else None
        if not owner_id and not caller.session_id:
            raise ValidationError({"owner": ["A session is required to start a purchase"]})

        product = get_catalog().get_product(command.product_id)
        if product is None:
            raise NotFound("Product not found")
        if product.stock < command.quantity:
            raise InsufficientStock(available=product.stock)

        intent = PurchaseIntent.create(
            product_id=command.product_id,
            variant_id=command.variant_id,
            quantity=command.quantity,
            unit_price=product.effective_price,
            customization=command.customization,
            owner_id=owner_id,
            session_id=caller.session_id,
        )
        current_domain.repository_for(PurchaseIntent).add(intent)

        logger.info(
            "Purchase intent created",
            intent_id=str(intent.id),
            product_id=str(command.product_id),
            quantity=command.quantity,
        )

        return {
            "intent": intent.to_dict(),
            "redirect_url": address_step_url(intent.id),
            "product": {
                "id": product.id,
                "name": product.name,
                "price": product.price,
                "sale_price": product.sale_price,
            },
        }
