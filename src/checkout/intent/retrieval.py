"""Purchase intent reads."""

from checkout.catalog import get_catalog
from checkout.intent.expiry import guard_live, load_owned_intent
from checkout.shared.caller import Caller


def get_purchase_intent(intent_id, caller: Caller, as_of=None) -> dict:
    """The intent plus a current product snapshot.

    An intent found past its expiry time is expired on the spot and the
    caller receives ``Expired``.
    """
    intent = load_owned_intent(intent_id, caller)
    guard_live(intent, as_of)

    product = get_catalog().get_product(intent.product_id)
    return {
        "intent": intent.to_dict(),
        "product": {
            "id": product.id,
            "name": product.name,
            "sku": product.sku,
            "description": product.description,
            "price": product.price,
            "sale_price": product.sale_price,
            "stock": product.stock,
        }
        if product
        else None,
    }
