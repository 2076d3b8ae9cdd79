"""Order reads for the owner (or staff)."""

from protean.utils.globals import current_domain

from checkout.order.order import Order
from checkout.payment.ledger import load_order
from checkout.shared.caller import Caller, require_signed_in


def get_order(order_id, caller: Caller) -> dict:
    require_signed_in(caller)
    return load_order(order_id, caller).to_dict()


def list_orders(caller: Caller) -> list[dict]:
    owner_id = require_signed_in(caller)
    orders = current_domain.repository_for(Order)._dao.query.filter(owner_id=str(owner_id)).all().items
    return [o.to_dict() for o in sorted(orders, key=lambda o: o.created_at, reverse=True)]
