"""Order cancellation: command and handler."""

from protean import handle
from protean.fields import Boolean, Identifier, String
from protean.utils.globals import current_domain

from checkout.domain import checkout, logger
from checkout.errors import Conflict
from checkout.order.order import Order
from checkout.payment.ledger import load_order
from checkout.shared.caller import caller_from, require_signed_in


@checkout.command(part_of="Order")
class CancelOrder:
    owner_id = Identifier()
    session_id = String(max_length=255)
    is_authenticated = Boolean(default=False)
    is_staff = Boolean(default=False)
    order_id = Identifier(required=True)
    reason = String(max_length=500, default="Cancelled by customer")


@checkout.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        caller = caller_from(command)
        require_signed_in(caller)
        order = load_order(command.order_id, caller)

        if not order.is_cancellable:
            raise Conflict(f"Order cannot be cancelled in status {order.status}")

        order.cancel(reason=command.reason)
        current_domain.repository_for(Order).add(order)

        logger.info("Order cancelled", order_id=str(order.id), reason=command.reason)
        return {"order_id": str(order.id), "status": order.status}
