"""Purchase intent cancellation: command and handler.

Cancelling a pending intent is final. Cancelling an intent that is already
cancelled or expired is acknowledged without change; a completed intent
cannot be cancelled.
"""

from protean import handle
from protean.fields import Boolean, Identifier, String
from protean.utils.globals import current_domain

from checkout.domain import checkout, logger
from checkout.errors import Conflict
from checkout.intent.expiry import load_owned_intent
from checkout.intent.intent import IntentStatus, PurchaseIntent
from checkout.shared.caller import caller_from


@checkout.command(part_of="PurchaseIntent")
class CancelPurchaseIntent:
    owner_id = Identifier()
    session_id = String(max_length=255)
    is_authenticated = Boolean(default=False)
    is_staff = Boolean(default=False)
    intent_id = Identifier(required=True)


@checkout.command_handler(part_of=PurchaseIntent)
class CancelPurchaseIntentHandler:
    @handle(CancelPurchaseIntent)
    def cancel_purchase_intent(self, command):
        intent = load_owned_intent(command.intent_id, caller_from(command))

        if intent.status == IntentStatus.COMPLETED.value:
            raise Conflict("Purchase intent already completed")
        if intent.is_terminal:
            return {"intent_id": str(intent.id), "status": intent.status}

        intent.cancel()
        current_domain.repository_for(PurchaseIntent).add(intent)

        logger.info("Purchase intent cancelled", intent_id=str(intent.id))
        return {"intent_id": str(intent.id), "status": intent.status}
