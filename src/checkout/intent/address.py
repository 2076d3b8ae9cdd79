"""Delivery details for a purchase intent: command, handler and entry point."""

from protean import handle
from protean.fields import Boolean, DateTime, Dict, Identifier, String
from protean.utils.globals import current_domain

from checkout.domain import checkout
from checkout.errors import Conflict, Expired
from checkout.intent.expiry import guard_live, load_owned_intent
from checkout.intent.intent import IntentStatus, PurchaseIntent
from checkout.shared.address import ShippingAddress
from checkout.shared.caller import Caller, caller_from, command_fields
from checkout.shared.email import EmailAddress


@checkout.command(part_of="PurchaseIntent")
class AttachContactDetails:
    owner_id = Identifier()
    session_id = String(max_length=255)
    is_authenticated = Boolean(default=False)
    is_staff = Boolean(default=False)
    intent_id = Identifier(required=True)
    shipping_address = Dict(required=True)
    email = String(required=True, max_length=254)
    phone = String(required=True, max_length=20)
    as_of = DateTime()


@checkout.command_handler(part_of=PurchaseIntent)
class AttachContactDetailsHandler:
    @handle(AttachContactDetails)
    def attach_contact_details(self, command):
        intent = load_owned_intent(command.intent_id, caller_from(command))
        if intent.status == IntentStatus.EXPIRED.value or intent.has_elapsed(command.as_of):
            raise Expired()
        if not intent.is_pending:
            raise Conflict(f"Purchase intent is already {intent.status}")

        email = EmailAddress(address=command.email)
        intent.attach_contact(
            shipping_address=ShippingAddress(**command.shipping_address),
            email=email.address,
            phone=command.phone,
        )
        current_domain.repository_for(PurchaseIntent).add(intent)
        return {"intent_id": str(intent.id), "status": "updated"}


def attach_contact_details(intent_id, caller: Caller, shipping_address, email, phone, as_of=None) -> dict:
    intent = load_owned_intent(intent_id, caller)
    guard_live(intent, as_of)

    command = AttachContactDetails(
        **command_fields(caller),
        intent_id=intent_id,
        shipping_address=shipping_address,
        email=email,
        phone=phone,
        as_of=as_of,
    )
    return current_domain.process(command, asynchronous=False)
