"""Intent expiry: ownership-checked loading, lazy expiry and the sweeper.

An intent past its expiry time is expired lazily the first time someone
touches it, and in bulk by the sweeper. ``guard_live`` runs before a command
is dispatched, outside the command's unit of work, so the expiry it writes
is committed even though the caller then receives ``Expired``.
"""

from datetime import UTC, datetime

from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import DateTime
from protean.utils.globals import current_domain

from checkout.domain import checkout, logger
from checkout.errors import Expired, Forbidden, NotFound
from checkout.intent.intent import IntentStatus, PurchaseIntent
from checkout.shared.caller import Caller

SWEEP_PAGE_SIZE = 100


def load_owned_intent(intent_id, caller: Caller) -> PurchaseIntent:
    try:
        intent = current_domain.repository_for(PurchaseIntent).get(intent_id)
    except ObjectNotFoundError:
        raise NotFound("Purchase intent not found") from None

    if not caller.owns(intent.owner_id, intent.session_id):
        raise Forbidden("Access denied - you do not own this purchase intent")
    return intent


def guard_live(intent: PurchaseIntent, as_of=None) -> None:
    """Raise Expired for an expired intent, writing the expiry through first if it just lapsed."""
    if intent.has_elapsed(as_of):
        intent.expire()
        current_domain.repository_for(PurchaseIntent).add(intent)
        logger.info("Purchase intent expired on access", intent_id=str(intent.id))
        raise Expired()

    if intent.status == IntentStatus.EXPIRED.value:
        raise Expired()


@checkout.command(part_of="PurchaseIntent")
class SweepExpiredIntents:
    as_of = DateTime()


@checkout.command_handler(part_of=PurchaseIntent)
class SweepExpiredIntentsHandler:
    @handle(SweepExpiredIntents)
    def sweep_expired_intents(self, command):
        as_of = command.as_of or datetime.now(UTC)
        repo = current_domain.repository_for(PurchaseIntent)

        # Collect first: expiring moves rows out of the pending filter being paged
        lapsed = []
        offset = 0
        while True:
            page = (
                repo._dao.query.filter(status=IntentStatus.PENDING.value)
                .order_by("created_at")
                .offset(offset)
                .limit(SWEEP_PAGE_SIZE)
                .all()
            )
            lapsed.extend(intent for intent in page.items if intent.has_elapsed(as_of))
            if not page.has_next:
                break
            offset += SWEEP_PAGE_SIZE

        expired = 0
        for intent in lapsed:
            try:
                intent.expire()
                repo.add(intent)
                expired += 1
            except ValidationError as e:
                logger.warning(
                    "Failed to expire purchase intent",
                    intent_id=str(intent.id),
                    error=str(e),
                )

        logger.info("Expired purchase intents swept", expired_count=expired, as_of=as_of.isoformat())
        return expired


def sweep_expired(as_of=None) -> int:
    """Expire every pending intent past its expiry time. Returns the number expired."""
    return current_domain.process(SweepExpiredIntents(as_of=as_of), asynchronous=False)
