"""Fire-and-forget notification dispatch.

Notifications accompany a primary operation (order creation, payment
confirmation, refund). A failing notifier is logged and dropped so the
primary operation is never failed or rolled back because of it.
"""

from checkout.domain import logger
from checkout.notifications import get_notifier


def dispatch_notification(owner_id: str | None, event: str, payload: dict) -> bool:
    """Send a notification, returning whether the notifier accepted it."""
    if not owner_id:
        logger.info("Notification skipped, no owner to notify", notification_event=event)
        return False

    try:
        get_notifier().notify(str(owner_id), event, payload)
    except Exception as e:
        logger.error(
            "Notification dispatch failed",
            owner_id=str(owner_id),
            notification_event=event,
            error=str(e),
        )
        return False

    return True
