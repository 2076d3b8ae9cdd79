"""Notifier port: abstract interface for customer notifications.

Email templating and delivery are owned by the notification service; the
checkout engine only announces what happened.
"""

from abc import ABC, abstractmethod


class Notifier(ABC):
    """Abstract interface for notification dispatch adapters."""

    @abstractmethod
    def notify(self, owner_id: str, event: str, payload: dict) -> None:
        """Hand a notification to the dispatcher.

        Events: ``order_confirmation``, ``payment_received``, ``refund_processed``.
        """
        ...
