"""Real-time channel port: publish/subscribe keyed by owner channel.

Delivery is at-most-once and best-effort. Clients re-fetch the full cart on
every notification, so a dropped message heals on the next fetch.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from uuid import uuid4

Listener = Callable[[str, dict], None]


@dataclass(frozen=True)
class Subscription:
    channel: str
    id: str = field(default_factory=lambda: uuid4().hex)


class ChannelHub(ABC):
    """Abstract publish/subscribe hub."""

    @abstractmethod
    def subscribe(self, channel: str, listener: Listener) -> Subscription:
        """Register ``listener(event, payload)`` on a channel."""
        ...

    @abstractmethod
    def unsubscribe(self, subscription: Subscription) -> None:
        ...

    @abstractmethod
    def publish(self, channel: str, event: str, payload: dict) -> int:
        """Deliver an event to every current listener. Returns the delivered count."""
        ...
