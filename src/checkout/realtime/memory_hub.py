"""In-process channel hub."""

import threading

from checkout.domain import logger
from checkout.realtime.port import ChannelHub, Listener, Subscription


class InMemoryChannelHub(ChannelHub):
    def __init__(self) -> None:
        self._listeners: dict[str, dict[str, Listener]] = {}
        self._lock = threading.Lock()

    def subscribe(self, channel: str, listener: Listener) -> Subscription:
        subscription = Subscription(channel=channel)
        with self._lock:
            self._listeners.setdefault(channel, {})[subscription.id] = listener
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            listeners = self._listeners.get(subscription.channel, {})
            listeners.pop(subscription.id, None)
            if not listeners:
                self._listeners.pop(subscription.channel, None)

    def listener_count(self, channel: str) -> int:
        with self._lock:
            return len(self._listeners.get(channel, {}))

    def publish(self, channel: str, event: str, payload: dict) -> int:
        # Snapshot under the lock, deliver outside it
        with self._lock:
            listeners = list(self._listeners.get(channel, {}).values())

        delivered = 0
        for listener in listeners:
            try:
                listener(event, payload)
                delivered += 1
            except Exception as e:
                logger.warning(
                    "Channel listener failed, event dropped",
                    owner_channel=channel,
                    channel_event=event,
                    error=str(e),
                )
        return delivered
