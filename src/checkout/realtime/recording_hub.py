"""Recording channel hub: keeps published events in memory for testing."""

from checkout.realtime.memory_hub import InMemoryChannelHub


class RecordingChannelHub(InMemoryChannelHub):
    """Channel hub that records every published event for test assertions."""

    def __init__(self) -> None:
        super().__init__()
        self.published: list[dict] = []

    def publish(self, channel: str, event: str, payload: dict) -> int:
        self.published.append({"channel": channel, "event": event, "payload": payload})
        return super().publish(channel, event, payload)

    def events_on(self, channel: str) -> list[str]:
        return [p["event"] for p in self.published if p["channel"] == channel]
