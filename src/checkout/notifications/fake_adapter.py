"""Recording notifier: keeps sent notifications in memory for testing."""

from checkout.notifications.port import Notifier


class RecordingNotifier(Notifier):
    """Notifier that records messages in memory for test assertions."""

    def __init__(self):
        self.sent: list[dict] = []
        self.should_succeed = True
        self.failure_reason = "Notification delivery failed"

    def configure(self, should_succeed: bool = True, failure_reason: str = "Notification delivery failed"):
        """Configure the fake adapter behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def notify(self, owner_id: str, event: str, payload: dict) -> None:
        if not self.should_succeed:
            raise RuntimeError(self.failure_reason)

        self.sent.append({"owner_id": owner_id, "event": event, "payload": payload})

    def events_for(self, owner_id: str) -> list[str]:
        return [n["event"] for n in self.sent if n["owner_id"] == owner_id]
