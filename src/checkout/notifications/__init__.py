"""Notifier factory.

Provides get_notifier() / set_notifier() to swap implementations. The
recording notifier is the default.
"""

from checkout.notifications.fake_adapter import RecordingNotifier
from checkout.notifications.port import Notifier

_current_notifier: Notifier | None = None


def get_notifier() -> Notifier:
    global _current_notifier
    if _current_notifier is None:
        _current_notifier = RecordingNotifier()
    return _current_notifier


def set_notifier(notifier: Notifier) -> None:
    global _current_notifier
    _current_notifier = notifier


def reset_notifier() -> None:
    global _current_notifier
    _current_notifier = None
