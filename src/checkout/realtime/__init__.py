"""Channel hub factory.

Provides get_hub() / set_hub() to swap implementations. One in-process hub
is created lazily per process.
"""

from checkout.realtime.memory_hub import InMemoryChannelHub
from checkout.realtime.port import ChannelHub

_current_hub: ChannelHub | None = None


def get_hub() -> ChannelHub:
    global _current_hub
    if _current_hub is None:
        _current_hub = InMemoryChannelHub()
    return _current_hub


def set_hub(hub: ChannelHub) -> None:
    global _current_hub
    _current_hub = hub


def reset_hub() -> None:
    global _current_hub
    _current_hub = None
