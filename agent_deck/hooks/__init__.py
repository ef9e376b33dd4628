"""Out-of-band hook event channel."""

from agent_deck.hooks.events import EventKind, HookEvent
from agent_deck.hooks.listener import HookListener, ListenerBindError, default_socket_path
from agent_deck.hooks.sender import send_event

__all__ = [
    "EventKind",
    "HookEvent",
    "HookListener",
    "ListenerBindError",
    "default_socket_path",
    "send_event",
]
