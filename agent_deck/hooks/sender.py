"""Fire-and-forget client side of the hook socket."""

from __future__ import annotations

import socket
from pathlib import Path
from typing import Optional

from agent_deck.hooks.events import HookEvent
from agent_deck.hooks.listener import default_socket_path

SEND_TIMEOUT_S = 2.0


def send_event(event: HookEvent, socket_path: Optional[Path] = None, timeout_s: float = SEND_TIMEOUT_S) -> None:
    """Connect, write one JSON line, close.

    No acknowledgement is expected. Connection errors (missing socket, nobody
    listening) propagate to the caller as ``OSError``.
    """
    target = Path(socket_path) if socket_path else default_socket_path()
    with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as sock:
        sock.settimeout(timeout_s)
        sock.connect(str(target))
        sock.sendall(event.to_line())
