"""PTY-level runtime for agent panes."""

from .pty_session import (
    DEFAULT_GRACE_PERIOD_S,
    PtySession,
    ReadResult,
    ReadStatus,
    SpawnError,
    SpawnOptions,
    default_shell_command,
)

__all__ = [
    "DEFAULT_GRACE_PERIOD_S",
    "PtySession",
    "ReadResult",
    "ReadStatus",
    "SpawnError",
    "SpawnOptions",
    "default_shell_command",
]
