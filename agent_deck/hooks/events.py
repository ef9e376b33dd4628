"""Hook event wire model."""

from __future__ import annotations

import time
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class EventKind(str, Enum):
    """Recognized hook event kinds."""

    START = "start"
    END = "end"
    PERMISSION = "permission"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, raw: str) -> "EventKind":
        try:
            kind = cls(raw)
        except ValueError:
            return cls.UNKNOWN
        return kind


class HookEvent(BaseModel):
    """One newline-delimited JSON notification from an agent hook.

    ``hook_data`` is whatever the provider handed to its hook command and is
    never interpreted here.
    """

    event: str
    worktree_id: UUID
    timestamp: int
    hook_data: Any = None

    model_config = ConfigDict(extra="ignore")

    @property
    def kind(self) -> EventKind:
        return EventKind.parse(self.event)

    @classmethod
    def now(cls, event: str, worktree_id: UUID, hook_data: Any = None) -> "HookEvent":
        """Build an event stamped with the current time in milliseconds."""
        return cls(
            event=event,
            worktree_id=worktree_id,
            timestamp=time.time_ns() // 1_000_000,
            hook_data=hook_data,
        )

    def to_line(self) -> bytes:
        """Serialize as one UTF-8 JSON line."""
        return self.model_dump_json().encode("utf-8") + b"\n"
