"""Pane and pane-collection state owned by the UI thread."""

from __future__ import annotations

import uuid
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Iterator, Optional

from agent_deck.instances.activity import (
    MAX_ACTIVITY_EVENTS,
    ActivityEvent,
    ActivityKind,
    ActivitySummary,
)
from agent_deck.runtime import PtySession
from agent_deck.terminal import Screen, build_screen

DEFAULT_OUTPUT_BUFFER_BYTES = 256 * 1024


class ClaudeState(str, Enum):
    """Lifecycle of the agent running inside a pane."""

    IDLE = "idle"
    RUNNING = "running"
    NEEDS_PERMISSIONS = "needs_permissions"
    DONE = "done"


class LayoutMode(str, Enum):
    SINGLE = "single"
    HORIZONTAL_SPLIT = "horizontal_split"
    VERTICAL_SPLIT = "vertical_split"
    GRID = "grid"

    def next(self) -> "LayoutMode":
        modes = list(LayoutMode)
        return modes[(modes.index(self) + 1) % len(modes)]

    @classmethod
    def parse(cls, raw: str) -> "LayoutMode":
        value = (raw or "").strip().lower().replace("-", "_")
        try:
            return cls(value)
        except ValueError:
            return cls.GRID


def _check_geometry(rows: int, columns: int) -> None:
    if rows < 1 or columns < 1:
        raise ValueError(f"Invalid pane geometry {rows}x{columns}")


@dataclass(eq=False)
class InstancePane:
    """One agent pane: its terminal, its process and what we know about it.

    ``pty_session`` is ``None`` before the first spawn, after a failed spawn
    (see ``spawn_error``) and once the child has exited.
    """

    working_directory: Path
    rows: int = 24
    columns: int = 80
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    task_id: Optional[uuid.UUID] = None
    name: str = ""
    provider: Optional[str] = None
    backend: str = "pyte"
    scrollback: int = 10_000
    output_limit: int = DEFAULT_OUTPUT_BUFFER_BYTES
    claude_state: ClaudeState = ClaudeState.IDLE
    pty_session: Optional[PtySession] = None
    spawn_error: Optional[str] = None
    last_viewed_at: datetime = field(default_factory=datetime.now)
    output: bytearray = field(default_factory=bytearray, repr=False)
    screen: Screen = field(init=False, repr=False)
    activity_events: deque = field(default_factory=lambda: deque(maxlen=MAX_ACTIVITY_EVENTS), repr=False)

    def __post_init__(self) -> None:
        _check_geometry(self.rows, self.columns)
        self.working_directory = Path(self.working_directory)
        if not self.name:
            self.name = self.working_directory.name or str(self.working_directory)
        self.screen = build_screen(self.backend, self.rows, self.columns, scrollback=self.scrollback)

    @property
    def is_running(self) -> bool:
        return self.pty_session is not None

    @property
    def scroll_offset(self) -> int:
        return self.screen.scroll_offset

    def append_output(self, data: bytes) -> None:
        """Record raw output and feed it to the terminal screen."""
        if not data:
            return
        self.output.extend(data)
        overflow = len(self.output) - self.output_limit
        if overflow > 0:
            del self.output[:overflow]
        self.screen.feed(data)

    def resize(self, rows: int, columns: int) -> None:
        _check_geometry(rows, columns)
        if (rows, columns) == (self.rows, self.columns):
            return
        self.rows, self.columns = rows, columns
        self.screen.resize(rows, columns)
        if self.pty_session is not None:
            self.pty_session.resize(rows, columns)

    def scroll(self, delta: int) -> int:
        """Move the view into scrollback; positive scrolls up."""
        self.screen.scroll_offset = self.screen.scroll_offset + delta
        return self.screen.scroll_offset

    def scroll_to_bottom(self) -> None:
        self.screen.scroll_offset = 0

    def add_activity_event(self, kind: ActivityKind, description: str, metadata: Optional[str] = None) -> ActivityEvent:
        event = ActivityEvent(kind=kind, description=description, metadata=metadata)
        self.activity_events.append(event)
        return event

    def activity_since_viewed(self) -> list[ActivityEvent]:
        return [event for event in self.activity_events if event.timestamp > self.last_viewed_at]

    def generate_activity_summary(self) -> Optional[ActivitySummary]:
        """Summarize activity since the pane was last viewed, if any."""
        events = self.activity_since_viewed()
        if not events:
            return None
        return ActivitySummary.from_events(events, since=self.last_viewed_at)

    def mark_viewed(self) -> None:
        self.last_viewed_at = datetime.now()


class PaneCollection:
    """Ordered panes plus selection and layout.

    ``selected_index`` is ``None`` exactly when the collection is empty.
    """

    def __init__(self, layout: LayoutMode = LayoutMode.GRID) -> None:
        self.panes: list[InstancePane] = []
        self.selected_index: Optional[int] = None
        self.layout = layout

    def __len__(self) -> int:
        return len(self.panes)

    def __iter__(self) -> Iterator[InstancePane]:
        return iter(list(self.panes))

    def __bool__(self) -> bool:
        return bool(self.panes)

    def add(self, pane: InstancePane, select: bool = True) -> int:
        self.panes.append(pane)
        index = len(self.panes) - 1
        if select or self.selected_index is None:
            self.selected_index = index
        return index

    def remove(self, pane_id: uuid.UUID) -> Optional[InstancePane]:
        """Detach a pane and re-clamp the selection."""
        index = self.index_of(pane_id)
        if index is None:
            return None
        pane = self.panes.pop(index)
        if not self.panes:
            self.selected_index = None
        elif self.selected_index is not None:
            if index < self.selected_index:
                self.selected_index -= 1
            self.selected_index = min(self.selected_index, len(self.panes) - 1)
        return pane

    def index_of(self, pane_id: uuid.UUID) -> Optional[int]:
        for index, pane in enumerate(self.panes):
            if pane.id == pane_id:
                return index
        return None

    def find(self, pane_id: uuid.UUID) -> Optional[InstancePane]:
        index = self.index_of(pane_id)
        return None if index is None else self.panes[index]

    def find_by_task(self, task_id: uuid.UUID) -> Optional[InstancePane]:
        for pane in self.panes:
            if pane.task_id == task_id:
                return pane
        return None

    @property
    def selected(self) -> Optional[InstancePane]:
        if self.selected_index is None:
            return None
        return self.panes[self.selected_index]

    def select(self, pane_id: uuid.UUID) -> bool:
        index = self.index_of(pane_id)
        if index is None:
            return False
        self.selected_index = index
        return True

    def select_index(self, index: int) -> bool:
        if not 0 <= index < len(self.panes):
            return False
        self.selected_index = index
        return True

    def select_next(self) -> Optional[InstancePane]:
        if not self.panes:
            return None
        current = -1 if self.selected_index is None else self.selected_index
        self.selected_index = (current + 1) % len(self.panes)
        return self.selected

    def select_previous(self) -> Optional[InstancePane]:
        if not self.panes:
            return None
        current = 0 if self.selected_index is None else self.selected_index
        self.selected_index = (current - 1) % len(self.panes)
        return self.selected

    def cycle_layout(self) -> LayoutMode:
        self.layout = self.layout.next()
        return self.layout

    def visible_panes(self) -> list[InstancePane]:
        """Panes shown in the current layout; single mode shows the selection."""
        if self.layout == LayoutMode.SINGLE:
            selected = self.selected
            return [selected] if selected is not None else []
        return list(self.panes)
