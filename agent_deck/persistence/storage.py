"""Persistence of the dashboard layout between runs.

Only metadata is stored. PTY handles and output buffers are not; restored panes
come back idle and get a fresh process.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from loguru import logger

from agent_deck.instances.state import InstancePane, LayoutMode, PaneCollection
from agent_deck.utils.helpers import get_data_path

STATE_VERSION = 1


@dataclass(frozen=True)
class PaneRecord:
    """Stored pane metadata."""

    id: uuid.UUID
    working_directory: Path
    rows: int
    columns: int
    name: str = ""
    task_id: Optional[uuid.UUID] = None
    provider: Optional[str] = None

    @classmethod
    def from_pane(cls, pane: InstancePane) -> "PaneRecord":
        return cls(
            id=pane.id,
            working_directory=pane.working_directory,
            rows=pane.rows,
            columns=pane.columns,
            name=pane.name,
            task_id=pane.task_id,
            provider=pane.provider,
        )

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "task_id": str(self.task_id) if self.task_id else None,
            "name": self.name,
            "working_directory": str(self.working_directory),
            "rows": self.rows,
            "columns": self.columns,
            "provider": self.provider,
        }

    @classmethod
    def from_dict(cls, payload: dict) -> "PaneRecord":
        task_id = payload.get("task_id")
        return cls(
            id=uuid.UUID(str(payload["id"])),
            working_directory=Path(str(payload["working_directory"])),
            rows=int(payload["rows"]),
            columns=int(payload["columns"]),
            name=str(payload.get("name") or ""),
            task_id=uuid.UUID(str(task_id)) if task_id else None,
            provider=payload.get("provider") or None,
        )


@dataclass
class AppState:
    """Stored dashboard state."""

    layout: LayoutMode = LayoutMode.GRID
    selected_index: Optional[int] = None
    panes: list[PaneRecord] = field(default_factory=list)

    @classmethod
    def from_collection(cls, collection: PaneCollection) -> "AppState":
        return cls(
            layout=collection.layout,
            selected_index=collection.selected_index,
            panes=[PaneRecord.from_pane(pane) for pane in collection],
        )


def default_state_path() -> Path:
    """Return default path for persisted dashboard state."""
    return get_data_path() / "state.json"


def save_state(state: AppState, path: Path | None = None) -> Path:
    """Persist dashboard state to disk atomically."""
    target = path or default_state_path()
    target.parent.mkdir(parents=True, exist_ok=True)
    payload = {
        "version": STATE_VERSION,
        "layout": state.layout.value,
        "selected_index": state.selected_index,
        "panes": [record.to_dict() for record in state.panes],
    }
    scratch = target.with_name(target.name + ".tmp")
    scratch.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    scratch.replace(target)
    return target


def load_state(path: Path | None = None) -> Optional[AppState]:
    """Load persisted state; unreadable files are logged and ignored."""
    target = path or default_state_path()
    if not target.exists():
        return None

    try:
        payload = json.loads(target.read_text(encoding="utf-8"))
        records = []
        for item in payload.get("panes", []):
            try:
                records.append(PaneRecord.from_dict(item))
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning(f"[state] Skipping invalid pane record: {exc}")
        selected = payload.get("selected_index")
        if not isinstance(selected, int) or not 0 <= selected < len(records):
            selected = 0 if records else None
        return AppState(
            layout=LayoutMode.parse(str(payload.get("layout", ""))),
            selected_index=selected,
            panes=records,
        )
    except (OSError, ValueError, AttributeError) as exc:
        logger.warning(f"[state] Ignoring unreadable state file {target}: {exc}")
        return None
