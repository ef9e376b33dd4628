"""Textual dashboard hosting the agent panes."""

from __future__ import annotations

import uuid
from collections import Counter
from pathlib import Path
from typing import Optional

from loguru import logger
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.events import Key
from textual.widgets import Static

from agent_deck.instances.engine import AgentStateEngine
from agent_deck.instances.layout import Rect, calculate_pane_areas, grid_shape
from agent_deck.instances.state import ClaudeState, InstancePane, LayoutMode
from agent_deck.tui.keys import key_to_input
from agent_deck.tui.widgets import TerminalView
from agent_deck.worktree import (
    WorktreeError,
    create_worktree,
    find_repository_root,
    generate_branch_name,
    is_git_repository,
)

LAYOUT_CLASSES = {
    LayoutMode.SINGLE: "-single",
    LayoutMode.HORIZONTAL_SPLIT: "-horizontal",
    LayoutMode.VERTICAL_SPLIT: "-vertical",
    LayoutMode.GRID: "-grid",
}


class DeckApp(App):
    CSS = """
    #panes {
        height: 1fr;
    }

    #panes.-single, #panes.-vertical {
        layout: vertical;
    }

    #panes.-horizontal {
        layout: horizontal;
    }

    #panes.-grid {
        layout: grid;
    }

    .empty-hint {
        width: 1fr;
        height: 1fr;
        content-align: center middle;
        color: $text-muted;
    }

    #status-bar {
        dock: bottom;
        height: 1;
        background: $boost;
        padding: 0 1;
    }
    """

    BINDINGS = [
        Binding("f2", "new_shell", "New shell"),
        Binding("f3", "new_agent", "New agent"),
        Binding("f4", "cycle_layout", "Layout"),
        Binding("f5", "retry_pane", "Restart"),
        Binding("f6", "next_pane", "Next pane"),
        Binding("f7", "previous_pane", "Prev pane"),
        Binding("f8", "close_pane", "Close pane"),
        Binding("f9", "show_summary", "Activity"),
        Binding("f10", "delete_task", "Delete task"),
        Binding("shift+pageup", "scroll_pane(1)", "Scroll up", show=False),
        Binding("shift+pagedown", "scroll_pane(-1)", "Scroll down", show=False),
        Binding("ctrl+q", "quit", "Quit", priority=True),
    ]

    def __init__(
        self,
        engine: AgentStateEngine,
        working_directory: Optional[Path] = None,
        provider: Optional[str] = None,
    ) -> None:
        super().__init__()
        self.engine = engine
        self.working_directory = Path(working_directory or Path.cwd())
        self.provider = provider
        self._views: dict[uuid.UUID, TerminalView] = {}
        self._status_note = "Ready"
        self._reserved_keys = {binding.key for binding in self.BINDINGS}

    def compose(self) -> ComposeResult:
        yield Container(id="panes")
        yield Static("", id="status-bar")

    def on_mount(self) -> None:
        if not self.engine.collection:
            self.engine.open_pane(self.working_directory)
        self.refresh_panes()
        self.set_interval(self.engine.config.ui.tick_interval_s, self._tick)

    def _tick(self) -> None:
        if self.engine.tick():
            self.refresh_panes()

    # ------------------------------------------------------------------ #
    # Rendering                                                            #
    # ------------------------------------------------------------------ #

    def refresh_panes(self) -> None:
        """Sync pane widgets with the collection and repaint them."""
        container = self.query_one("#panes", Container)
        collection = self.engine.collection
        for mode, css_class in LAYOUT_CLASSES.items():
            container.set_class(collection.layout == mode, css_class)

        visible = collection.visible_panes()
        if collection.layout == LayoutMode.GRID:
            rows, columns = grid_shape(len(visible))
            container.styles.grid_size_columns = max(1, columns)
            container.styles.grid_size_rows = max(1, rows)

        wanted = [pane.id for pane in visible]
        if wanted != list(self._views):
            self._rebuild_views(container, visible)

        for view in self._views.values():
            view.update_chrome()
            view.refresh()
        self._refresh_status()

    def _rebuild_views(self, container: Container, visible: list[InstancePane]) -> None:
        container.remove_children()
        self._views = {pane.id: TerminalView(pane, self.engine) for pane in visible}
        if self._views:
            container.mount_all(self._views.values())
        else:
            container.mount(Static("No panes. F2 opens a shell, F3 an agent.", classes="empty-hint"))
        selected = self.engine.collection.selected
        if selected is not None and selected.id in self._views:
            self.call_after_refresh(self._views[selected.id].focus)

    def _refresh_status(self) -> None:
        collection = self.engine.collection
        counts = Counter(pane.claude_state for pane in collection)
        parts = [f"{len(collection)} panes", collection.layout.value.replace("_", " ")]
        waiting = counts.get(ClaudeState.NEEDS_PERMISSIONS, 0)
        if counts.get(ClaudeState.RUNNING):
            parts.append(f"{counts[ClaudeState.RUNNING]} running")
        if waiting:
            parts.append(f"{waiting} waiting for permission")
        if counts.get(ClaudeState.DONE):
            parts.append(f"{counts[ClaudeState.DONE]} done")
        status = (
            "  ".join(parts)
            + "  |  F2 shell  F3 agent  F4 layout  F5 restart  F6/F7 switch  F8 close  F10 delete task  Ctrl+Q quit"
            + f"  |  {self._status_note}"
        )
        self.query_one("#status-bar", Static).update(status)

    def _note(self, message: str) -> None:
        self._status_note = message
        self._refresh_status()

    def _estimated_geometry(self, pane_count: int) -> tuple[int, int]:
        """Terminal size a new pane will get once laid out with the others."""
        size = self.query_one("#panes", Container).content_size
        if size.width < 1 or size.height < 1:
            pty = self.engine.config.pty
            return pty.default_rows, pty.default_columns
        areas = calculate_pane_areas(Rect(0, 0, size.width, size.height), self.engine.collection.layout, pane_count)
        return areas[-1].inner_geometry()

    # ------------------------------------------------------------------ #
    # Actions                                                              #
    # ------------------------------------------------------------------ #

    def action_new_shell(self) -> None:
        rows, columns = self._estimated_geometry(len(self.engine.collection) + 1)
        pane = self.engine.open_pane(self.working_directory, rows=rows, columns=columns)
        self._note(f"Opened {pane.name}" if not pane.spawn_error else f"Spawn failed: {pane.spawn_error}")
        self.refresh_panes()

    def action_new_agent(self) -> None:
        task_id = uuid.uuid4()
        directory = self.working_directory
        provider = self.provider or self.engine.config.providers.default
        if is_git_repository(self.working_directory):
            try:
                root = find_repository_root(self.working_directory)
                branch = generate_branch_name(f"{provider} {task_id.hex[:8]}")
                directory = create_worktree(root, branch, task_id)
            except WorktreeError as exc:
                logger.warning(f"[tui] No worktree for new agent, using {directory}: {exc}")

        rows, columns = self._estimated_geometry(len(self.engine.collection) + 1)
        try:
            pane = self.engine.open_task_pane(
                directory,
                task_id=task_id,
                provider=provider,
                name=directory.name,
                rows=rows,
                columns=columns,
            )
        except (ValueError, OSError) as exc:
            self._note(f"Cannot start agent: {exc}")
            return
        self._note(f"Started {pane.provider} in {directory}")
        self.refresh_panes()

    def action_cycle_layout(self) -> None:
        layout = self.engine.cycle_layout()
        self._note(f"Layout: {layout.value.replace('_', ' ')}")
        self.refresh_panes()

    def action_retry_pane(self) -> None:
        pane = self.engine.collection.selected
        if pane is None:
            return
        if self.engine.retry_spawn(pane.id):
            self._note(f"Restarted {pane.name}")
        elif pane.spawn_error:
            self._note(f"Spawn failed: {pane.spawn_error}")
        self.refresh_panes()

    def action_next_pane(self) -> None:
        self._announce(self.engine.select_next())

    def action_previous_pane(self) -> None:
        self._announce(self.engine.select_previous())

    def _announce(self, pane: Optional[InstancePane]) -> None:
        if pane is None:
            return
        summary = pane.generate_activity_summary()
        self._note(f"{pane.name}: {summary.format_as_summary_line()}" if summary else pane.name)
        self.refresh_panes()
        view = self._views.get(pane.id)
        if view is not None:
            view.focus()

    def action_close_pane(self) -> None:
        pane = self.engine.collection.selected
        if pane is None:
            return
        self.engine.close_pane(pane.id)
        self._note(f"Closed {pane.name}")
        self.refresh_panes()

    def action_delete_task(self) -> None:
        pane = self.engine.collection.selected
        if pane is None:
            return
        if pane.task_id is None:
            self._note(f"{pane.name} is not an agent task; F8 closes it")
            return
        try:
            self.engine.delete_task(pane.task_id)
        except WorktreeError as exc:
            self._note(f"Closed {pane.name}, worktree kept: {exc}")
        else:
            self._note(f"Deleted task {pane.name}")
        self.refresh_panes()

    def action_show_summary(self) -> None:
        pane = self.engine.collection.selected
        if pane is None:
            return
        summary = pane.generate_activity_summary()
        if summary is None:
            self.notify("No activity since last viewed.", title=pane.name)
            return
        self.notify(summary.format_as_text(), title=pane.name, timeout=10)
        pane.mark_viewed()

    def action_scroll_pane(self, direction: int) -> None:
        pane = self.engine.collection.selected
        if pane is None:
            return
        pane.scroll(direction * max(1, pane.rows // 2))
        self.refresh_panes()

    # ------------------------------------------------------------------ #
    # Input                                                                #
    # ------------------------------------------------------------------ #

    def on_key(self, event: Key) -> None:
        if event.key in self._reserved_keys:
            return
        data = key_to_input(event.key, event.character)
        if data is None:
            return
        if self.engine.send_input(None, data):
            event.stop()
            event.prevent_default()
