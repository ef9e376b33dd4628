"""Single-threaded owner of pane lifecycle and agent state.

Everything here runs on the UI thread. PTY readers and the hook listener only
ever talk to the engine through queues, so no pane is touched concurrently.
"""

from __future__ import annotations

import queue
import uuid
from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence, Union

from loguru import logger

from agent_deck.config.schema import Config
from agent_deck.hooks.events import EventKind, HookEvent
from agent_deck.instances.activity import detect_activity
from agent_deck.instances.state import ClaudeState, InstancePane, LayoutMode, PaneCollection
from agent_deck.persistence.storage import AppState
from agent_deck.providers import get_provider, resolve_override, write_generated_files
from agent_deck.runtime import PtySession, SpawnError, SpawnOptions, default_shell_command
from agent_deck.worktree import delete_worktree, managed_worktree_root

MAX_UNKNOWN_EVENTS = 50
MAX_CHUNKS_PER_POLL = 64

_HOOK_TRANSITIONS = {
    EventKind.START: ClaudeState.RUNNING,
    EventKind.END: ClaudeState.DONE,
    EventKind.PERMISSION: ClaudeState.NEEDS_PERMISSIONS,
}


@dataclass
class LaunchSpec:
    """What to run in a pane; kept so a failed or finished pane can be restarted."""

    command: Optional[str] = None
    arguments: Sequence[str] = ()
    environment: dict[str, str] = field(default_factory=dict)
    starts_task: bool = False


class AgentStateEngine:
    """Sole mutator of the pane collection and of every pane's ``ClaudeState``."""

    def __init__(
        self,
        collection: Optional[PaneCollection] = None,
        hook_queue: Optional["queue.Queue[HookEvent]"] = None,
        config: Optional[Config] = None,
    ) -> None:
        self.config = config or Config()
        self.collection = collection if collection is not None else PaneCollection(LayoutMode.parse(self.config.ui.layout))
        self.hook_queue: "queue.Queue[HookEvent]" = hook_queue if hook_queue is not None else queue.Queue()
        self.unknown_events: deque[HookEvent] = deque(maxlen=MAX_UNKNOWN_EVENTS)
        self._launches: dict[uuid.UUID, LaunchSpec] = {}

    # ------------------------------------------------------------------ #
    # Hook events                                                          #
    # ------------------------------------------------------------------ #

    def apply_hook_event(self, event: HookEvent) -> bool:
        """Apply one event; returns True when a pane's state was set."""
        pane = self.collection.find_by_task(event.worktree_id)
        if pane is None:
            logger.debug(f"[engine] No pane for worktree {event.worktree_id}, ignoring {event.event}")
            return False

        target = _HOOK_TRANSITIONS.get(event.kind)
        if target is None:
            self.unknown_events.append(event)
            logger.debug(f"[engine] Unknown hook event '{event.event}' for {pane.name}")
            return False

        if pane.claude_state != target:
            logger.info(f"[engine] {pane.name}: {pane.claude_state.value} -> {target.value}")
        pane.claude_state = target
        return True

    def drain_hook_events(self, max_events: Optional[int] = None) -> int:
        """Apply queued events without blocking; returns how many were applied."""
        limit = max_events if max_events is not None else self.config.ui.max_hook_events_per_tick
        applied = 0
        for _ in range(max(0, limit)):
            try:
                event = self.hook_queue.get_nowait()
            except queue.Empty:
                break
            if self.apply_hook_event(event):
                applied += 1
        return applied

    # ------------------------------------------------------------------ #
    # PTY servicing                                                        #
    # ------------------------------------------------------------------ #

    def poll_ptys(self) -> bool:
        """Move child output into panes and retire exited sessions.

        Returns True when any pane received output or changed state.
        """
        changed = False
        for pane in self.collection:
            session = pane.pty_session
            if session is None:
                continue
            chunks, closed = session.poll_output(MAX_CHUNKS_PER_POLL)
            for chunk in chunks:
                pane.append_output(chunk)
                for detection in detect_activity(chunk):
                    pane.add_activity_event(detection.kind, detection.description, detection.excerpt)
            if chunks:
                changed = True
            if closed:
                self._finish_session(pane)
                changed = True
        return changed

    def _finish_session(self, pane: InstancePane) -> None:
        session = pane.pty_session
        if session is None:
            return
        pane.pty_session = None
        session.terminate(grace_period=0)
        logger.info(f"[engine] {pane.name}: process exited with status {session.exit_status}")
        pane.claude_state = ClaudeState.DONE

    def tick(self) -> bool:
        """One UI tick: service PTYs, then apply hook events."""
        changed = self.poll_ptys()
        if self.drain_hook_events():
            changed = True
        return changed

    # ------------------------------------------------------------------ #
    # Pane lifecycle                                                       #
    # ------------------------------------------------------------------ #

    def _new_pane(
        self,
        working_directory: Union[str, Path],
        name: str = "",
        rows: Optional[int] = None,
        columns: Optional[int] = None,
        task_id: Optional[uuid.UUID] = None,
        provider: Optional[str] = None,
        pane_id: Optional[uuid.UUID] = None,
    ) -> InstancePane:
        pty = self.config.pty
        pane = InstancePane(
            working_directory=Path(working_directory).expanduser(),
            rows=rows or pty.default_rows,
            columns=columns or pty.default_columns,
            task_id=task_id,
            name=name,
            provider=provider,
            backend=pty.backend,
            scrollback=pty.scrollback_lines,
            output_limit=pty.output_buffer_bytes,
        )
        if pane_id is not None:
            pane.id = pane_id
        return pane

    def open_pane(
        self,
        working_directory: Union[str, Path],
        command: Optional[str] = None,
        arguments: Sequence[str] = (),
        name: str = "",
        rows: Optional[int] = None,
        columns: Optional[int] = None,
        select: bool = True,
    ) -> InstancePane:
        """Add a pane running ``command`` (or the configured shell).

        A spawn failure does not raise: the pane is kept with ``spawn_error``
        set so it can be retried.
        """
        pane = self._new_pane(working_directory, name=name, rows=rows, columns=columns)
        self._launches[pane.id] = LaunchSpec(command=command, arguments=tuple(arguments))
        self.collection.add(pane, select=select)
        self._spawn(pane)
        return pane

    def open_task_pane(
        self,
        working_directory: Union[str, Path],
        task_id: Optional[uuid.UUID] = None,
        provider: Optional[str] = None,
        prompt: str = "",
        name: str = "",
        rows: Optional[int] = None,
        columns: Optional[int] = None,
        select: bool = True,
    ) -> InstancePane:
        """Add a pane running an agent provider wired to report hook events.

        Raises ``ValueError`` for an unknown provider and ``OSError`` when its
        hook files cannot be written; in both cases no pane is added.
        """
        spec = get_provider(provider or self.config.providers.default)
        task_id = task_id or uuid.uuid4()
        directory = Path(working_directory).expanduser()
        write_generated_files(spec.build_files(task_id, directory))

        launch = spec.build_command(prompt, resolve_override(self.config.providers.command_overrides, spec.key))
        pane = self._new_pane(directory, name=name, rows=rows, columns=columns, task_id=task_id, provider=spec.key)
        self._launches[pane.id] = LaunchSpec(
            command=launch.program,
            arguments=tuple(launch.arguments),
            environment=dict(launch.environment),
            starts_task=True,
        )
        self.collection.add(pane, select=select)
        self._spawn(pane)
        return pane

    def _spawn(self, pane: InstancePane) -> bool:
        launch = self._launches.get(pane.id, LaunchSpec())
        command, arguments = launch.command, launch.arguments
        if command is None:
            command, arguments = default_shell_command(self.config.pty.shell)
        options = SpawnOptions(
            working_directory=pane.working_directory,
            rows=pane.rows,
            columns=pane.columns,
            command=command,
            arguments=arguments,
            environment=launch.environment,
        )
        try:
            session = PtySession.spawn(options)
        except SpawnError as exc:
            pane.spawn_error = str(exc)
            logger.warning(f"[engine] {pane.name}: spawn failed: {exc}")
            return False

        session.start_reader()
        pane.pty_session = session
        pane.spawn_error = None
        if launch.starts_task:
            pane.claude_state = ClaudeState.RUNNING
        return True

    def retry_spawn(self, pane_id: uuid.UUID) -> bool:
        """Start the pane's process again if it has none."""
        pane = self.collection.find(pane_id)
        if pane is None or pane.pty_session is not None:
            return False
        return self._spawn(pane)

    def close_pane(self, pane_id: uuid.UUID) -> bool:
        """Terminate the pane's process and remove the pane in one step."""
        pane = self.collection.remove(pane_id)
        if pane is None:
            return False
        self._launches.pop(pane.id, None)
        session, pane.pty_session = pane.pty_session, None
        if session is not None:
            session.terminate(self.config.pty.terminate_grace_s)
        logger.info(f"[engine] Closed pane {pane.name}")
        return True

    def close_task(self, task_id: uuid.UUID) -> Optional[InstancePane]:
        """Close the pane bound to ``task_id``, e.g. because its task was deleted."""
        pane = self.collection.find_by_task(task_id)
        if pane is None or not self.close_pane(pane.id):
            return None
        return pane

    def delete_task(self, task_id: uuid.UUID) -> bool:
        """Close the task's pane, then remove its worktree and branch.

        Only worktrees agent-deck created are removed. ``WorktreeError``
        propagates once the pane is already gone.
        """
        pane = self.close_task(task_id)
        if pane is None:
            return False
        root = managed_worktree_root(pane.working_directory)
        if root is not None:
            delete_worktree(root, pane.working_directory, delete_branch=True)
        return True

    def send_input(self, pane_id: Optional[uuid.UUID], data: Union[bytes, str]) -> bool:
        """Forward input to a pane (the selected one when ``pane_id`` is None)."""
        pane = self.collection.selected if pane_id is None else self.collection.find(pane_id)
        if pane is None or pane.pty_session is None:
            return False
        pane.scroll_to_bottom()
        pane.pty_session.write(data)
        return True

    def resize_pane(self, pane_id: uuid.UUID, rows: int, columns: int) -> bool:
        pane = self.collection.find(pane_id)
        if pane is None:
            return False
        pane.resize(rows, columns)
        return True

    def select_pane(self, pane_id: uuid.UUID) -> bool:
        """Select a pane and mark the one we are leaving as viewed."""
        previous = self.collection.selected
        if not self.collection.select(pane_id):
            return False
        if previous is not None:
            previous.mark_viewed()
        return True

    def select_next(self) -> Optional[InstancePane]:
        previous = self.collection.selected
        pane = self.collection.select_next()
        if previous is not None and previous is not pane:
            previous.mark_viewed()
        return pane

    def select_previous(self) -> Optional[InstancePane]:
        previous = self.collection.selected
        pane = self.collection.select_previous()
        if previous is not None and previous is not pane:
            previous.mark_viewed()
        return pane

    def cycle_layout(self) -> LayoutMode:
        layout = self.collection.cycle_layout()
        logger.debug(f"[engine] Layout -> {layout.value}")
        return layout

    def shutdown(self) -> None:
        """Terminate every session; panes stay in the collection for persistence."""
        for pane in self.collection:
            session, pane.pty_session = pane.pty_session, None
            if session is None:
                continue
            try:
                session.terminate(self.config.pty.terminate_grace_s)
            except Exception as exc:
                logger.warning(f"[engine] Failed to terminate {pane.name}: {exc}")

    # ------------------------------------------------------------------ #
    # Persistence                                                          #
    # ------------------------------------------------------------------ #

    def snapshot(self) -> AppState:
        return AppState.from_collection(self.collection)

    def restore(self, state: AppState) -> int:
        """Recreate panes from saved metadata, each with a fresh process.

        Restored panes start idle; task panes keep their task id so hook
        events still resolve, but their provider is not relaunched.
        """
        self.collection.layout = state.layout
        selected_id = None
        if state.selected_index is not None and 0 <= state.selected_index < len(state.panes):
            selected_id = state.panes[state.selected_index].id
        restored = 0
        for record in state.panes:
            if not record.working_directory.is_dir():
                logger.warning(f"[engine] Skipping pane {record.name}: {record.working_directory} is gone")
                continue
            pane = self._new_pane(
                record.working_directory,
                name=record.name,
                rows=record.rows,
                columns=record.columns,
                task_id=record.task_id,
                provider=record.provider,
                pane_id=record.id,
            )
            self._launches[pane.id] = LaunchSpec()
            self.collection.add(pane, select=False)
            self._spawn(pane)
            restored += 1
        if selected_id is not None:
            self.collection.select(selected_id)
        return restored
