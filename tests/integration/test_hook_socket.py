"""Hook events over a real Unix socket, from notify CLI to pane state."""

import json
import queue
import socket
import time
import uuid

import pytest
from typer.testing import CliRunner

from agent_deck.cli.commands import app
from agent_deck.hooks import HookEvent, HookListener, ListenerBindError, send_event
from agent_deck.instances.state import ClaudeState

pytestmark = pytest.mark.integration

runner = CliRunner()


def _wait_for(predicate, timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.02)
    return False


def _tick_until(engine, predicate, timeout: float = 5.0) -> bool:
    def step():
        engine.tick()
        return predicate()

    return _wait_for(step, timeout)


@pytest.fixture
def listener(engine, socket_path):
    with HookListener(socket_path, sink=engine.hook_queue, max_line_bytes=1024) as running:
        yield running


def _send_raw(path, payload: bytes) -> None:
    with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as sock:
        sock.connect(str(path))
        sock.sendall(payload)


def test_permission_event_reaches_pane(engine, tracked_pane, listener, socket_path):
    send_event(HookEvent.now("permission", tracked_pane.task_id), socket_path)
    assert _tick_until(engine, lambda: tracked_pane.claude_state == ClaudeState.NEEDS_PERMISSIONS)


def test_events_in_one_connection_apply_in_order(engine, tracked_pane, listener, socket_path):
    lines = b"".join(
        HookEvent.now(kind, tracked_pane.task_id).to_line() for kind in ("start", "permission", "end")
    )
    _send_raw(socket_path, lines)
    assert _wait_for(lambda: engine.hook_queue.qsize() == 3)
    engine.tick()
    assert tracked_pane.claude_state == ClaudeState.DONE


def test_untracked_worktree_changes_nothing(engine, tracked_pane, listener, socket_path):
    send_event(HookEvent.now("start", uuid.uuid4()), socket_path)
    assert _wait_for(lambda: engine.hook_queue.qsize() == 1)
    engine.tick()
    assert tracked_pane.claude_state == ClaudeState.IDLE


def test_malformed_and_overlong_lines_are_dropped(engine, tracked_pane, listener, socket_path):
    good = HookEvent.now("start", tracked_pane.task_id).to_line()
    payload = b"not json\n" + b"x" * 4096 + b"\n" + json.dumps({"event": "end"}).encode() + b"\n" + good
    _send_raw(socket_path, payload)
    assert _tick_until(engine, lambda: tracked_pane.claude_state == ClaudeState.RUNNING)
    assert listener.dropped_lines == 3


def test_stale_socket_file_is_replaced(socket_path):
    stale = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    stale.bind(str(socket_path))
    stale.close()
    assert socket_path.exists()

    sink: "queue.Queue[HookEvent]" = queue.Queue()
    with HookListener(socket_path, sink=sink):
        event = HookEvent.now("end", uuid.uuid4())
        send_event(event, socket_path)
        assert sink.get(timeout=5.0) == event
    assert not socket_path.exists()


def test_live_socket_is_not_stolen(listener, socket_path):
    second = HookListener(socket_path)
    with pytest.raises(ListenerBindError, match="already listening"):
        second.start()
    assert listener.is_running


def test_send_without_listener_fails(socket_path):
    with pytest.raises(OSError):
        send_event(HookEvent.now("start", uuid.uuid4()), socket_path)


def test_notify_cli_delivers_event(engine, tracked_pane, listener, socket_path):
    result = runner.invoke(
        app,
        ["notify", "permission", "--worktree-id", str(tracked_pane.task_id), "--socket", str(socket_path)],
        input=json.dumps({"tool_name": "Bash"}),
    )
    assert result.exit_code == 0, result.output
    event = engine.hook_queue.get(timeout=5.0)
    assert event.kind.value == "permission"
    assert event.hook_data == {"tool_name": "Bash"}
    engine.apply_hook_event(event)
    assert tracked_pane.claude_state == ClaudeState.NEEDS_PERMISSIONS


def test_notify_cli_keeps_plain_text_payload(engine, listener, socket_path):
    task_id = uuid.uuid4()
    result = runner.invoke(
        app,
        ["notify", "end", "--worktree-id", str(task_id), "--socket", str(socket_path)],
        input="finished cleanly",
    )
    assert result.exit_code == 0, result.output
    event = engine.hook_queue.get(timeout=5.0)
    assert event.worktree_id == task_id
    assert event.hook_data == "finished cleanly"


def test_notify_cli_without_listener_exits_nonzero(socket_path):
    result = runner.invoke(
        app,
        ["notify", "start", "--worktree-id", str(uuid.uuid4()), "--socket", str(socket_path)],
    )
    assert result.exit_code == 1


def test_notify_cli_rejects_bad_uuid(socket_path):
    result = runner.invoke(app, ["notify", "start", "--worktree-id", "nope", "--socket", str(socket_path)])
    assert result.exit_code != 0
