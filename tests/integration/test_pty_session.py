"""PTY sessions against real child processes."""

import os
import time
from pathlib import Path

import pytest

from agent_deck.runtime import PtySession, ReadStatus, SpawnError, SpawnOptions

pytestmark = pytest.mark.integration


def _open_fds() -> set[str]:
    return set(os.listdir("/proc/self/fd"))


def _collect(session: PtySession, until: bytes = b"", timeout: float = 5.0) -> tuple[bytes, bool]:
    """Poll the reader queue until ``until`` shows up or the child closes."""
    output = bytearray()
    closed = False
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        chunks, closed = session.poll_output()
        for chunk in chunks:
            output.extend(chunk)
        if closed or (until and until in output):
            break
        time.sleep(0.02)
    return bytes(output), closed


def test_echo_round_trip(tmp_path):
    session = PtySession.spawn(SpawnOptions(working_directory=tmp_path, command="cat"))
    session.start_reader()
    try:
        session.write(b"ping\n")
        output, closed = _collect(session, until=b"ping")
        assert b"ping" in output
        assert not closed
    finally:
        session.terminate(grace_period=0.5)
    assert session.child_fd == -1


def test_runs_in_working_directory(tmp_path):
    session = PtySession.spawn(SpawnOptions(working_directory=tmp_path, command="pwd"))
    session.start_reader()
    output, closed = _collect(session)
    session.terminate(grace_period=0)
    assert closed
    assert str(tmp_path.resolve()).encode() in output


def test_environment_is_passed(tmp_path):
    options = SpawnOptions(
        working_directory=tmp_path,
        command="sh",
        arguments=("-c", "echo $AGENT_DECK_PROBE $TERM"),
        environment={"AGENT_DECK_PROBE": "hello"},
    )
    session = PtySession.spawn(options)
    session.start_reader()
    output, _ = _collect(session)
    session.terminate(grace_period=0)
    assert b"hello xterm-256color" in output


def test_exit_is_reported_after_output(tmp_path):
    options = SpawnOptions(working_directory=tmp_path, command="sh", arguments=("-c", "echo last words; exit 3"))
    session = PtySession.spawn(options)
    session.start_reader()
    output, closed = _collect(session)
    assert b"last words" in output
    assert closed
    session.terminate(grace_period=0)
    assert session.exit_status == 3


def test_read_nonblocking_without_reader(tmp_path):
    session = PtySession.spawn(SpawnOptions(working_directory=tmp_path, command="true"))
    deadline = time.monotonic() + 5.0
    result = session.read_nonblocking()
    while result is not ReadStatus.CLOSED and time.monotonic() < deadline:
        time.sleep(0.02)
        result = session.read_nonblocking()
    assert result is ReadStatus.CLOSED
    session.terminate(grace_period=0)


def test_terminate_releases_fd_when_child_ignores_signals(tmp_path):
    before = _open_fds()
    options = SpawnOptions(
        working_directory=tmp_path,
        command="sh",
        arguments=("-c", 'trap "" TERM HUP; echo ready; sleep 30'),
    )
    session = PtySession.spawn(options)
    session.start_reader()
    _collect(session, until=b"ready")

    started = time.monotonic()
    session.terminate(grace_period=0.3)
    assert time.monotonic() - started < 5.0
    assert not session.is_alive
    assert session.child_fd == -1
    assert _open_fds() <= before


def test_terminate_is_idempotent(tmp_path):
    session = PtySession.spawn(SpawnOptions(working_directory=tmp_path, command="cat"))
    session.terminate(grace_period=0.2)
    session.terminate(grace_period=0.2)
    session.write(b"ignored")
    assert session.is_closed


def test_missing_directory_leaks_nothing(tmp_path):
    before = _open_fds()
    with pytest.raises(SpawnError, match="does not exist"):
        PtySession.spawn(SpawnOptions(working_directory=tmp_path / "gone", command="true"))
    assert _open_fds() <= before


def test_missing_command(tmp_path):
    with pytest.raises(SpawnError, match="not found"):
        PtySession.spawn(SpawnOptions(working_directory=tmp_path, command="agent-deck-no-such-binary"))


def test_resize_bursts_coalesce(tmp_path):
    session = PtySession.spawn(SpawnOptions(working_directory=tmp_path, command="cat", rows=24, columns=80))
    try:
        for columns in range(81, 121):
            session.resize(30, columns)
        assert session.geometry == (30, 120)
        assert session.apply_pending_resize()
        assert not session.apply_pending_resize()
        with pytest.raises(ValueError):
            session.resize(0, 10)
    finally:
        session.terminate(grace_period=0.2)


def test_spawn_default_shell(tmp_path, monkeypatch):
    monkeypatch.setenv("SHELL", "/bin/sh")
    session = PtySession.spawn(SpawnOptions(working_directory=Path(tmp_path)))
    session.start_reader()
    try:
        session.write(b"echo shell-$((20+22))\n")
        output, _ = _collect(session, until=b"shell-42")
        assert b"shell-42" in output
    finally:
        session.terminate(grace_period=0.2)
