"""Hook payload reading for the notify command."""

import io
import os
import time

from agent_deck.cli import commands


def test_open_pipe_does_not_block(monkeypatch):
    read_fd, write_fd = os.pipe()
    try:
        os.write(write_fd, b'{"tool_name": "Bash"}')
        with os.fdopen(read_fd, "r", closefd=False) as stdin:
            monkeypatch.setattr(commands.sys, "stdin", stdin)
            started = time.monotonic()
            payload = commands._read_hook_data(timeout_s=0.3)
        assert time.monotonic() - started < 2.0
        assert payload == {"tool_name": "Bash"}
    finally:
        os.close(read_fd)
        os.close(write_fd)


def test_closed_pipe_plain_text(monkeypatch):
    read_fd, write_fd = os.pipe()
    os.write(write_fd, b"done\n")
    os.close(write_fd)
    with os.fdopen(read_fd, "r") as stdin:
        monkeypatch.setattr(commands.sys, "stdin", stdin)
        assert commands._read_hook_data(timeout_s=5.0) == "done"


def test_in_memory_stdin(monkeypatch):
    monkeypatch.setattr(commands.sys, "stdin", io.StringIO(""))
    assert commands._read_hook_data() is None
