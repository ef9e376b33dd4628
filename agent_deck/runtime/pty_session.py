"""PTY session: one child process attached to one pseudo-terminal."""

from __future__ import annotations

import os
import queue
import select
import shlex
import shutil
import signal
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Mapping, Optional, Sequence, Union

import pexpect
from loguru import logger
from ptyprocess import PtyProcessError

READ_BUFFER_BYTES = 4096
READ_POLL_DELAY_S = 0.01
DEFAULT_GRACE_PERIOD_S = 1.0
_REAP_POLL_S = 0.02
_WRITE_CHUNK_BYTES = 4096


class SpawnError(RuntimeError):
    """Raised when a PTY session cannot be started."""


class ReadStatus(Enum):
    """Non-data outcomes of a non-blocking read."""

    EMPTY = "empty"
    CLOSED = "closed"


ReadResult = Union[bytes, ReadStatus]


@dataclass
class SpawnOptions:
    """Everything needed to launch a process inside a new PTY."""

    working_directory: Path
    rows: int = 24
    columns: int = 80
    command: Optional[str] = None
    arguments: Sequence[str] = ()
    environment: Mapping[str, str] = field(default_factory=dict)

    def with_command(self, command: str, arguments: Sequence[str] = ()) -> "SpawnOptions":
        self.command = command
        self.arguments = tuple(arguments)
        return self

    def with_environment(self, environment: Mapping[str, str]) -> "SpawnOptions":
        self.environment = dict(environment)
        return self


def default_shell_command(shell: str = "") -> tuple[str, list[str]]:
    """Resolve the interactive shell to launch for plain panes."""
    value = (shell or os.getenv("SHELL") or "/bin/sh").strip()
    parts = shlex.split(value) or ["/bin/sh"]
    return parts[0], parts[1:]


def _build_environment(extra: Mapping[str, str]) -> dict[str, str]:
    env = dict(os.environ)
    env["TERM"] = "xterm-256color"
    env.setdefault("COLORTERM", "truecolor")
    env.update({str(key): str(value) for key, value in extra.items()})
    return env


class PtySession:
    """Own exactly one child process and its pseudo-terminal.

    Raw output can be pulled synchronously with :meth:`read_nonblocking`, or a
    background reader thread can be started with :meth:`start_reader` and
    drained from the UI thread with :meth:`poll_output`. The reader enqueues
    its close marker after the last chunk, so consumers always see the tail of
    the output before the exit.
    """

    def __init__(self, process: pexpect.spawn, rows: int, columns: int) -> None:
        self._proc = process
        self._proc.delaybeforesend = None
        self._applied_size = (rows, columns)
        self._requested_size = (rows, columns)
        self._output: queue.Queue[Optional[bytes]] = queue.Queue()
        self._input_backlog = bytearray()
        self._stop = threading.Event()
        self._reader_thread: Optional[threading.Thread] = None
        self._closed_seen = False
        self._terminated = False

    # ------------------------------------------------------------------ #
    # Lifecycle                                                            #
    # ------------------------------------------------------------------ #

    @classmethod
    def spawn(cls, options: SpawnOptions) -> "PtySession":
        """Launch ``options.command`` (or the user's shell) inside a new PTY.

        The working directory and the executable are validated before any
        descriptor is allocated.
        """
        working_directory = Path(options.working_directory).expanduser()
        if not working_directory.is_dir():
            raise SpawnError(f"Working directory does not exist: {working_directory}")
        if options.rows < 1 or options.columns < 1:
            raise SpawnError(f"Invalid terminal geometry {options.rows}x{options.columns}")

        env = _build_environment(options.environment)
        if options.command:
            program, arguments = options.command, list(options.arguments)
        else:
            program, arguments = default_shell_command()

        resolved = shutil.which(program, path=env.get("PATH"))
        if resolved is None:
            raise SpawnError(f"Command not found or not executable: {program}")

        try:
            process = pexpect.spawn(
                resolved,
                arguments,
                cwd=str(working_directory),
                env=env,
                dimensions=(options.rows, options.columns),
                encoding=None,
            )
        except (pexpect.ExceptionPexpect, OSError) as exc:
            raise SpawnError(f"Failed to spawn {program}: {exc}") from exc

        logger.info(f"[pty] Spawned pid={process.pid} cmd={program} cwd={working_directory}")
        return cls(process, options.rows, options.columns)

    @property
    def pid(self) -> int:
        return self._proc.pid

    @property
    def child_fd(self) -> int:
        """OS descriptor of the PTY master, -1 once released."""
        return self._proc.child_fd

    @property
    def is_closed(self) -> bool:
        return bool(self._proc.closed)

    @property
    def is_alive(self) -> bool:
        if self._proc.closed:
            return False
        try:
            return bool(self._proc.isalive())
        except (PtyProcessError, OSError):
            return False

    @property
    def exit_status(self) -> Optional[int]:
        """Exit code, or the negated signal number when killed by a signal."""
        if self._proc.exitstatus is not None:
            return self._proc.exitstatus
        if self._proc.signalstatus is not None:
            return -int(self._proc.signalstatus)
        return None

    def terminate(self, grace_period: float = DEFAULT_GRACE_PERIOD_S) -> None:
        """Stop the child, escalating to SIGKILL after ``grace_period``.

        The PTY descriptor is released on every path, including when the child
        ignores every signal.
        """
        if self._terminated:
            return
        self._terminated = True
        self._stop.set()
        self._join_reader()
        proc = self._proc
        try:
            if self.is_alive:
                for sig in (signal.SIGHUP, signal.SIGTERM):
                    self._signal(sig)
                deadline = time.monotonic() + max(0.0, grace_period)
                while self.is_alive and time.monotonic() < deadline:
                    time.sleep(_REAP_POLL_S)
                if self.is_alive:
                    logger.warning(f"[pty] pid={proc.pid} ignored shutdown, sending SIGKILL")
                    self._signal(signal.SIGKILL)
        finally:
            try:
                proc.close(force=True)
            except (pexpect.ExceptionPexpect, PtyProcessError, OSError) as exc:
                logger.warning(f"[pty] close failed for pid={proc.pid}: {exc}")
        logger.info(f"[pty] Terminated pid={proc.pid} status={self.exit_status}")

    def _signal(self, sig: int) -> None:
        try:
            self._proc.kill(sig)
        except OSError as exc:
            logger.debug(f"[pty] kill({sig}) pid={self._proc.pid}: {exc}")

    # ------------------------------------------------------------------ #
    # Output                                                               #
    # ------------------------------------------------------------------ #

    def read_nonblocking(self, size: int = READ_BUFFER_BYTES) -> ReadResult:
        """Return buffered output without blocking.

        ``ReadStatus.EMPTY`` means nothing is available yet and the child is
        still running; ``ReadStatus.CLOSED`` means the child exited and all of
        its output has been consumed.
        """
        if self._proc.closed:
            return ReadStatus.CLOSED
        try:
            data = self._proc.read_nonblocking(size=size, timeout=0)
        except pexpect.TIMEOUT:
            return ReadStatus.EMPTY
        except pexpect.EOF:
            return ReadStatus.CLOSED
        except (ValueError, OSError, PtyProcessError):
            # Descriptor closed or child reaped underneath us.
            return ReadStatus.CLOSED
        return data if data else ReadStatus.EMPTY

    def start_reader(self) -> None:
        """Forward output to an internal queue from a background thread."""
        if self._reader_thread is not None or self._terminated:
            return
        self._reader_thread = threading.Thread(
            target=self._read_loop,
            daemon=True,
            name=f"pty-reader-{self._proc.pid}",
        )
        self._reader_thread.start()

    def _read_loop(self) -> None:
        while not self._stop.is_set():
            result = self.read_nonblocking()
            if result is ReadStatus.EMPTY:
                self._stop.wait(READ_POLL_DELAY_S)
                continue
            if result is ReadStatus.CLOSED:
                break
            self._output.put(result)
        self._output.put(None)

    def poll_output(self, max_chunks: int = 64) -> tuple[list[bytes], bool]:
        """Drain queued output on the consumer thread.

        Also applies any pending resize and flushes buffered input, so one call
        per UI tick keeps the session serviced. Returns ``(chunks, closed)``.
        """
        self.apply_pending_resize()
        self._flush_input()
        chunks: list[bytes] = []
        for _ in range(max_chunks):
            try:
                item = self._output.get_nowait()
            except queue.Empty:
                break
            if item is None:
                self._closed_seen = True
                break
            chunks.append(item)
        return chunks, self._closed_seen

    def _join_reader(self) -> None:
        thread = self._reader_thread
        if thread is not None and thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout=1.0)

    # ------------------------------------------------------------------ #
    # Input & geometry                                                     #
    # ------------------------------------------------------------------ #

    def write(self, data: Union[bytes, str]) -> None:
        """Forward raw bytes to the child.

        Whatever the PTY cannot take right now stays buffered and is retried on
        the next :meth:`poll_output`. Writes to an exiting child are dropped.
        """
        if self._terminated or self._proc.closed:
            return
        payload = data.encode("utf-8") if isinstance(data, str) else bytes(data)
        self._input_backlog.extend(payload)
        self._flush_input()

    def _flush_input(self) -> None:
        while self._input_backlog and not self._proc.closed:
            try:
                _, writable, _ = select.select([], [self._proc.child_fd], [], 0)
                if not writable:
                    return
                written = self._proc.send(bytes(self._input_backlog[:_WRITE_CHUNK_BYTES]))
            except (OSError, ValueError) as exc:
                logger.debug(f"[pty] dropping {len(self._input_backlog)} input bytes: {exc}")
                self._input_backlog.clear()
                return
            del self._input_backlog[:written]

    @property
    def geometry(self) -> tuple[int, int]:
        """Most recently requested (rows, columns)."""
        return self._requested_size

    def resize(self, rows: int, columns: int) -> None:
        """Record a new window size; bursts coalesce to the latest value."""
        if rows < 1 or columns < 1:
            raise ValueError(f"Invalid terminal geometry {rows}x{columns}")
        self._requested_size = (rows, columns)

    def apply_pending_resize(self) -> bool:
        """Push the latest requested size to the PTY if it changed."""
        if self._requested_size == self._applied_size or self._proc.closed:
            return False
        rows, columns = self._requested_size
        try:
            self._proc.setwinsize(rows, columns)
        except (OSError, ValueError) as exc:
            logger.debug(f"[pty] setwinsize failed for pid={self._proc.pid}: {exc}")
            return False
        self._applied_size = self._requested_size
        return True

    def __repr__(self) -> str:
        return f"PtySession(pid={self._proc.pid}, fd={self._proc.child_fd}, size={self._requested_size})"
