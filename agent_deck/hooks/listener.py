"""Unix-socket listener that ingests hook events off the UI thread."""

from __future__ import annotations

import errno
import queue
import socket
import tempfile
import threading
from pathlib import Path
from typing import Optional

from loguru import logger
from pydantic import ValidationError

from agent_deck.hooks.events import HookEvent

SOCKET_NAME = "agent-deck.sock"
ACCEPT_IDLE_DELAY_S = 0.05
ACCEPT_ERROR_BACKOFF_S = 0.5
DEFAULT_MAX_LINE_BYTES = 64 * 1024
_STALE_PROBE_TIMEOUT_S = 0.2


def default_socket_path() -> Path:
    """Well-known socket location in the OS temp directory."""
    return Path(tempfile.gettempdir()) / SOCKET_NAME


class ListenerBindError(RuntimeError):
    """The hook socket could not be bound."""

    def __init__(self, path: Path, cause: BaseException | str) -> None:
        self.path = path
        self.cause = cause
        super().__init__(f"Cannot listen for hook events on {path}: {cause}")


class HookListener:
    """Accept newline-delimited JSON hook events on a Unix domain socket.

    The accept loop runs on its own thread in non-blocking mode and every
    connection is served by a short-lived reader thread. Decoded events are
    put on ``sink``; nothing here touches pane state.
    """

    def __init__(
        self,
        socket_path: Optional[Path] = None,
        sink: Optional["queue.Queue[HookEvent]"] = None,
        max_line_bytes: int = DEFAULT_MAX_LINE_BYTES,
    ) -> None:
        self.socket_path = Path(socket_path) if socket_path else default_socket_path()
        self.sink: "queue.Queue[HookEvent]" = sink if sink is not None else queue.Queue()
        self.max_line_bytes = max(1, int(max_line_bytes))

        self._sock: Optional[socket.socket] = None
        self._stop = threading.Event()
        self._accept_thread: Optional[threading.Thread] = None
        self._connections: set[socket.socket] = set()
        self._connections_guard = threading.Lock()
        self.dropped_lines = 0

    @property
    def is_running(self) -> bool:
        return self._accept_thread is not None and self._accept_thread.is_alive()

    def __enter__(self) -> "HookListener":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------ #
    # Lifecycle                                                            #
    # ------------------------------------------------------------------ #

    def start(self) -> None:
        """Bind the socket and start the accept thread."""
        if self._sock is not None:
            return
        self._remove_stale_socket()

        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            sock.bind(str(self.socket_path))
            sock.listen()
            sock.setblocking(False)
        except OSError as exc:
            sock.close()
            raise ListenerBindError(self.socket_path, exc) from exc

        self._sock = sock
        self._stop.clear()
        self._accept_thread = threading.Thread(
            target=self._accept_loop,
            daemon=True,
            name="hook-listener",
        )
        self._accept_thread.start()
        logger.info(f"[hooks] Listening on {self.socket_path}")

    def close(self) -> None:
        """Stop accepting, drop open connections and remove the socket file."""
        self._stop.set()
        thread = self._accept_thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=2.0)
        self._accept_thread = None

        with self._connections_guard:
            connections = list(self._connections)
            self._connections.clear()
        for conn in connections:
            try:
                conn.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            conn.close()

        if self._sock is not None:
            self._sock.close()
            self._sock = None
            try:
                self.socket_path.unlink()
            except FileNotFoundError:
                pass
            except OSError as exc:
                logger.warning(f"[hooks] Could not remove {self.socket_path}: {exc}")
            logger.info(f"[hooks] Stopped listening on {self.socket_path}")

    def _remove_stale_socket(self) -> None:
        path = self.socket_path
        if not path.exists() and not path.is_symlink():
            return
        if path.is_dir():
            raise ListenerBindError(path, "path is a directory")

        probe = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        probe.settimeout(_STALE_PROBE_TIMEOUT_S)
        try:
            probe.connect(str(path))
        except OSError:
            alive = False
        else:
            alive = True
        finally:
            probe.close()
        if alive:
            raise ListenerBindError(path, "another agent-deck instance is already listening")

        logger.info(f"[hooks] Removing stale socket {path}")
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            raise ListenerBindError(path, exc) from exc

    # ------------------------------------------------------------------ #
    # Accept & read                                                        #
    # ------------------------------------------------------------------ #

    def _accept_loop(self) -> None:
        sock = self._sock
        while sock is not None and not self._stop.is_set():
            try:
                conn, _ = sock.accept()
            except BlockingIOError:
                self._stop.wait(ACCEPT_IDLE_DELAY_S)
                continue
            except OSError as exc:
                if exc.errno == errno.EBADF:
                    break
                logger.warning(f"[hooks] accept failed: {exc}")
                self._stop.wait(ACCEPT_ERROR_BACKOFF_S)
                continue

            conn.setblocking(True)
            with self._connections_guard:
                self._connections.add(conn)
            threading.Thread(
                target=self._serve_connection,
                args=(conn,),
                daemon=True,
                name="hook-connection",
            ).start()

    def _serve_connection(self, conn: socket.socket) -> None:
        limit = self.max_line_bytes
        discarding = False
        try:
            with conn.makefile("rb") as reader:
                while not self._stop.is_set():
                    line = reader.readline(limit + 1)
                    if not line:
                        break
                    complete = line.endswith(b"\n")
                    if discarding:
                        discarding = not complete
                        continue
                    if not complete and len(line) > limit:
                        logger.warning(f"[hooks] Dropping line longer than {limit} bytes")
                        self.dropped_lines += 1
                        discarding = True
                        continue
                    self._handle_line(line)
        except OSError as exc:
            logger.debug(f"[hooks] connection closed: {exc}")
        finally:
            with self._connections_guard:
                self._connections.discard(conn)
            conn.close()

    def _handle_line(self, line: bytes) -> None:
        payload = line.strip()
        if not payload:
            return
        try:
            event = HookEvent.model_validate_json(payload)
        except ValidationError as exc:
            self.dropped_lines += 1
            logger.debug(f"[hooks] Dropping malformed event {payload[:200]!r}: {exc.error_count()} errors")
            return
        logger.debug(f"[hooks] {event.event} for {event.worktree_id}")
        self.sink.put(event)
