"""CLI commands for agent-deck."""

from __future__ import annotations

import json
import os
import select
import sys
import time
import uuid
from pathlib import Path
from typing import Any, Optional

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from agent_deck import __logo__, __version__

app = typer.Typer(
    name="agent-deck",
    help=f"{__logo__} agent-deck - Terminal dashboard for parallel coding agents",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)

STDIN_TIMEOUT_S = 1.0


def version_callback(value: bool) -> None:
    if value:
        console.print(f"{__logo__} agent-deck v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """agent-deck entrypoint."""
    del version


@app.command()
def init(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config without prompt."),
) -> None:
    """Write a default configuration file."""
    from agent_deck.config.loader import get_config_path, save_config
    from agent_deck.config.schema import Config

    config_path = get_config_path()
    if config_path.exists() and not force:
        console.print(f"[yellow]Config already exists at {config_path}[/yellow]")
        if not typer.confirm("Overwrite?"):
            raise typer.Exit()

    save_config(Config())
    console.print(f"[green]OK[/green] Created config at {config_path}")


@app.command()
def run(
    directory: Path = typer.Argument(Path("."), help="Directory new panes start in."),
    provider: Optional[str] = typer.Option(None, "--provider", "-p", help="Agent provider for new agent panes."),
    restore: bool = typer.Option(True, "--restore/--no-restore", help="Reopen panes from the last session."),
    config_file: Optional[Path] = typer.Option(None, "--config", help="Path to config.json."),
) -> None:
    """Open the dashboard."""
    from agent_deck.config.loader import load_config
    from agent_deck.hooks import HookListener, ListenerBindError
    from agent_deck.instances.engine import AgentStateEngine
    from agent_deck.persistence import load_state, save_state
    from agent_deck.providers import get_provider
    from agent_deck.tui import DeckApp
    from agent_deck.utils.helpers import configure_logging

    config = load_config(config_file)
    log_file = configure_logging(config.log_level)
    working_directory = directory.expanduser().resolve()
    if not working_directory.is_dir():
        err_console.print(f"[red]Not a directory:[/red] {working_directory}")
        raise typer.Exit(1)
    if provider:
        try:
            get_provider(provider)
        except ValueError as exc:
            err_console.print(f"[red]{exc}[/red]")
            raise typer.Exit(1)

    engine = AgentStateEngine(config=config)
    listener = HookListener(
        config.hooks.resolved_socket_path,
        sink=engine.hook_queue,
        max_line_bytes=config.hooks.max_line_bytes,
    )
    try:
        listener.start()
    except ListenerBindError as exc:
        err_console.print(f"[red]Cannot listen for hook events[/red] on {exc.path}: {exc.cause}")
        raise typer.Exit(1)

    try:
        if restore:
            state = load_state(config.state_file)
            if state is not None:
                restored = engine.restore(state)
                logger.info(f"[cli] Restored {restored} panes")
        DeckApp(engine, working_directory=working_directory, provider=provider).run()
    finally:
        engine.shutdown()
        save_state(engine.snapshot(), config.state_file)
        listener.close()
    console.print(f"[dim]Logs: {log_file}[/dim]")


def _read_stdin(timeout_s: float) -> str:
    """Read whatever arrives on stdin until EOF or ``timeout_s`` passes."""
    try:
        fd = sys.stdin.fileno()
    except (AttributeError, OSError, ValueError):
        # In-memory stream (tests, embedding); reading cannot block.
        return sys.stdin.read()

    chunks: list[bytes] = []
    deadline = time.monotonic() + timeout_s
    while True:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            logger.debug("[cli] stdin still open after timeout, sending what arrived")
            break
        readable, _, _ = select.select([fd], [], [], remaining)
        if not readable:
            break
        data = os.read(fd, 65536)
        if not data:
            break
        chunks.append(data)
    return b"".join(chunks).decode("utf-8", errors="replace")


def _read_hook_data(timeout_s: float = STDIN_TIMEOUT_S) -> Any:
    """Hook payload piped on stdin: JSON when it parses, raw text otherwise."""
    if sys.stdin is None or sys.stdin.isatty():
        return None
    raw = _read_stdin(timeout_s).strip()
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return raw


@app.command()
def notify(
    event: str = typer.Argument(..., help="Event name: start, end or permission."),
    worktree_id: uuid.UUID = typer.Option(..., "--worktree-id", help="Task id of the pane to update."),
    socket_path: Optional[Path] = typer.Option(None, "--socket", help="Override the hook socket path."),
) -> None:
    """Report an agent hook event to a running dashboard."""
    from agent_deck.config.loader import load_config
    from agent_deck.hooks import HookEvent, send_event

    target = socket_path or load_config().hooks.resolved_socket_path
    payload = HookEvent.now(event, worktree_id, hook_data=_read_hook_data())
    try:
        send_event(payload, target)
    except OSError as exc:
        err_console.print(f"agent-deck notify: cannot reach {target}: {exc}")
        raise typer.Exit(1)


@app.command()
def worktrees(
    directory: Path = typer.Argument(Path("."), help="Any directory inside the repository."),
) -> None:
    """List git worktrees of a repository."""
    from agent_deck.worktree import WorktreeError, find_repository_root, list_worktrees

    try:
        root = find_repository_root(directory)
        entries = list_worktrees(root)
    except WorktreeError as exc:
        err_console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1)

    table = Table(title=f"Worktrees of {root}")
    table.add_column("Path", style="cyan")
    table.add_column("Branch")
    table.add_column("HEAD", style="dim")
    for entry in entries:
        branch = entry.branch or ("(bare)" if entry.bare else "(detached)")
        table.add_row(str(entry.path), branch, entry.head[:10])
    console.print(table)


if __name__ == "__main__":
    app()
