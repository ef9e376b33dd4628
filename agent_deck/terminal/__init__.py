"""Terminal screen abstraction and backend adapters."""

from __future__ import annotations

from agent_deck.terminal.ansi_screen import AnsiLineScreen
from agent_deck.terminal.base import BufferCell, Cell, Screen
from agent_deck.terminal.pyte_screen import PyteScreen

SCREEN_BACKENDS = {
    "pyte": PyteScreen,
    "ansi": AnsiLineScreen,
}


def build_screen(backend: str, rows: int, columns: int, scrollback: int = 10_000) -> Screen:
    """Build a screen for the named backend."""
    key = (backend or "").strip().lower()
    if key not in SCREEN_BACKENDS:
        choices = ", ".join(sorted(SCREEN_BACKENDS))
        raise ValueError(f"Unknown terminal backend '{backend}'. Expected one of: {choices}")
    return SCREEN_BACKENDS[key](rows, columns, scrollback=scrollback)


__all__ = [
    "AnsiLineScreen",
    "BufferCell",
    "Cell",
    "PyteScreen",
    "SCREEN_BACKENDS",
    "Screen",
    "build_screen",
]
