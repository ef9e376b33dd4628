"""Terminal dashboard."""

from agent_deck.tui.app import DeckApp
from agent_deck.tui.widgets import TerminalView, render_screen

__all__ = ["DeckApp", "TerminalView", "render_screen"]
