"""agent-deck - terminal dashboard for concurrent CLI-agent sessions."""

__version__ = "0.1.0"
__logo__ = "▦"
