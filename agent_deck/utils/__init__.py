"""Utility helpers."""

from agent_deck.utils.helpers import configure_logging, get_data_path, strip_ansi

__all__ = ["configure_logging", "get_data_path", "strip_ansi"]
