"""Dashboard state persistence."""

from agent_deck.persistence.storage import (
    AppState,
    PaneRecord,
    default_state_path,
    load_state,
    save_state,
)

__all__ = ["AppState", "PaneRecord", "default_state_path", "load_state", "save_state"]
