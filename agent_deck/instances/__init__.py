"""Pane state, layout and activity tracking.

The engine lives in :mod:`agent_deck.instances.engine` and is imported from
there directly.
"""

from agent_deck.instances.activity import ActivityEvent, ActivityKind, ActivitySummary, Detection, detect_activity
from agent_deck.instances.layout import Rect, calculate_pane_areas
from agent_deck.instances.state import ClaudeState, InstancePane, LayoutMode, PaneCollection

__all__ = [
    "ActivityEvent",
    "ActivityKind",
    "ActivitySummary",
    "ClaudeState",
    "Detection",
    "InstancePane",
    "LayoutMode",
    "PaneCollection",
    "Rect",
    "calculate_pane_areas",
    "detect_activity",
]
