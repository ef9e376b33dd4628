"""Split a screen area into pane rectangles for each layout mode."""

from __future__ import annotations

import math
from typing import NamedTuple

from agent_deck.instances.state import LayoutMode

# Border plus title row around every pane.
PANE_CHROME_ROWS = 2
PANE_CHROME_COLUMNS = 2


class Rect(NamedTuple):
    x: int
    y: int
    width: int
    height: int

    def inner_geometry(self) -> tuple[int, int]:
        """Terminal (rows, columns) left inside the pane frame, never below 1x1."""
        return (
            max(1, self.height - PANE_CHROME_ROWS),
            max(1, self.width - PANE_CHROME_COLUMNS),
        )


def _ratio_split(start: int, length: int, parts: int) -> list[tuple[int, int]]:
    """Divide ``length`` into ``parts`` near-equal spans that cover it exactly."""
    spans = []
    for index in range(parts):
        lo = start + length * index // parts
        hi = start + length * (index + 1) // parts
        spans.append((lo, hi - lo))
    return spans


def calculate_pane_areas(area: Rect, mode: LayoutMode, pane_count: int) -> list[Rect]:
    """Return one rectangle per visible pane.

    ``SINGLE`` yields the full area once (only the selected pane is shown).
    ``GRID`` uses ``ceil(sqrt(n))`` columns and fills rows left to right.
    """
    if pane_count <= 0:
        return []
    if mode == LayoutMode.SINGLE:
        return [area]
    if mode == LayoutMode.HORIZONTAL_SPLIT:
        return [Rect(x, area.y, width, area.height) for x, width in _ratio_split(area.x, area.width, pane_count)]
    if mode == LayoutMode.VERTICAL_SPLIT:
        return [Rect(area.x, y, area.width, height) for y, height in _ratio_split(area.y, area.height, pane_count)]

    grid_size = max(1, math.ceil(math.sqrt(pane_count)))
    rows = -(-pane_count // grid_size)
    result: list[Rect] = []
    remaining = pane_count
    for y, height in _ratio_split(area.y, area.height, rows):
        in_row = min(remaining, grid_size)
        result.extend(Rect(x, y, width, height) for x, width in _ratio_split(area.x, area.width, in_row))
        remaining -= in_row
        if remaining == 0:
            break
    return result


def grid_shape(pane_count: int) -> tuple[int, int]:
    """(rows, columns) of the grid used for ``pane_count`` panes."""
    if pane_count <= 0:
        return 0, 0
    columns = max(1, math.ceil(math.sqrt(pane_count)))
    return -(-pane_count // columns), columns
