"""Backend-agnostic terminal screen contract.

The renderer only ever talks to :class:`Screen` and :class:`Cell`. Each
ANSI-parsing engine gets one adapter that satisfies these protocols, so a new
engine never requires changes in rendering code.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Protocol

from rich.color import Color
from rich.style import Style


@dataclass
class BufferCell:
    """Renderer-owned cell that adapters write into."""

    symbol: str = " "
    fg: Color = field(default_factory=Color.default)
    bg: Color = field(default_factory=Color.default)
    bold: bool = False
    italic: bool = False
    underline: bool = False
    reverse: bool = False

    def reset(self) -> None:
        self.symbol = " "
        self.fg = Color.default()
        self.bg = Color.default()
        self.bold = self.italic = self.underline = self.reverse = False

    @property
    def style(self) -> Style:
        """Return the rich style equivalent of this cell."""
        return Style(
            color=self.fg,
            bgcolor=self.bg,
            bold=self.bold or None,
            italic=self.italic or None,
            underline=self.underline or None,
            reverse=self.reverse or None,
        )


class Cell(Protocol):
    """One addressable character cell of a backend screen."""

    def apply(self, target: BufferCell) -> None:
        """Write glyph, colors and attributes into ``target``."""


class Screen(Protocol):
    """Terminal screen capability set consumed by the renderer."""

    scroll_offset: int

    def cell(self, row: int, column: int) -> Optional[Cell]:
        """Return the cell at a viewport coordinate, or None when out of range."""

    def size(self) -> tuple[int, int]:
        """Return (rows, columns)."""

    def cursor_position(self) -> tuple[int, int]:
        """Return the cursor (row, column)."""

    def hide_cursor(self) -> bool:
        """Return True when the application hid the cursor."""

    def scrollback(self) -> int:
        """Return the number of lines kept above the viewport."""

    def feed(self, data: bytes) -> None:
        """Parse raw PTY output."""

    def resize(self, rows: int, columns: int) -> None:
        """Change the viewport geometry."""

    def text(self) -> str:
        """Return the visible viewport as plain text."""


def clamp_offset(offset: int, scrollback: int) -> int:
    """Clamp a scroll offset to ``[0, scrollback]``."""
    return max(0, min(int(offset), max(0, scrollback)))
