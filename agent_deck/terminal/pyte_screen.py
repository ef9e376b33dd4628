"""Screen adapter for the pyte VT100 emulator."""

from __future__ import annotations

from typing import Any, Optional

import pyte
from loguru import logger

from agent_deck.terminal import colors
from agent_deck.terminal.base import BufferCell, clamp_offset


class PyteCell:
    """Wrap one pyte ``Char``."""

    __slots__ = ("_char",)

    def __init__(self, char: Any) -> None:
        self._char = char

    def apply(self, target: BufferCell) -> None:
        char = self._char
        target.symbol = char.data or " "
        target.fg = colors.from_name(char.fg)
        target.bg = colors.from_name(char.bg)
        target.bold = bool(char.bold)
        target.italic = bool(char.italics)
        target.underline = bool(char.underscore)
        target.reverse = bool(char.reverse)


class PyteScreen:
    """Scrollback-aware screen backed by ``pyte.HistoryScreen``.

    ``scroll_offset`` counts lines scrolled up from the live viewport. Row
    addressing shifts by that offset before indexing history or the live grid.
    """

    def __init__(self, rows: int, columns: int, scrollback: int = 10_000) -> None:
        self._screen = pyte.HistoryScreen(columns, rows, history=scrollback)
        self._screen.set_mode(pyte.modes.LNM)
        self._stream = pyte.ByteStream(self._screen)
        self._scroll_offset = 0

    @property
    def scroll_offset(self) -> int:
        return self._scroll_offset

    @scroll_offset.setter
    def scroll_offset(self, value: int) -> None:
        self._scroll_offset = clamp_offset(value, self.scrollback())

    def feed(self, data: bytes) -> None:
        if not data:
            return
        try:
            self._stream.feed(data)
        except Exception as exc:
            # Keep the pane alive on malformed control sequences.
            logger.debug(f"[terminal] pyte rejected chunk of {len(data)} bytes: {exc}")
        self._scroll_offset = clamp_offset(self._scroll_offset, self.scrollback())

    def resize(self, rows: int, columns: int) -> None:
        if rows < 1 or columns < 1:
            raise ValueError(f"invalid screen geometry {rows}x{columns}")
        self._screen.resize(lines=rows, columns=columns)

    def size(self) -> tuple[int, int]:
        return self._screen.lines, self._screen.columns

    def cursor_position(self) -> tuple[int, int]:
        cursor = self._screen.cursor
        return cursor.y, cursor.x

    def hide_cursor(self) -> bool:
        return bool(self._screen.cursor.hidden)

    def scrollback(self) -> int:
        return len(self._screen.history.top)

    def cell(self, row: int, column: int) -> Optional[PyteCell]:
        rows, columns = self.size()
        if not (0 <= row < rows and 0 <= column < columns):
            return None
        line = self._line(row)
        if line is None:
            return None
        return PyteCell(line[column])

    def text(self) -> str:
        rows, columns = self.size()
        lines: list[str] = []
        for row in range(rows):
            line = self._line(row)
            if line is None:
                lines.append("")
                continue
            lines.append("".join(line[x].data for x in range(columns)).rstrip())
        return "\n".join(lines)

    def _line(self, row: int) -> Optional[Any]:
        history = self._screen.history.top
        index = len(history) - self._scroll_offset + row
        if index < 0:
            return None
        if index < len(history):
            return history[index]
        grid_row = index - len(history)
        if grid_row >= self._screen.lines:
            return None
        return self._screen.buffer[grid_row]
