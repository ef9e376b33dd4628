"""Line-oriented screen adapter built on rich's ANSI decoder.

rich's ``AnsiDecoder`` understands SGR styling and carriage-return overwrite
but no cursor addressing, so this backend suits agents that stream plain
scrolling output. Complete lines are decoded once and kept in a bounded
history; the trailing partial line is re-decoded on demand from the decoder's
current SGR state.
"""

from __future__ import annotations

import codecs
import re
from collections import deque
from dataclasses import dataclass
from typing import Optional

from rich.ansi import AnsiDecoder
from rich.style import Style
from rich.text import Text

from agent_deck.terminal import colors
from agent_deck.terminal.base import BufferCell, clamp_offset

_CURSOR_MODE_RE = re.compile(r"\x1b\[\?25([hl])")
_TAB_SIZE = 8
MAX_PENDING_CHARS = 16 * 1024


@dataclass(frozen=True)
class _DecodedLine:
    plain: str
    styles: tuple[Style, ...]


_BLANK_LINE = _DecodedLine("", ())


class AnsiCell:
    """A character plus its resolved rich style."""

    __slots__ = ("_char", "_style")

    def __init__(self, char: str, style: Style) -> None:
        self._char = char
        self._style = style

    def apply(self, target: BufferCell) -> None:
        style = self._style
        target.symbol = self._char or " "
        target.fg = colors.from_rich(style.color)
        target.bg = colors.from_rich(style.bgcolor)
        target.bold = bool(style.bold)
        target.italic = bool(style.italic)
        target.underline = bool(style.underline)
        target.reverse = bool(style.reverse)


def _decode(decoder: AnsiDecoder, raw: str) -> _DecodedLine:
    text: Text = decoder.decode_line(raw)
    text.expand_tabs(_TAB_SIZE)
    plain = text.plain
    styles = [Style.null()] * len(plain)
    for span in text.spans:
        span_style = span.style if isinstance(span.style, Style) else Style.parse(str(span.style))
        for offset in range(max(0, span.start), min(span.end, len(plain))):
            styles[offset] = styles[offset] + span_style
    return _DecodedLine(plain, tuple(styles))


def _last_overwrite(partial: str) -> str:
    """Drop text a carriage return has already overwritten.

    A trailing ``\\r`` stays: it may be half of a ``\\r\\n`` split across reads.
    """
    cut = partial.rstrip("\r").rfind("\r")
    return partial[cut + 1 :] if cut >= 0 else partial


class AnsiLineScreen:
    """Scrollback-aware line buffer screen."""

    def __init__(self, rows: int, columns: int, scrollback: int = 10_000) -> None:
        if rows < 1 or columns < 1:
            raise ValueError(f"invalid screen geometry {rows}x{columns}")
        self._rows = rows
        self._columns = columns
        self._decoder = AnsiDecoder()
        self._utf8 = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._lines: deque[_DecodedLine] = deque(maxlen=max(1, scrollback) + rows)
        self._pending = ""
        self._pending_line: Optional[_DecodedLine] = None
        self._cursor_hidden = False
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
        chunk = self._utf8.decode(data)
        for match in _CURSOR_MODE_RE.finditer(chunk):
            self._cursor_hidden = match.group(1) == "l"

        parts = (self._pending + chunk).split("\n")
        pending = _last_overwrite(parts.pop())
        for raw in parts:
            self._lines.append(_decode(self._decoder, raw.rstrip("\r")))
        if len(pending) > MAX_PENDING_CHARS:
            # Unterminated lines past the cap wrap into history.
            self._lines.append(_decode(self._decoder, pending))
            pending = ""
        self._pending = pending
        self._pending_line = None
        self._scroll_offset = clamp_offset(self._scroll_offset, self.scrollback())

    def resize(self, rows: int, columns: int) -> None:
        if rows < 1 or columns < 1:
            raise ValueError(f"invalid screen geometry {rows}x{columns}")
        history = self._lines.maxlen - self._rows if self._lines.maxlen else 0
        self._rows = rows
        self._columns = columns
        self._lines = deque(self._lines, maxlen=history + rows)
        self._scroll_offset = clamp_offset(self._scroll_offset, self.scrollback())

    def size(self) -> tuple[int, int]:
        return self._rows, self._columns

    def cursor_position(self) -> tuple[int, int]:
        total = len(self._lines) + 1
        row = min(total, self._rows) - 1
        column = min(len(self._current_line().plain), self._columns - 1)
        return row, column

    def hide_cursor(self) -> bool:
        return self._cursor_hidden or self._scroll_offset > 0

    def scrollback(self) -> int:
        return max(0, len(self._lines) + 1 - self._rows)

    def cell(self, row: int, column: int) -> Optional[AnsiCell]:
        if not (0 <= row < self._rows and 0 <= column < self._columns):
            return None
        line = self._line(row)
        if column < len(line.plain):
            return AnsiCell(line.plain[column], line.styles[column])
        return AnsiCell(" ", Style.null())

    def text(self) -> str:
        return "\n".join(self._line(row).plain[: self._columns].rstrip() for row in range(self._rows))

    def _current_line(self) -> _DecodedLine:
        if self._pending_line is None:
            # Decode with a throwaway decoder so the shared SGR state only
            # advances once the line is complete.
            scratch = AnsiDecoder()
            scratch.style = self._decoder.style
            self._pending_line = _decode(scratch, self._pending.rstrip("\r"))
        return self._pending_line

    def _line(self, row: int) -> _DecodedLine:
        total = len(self._lines) + 1
        first_visible = max(0, total - self._rows) - self._scroll_offset
        index = first_visible + row
        if index < 0 or index >= total:
            return _BLANK_LINE
        if index == len(self._lines):
            return self._current_line()
        return self._lines[index]
