"""Terminal screen adapters behind the common Screen protocol."""

import pytest
from rich.color import Color, ColorType

from agent_deck.terminal import AnsiLineScreen, BufferCell, PyteScreen, build_screen
from agent_deck.terminal.ansi_screen import MAX_PENDING_CHARS

BACKENDS = ["pyte", "ansi"]


def _cell(screen, row, column) -> BufferCell:
    target = BufferCell()
    cell = screen.cell(row, column)
    assert cell is not None
    cell.apply(target)
    return target


@pytest.mark.parametrize("backend", BACKENDS)
class TestScreenProtocol:
    def test_plain_text_lands_in_cells(self, backend):
        screen = build_screen(backend, 4, 20)
        screen.feed(b"hello\r\nworld")
        assert screen.text().splitlines()[:2] == ["hello", "world"]
        assert _cell(screen, 0, 0).symbol == "h"
        assert _cell(screen, 1, 4).symbol == "d"

    def test_out_of_range_is_none(self, backend):
        screen = build_screen(backend, 4, 20)
        assert screen.cell(-1, 0) is None
        assert screen.cell(0, -1) is None
        assert screen.cell(4, 0) is None
        assert screen.cell(0, 20) is None

    def test_sgr_colors_and_attributes(self, backend):
        screen = build_screen(backend, 4, 20)
        screen.feed(b"\x1b[1;31mA\x1b[0m\x1b[4;38;5;200mB\x1b[0m\x1b[38;2;1;2;3mC\x1b[0mD\r\n")
        red = _cell(screen, 0, 0)
        assert red.symbol == "A"
        assert red.bold
        assert red.fg.number == 1

        indexed = _cell(screen, 0, 1)
        assert indexed.underline
        # pyte reports palette entries as hex, rich as indexes; both resolve to the same RGB.
        assert indexed.fg.get_truecolor() == Color.from_ansi(200).get_truecolor()

        truecolor = _cell(screen, 0, 2)
        assert truecolor.fg.type == ColorType.TRUECOLOR
        assert tuple(truecolor.fg.triplet) == (1, 2, 3)

        plain = _cell(screen, 0, 3)
        assert plain.fg.type == ColorType.DEFAULT
        assert not plain.bold

    def test_scrollback_and_offset(self, backend):
        screen = build_screen(backend, 3, 10, scrollback=100)
        screen.feed(b"".join(f"line{n}\r\n".encode() for n in range(10)))
        assert screen.scrollback() > 0
        bottom = screen.text()

        screen.scroll_offset = 2
        assert screen.scroll_offset == 2
        assert screen.text() != bottom

        screen.scroll_offset = 10_000
        assert screen.scroll_offset == screen.scrollback()
        assert _cell(screen, 0, 0).symbol == "l"
        assert "line0" in screen.text().splitlines()[0]

        screen.scroll_offset = -5
        assert screen.scroll_offset == 0
        assert screen.text() == bottom

    def test_cursor_visibility(self, backend):
        screen = build_screen(backend, 4, 20)
        assert not screen.hide_cursor()
        screen.feed(b"\x1b[?25l")
        assert screen.hide_cursor()
        screen.feed(b"\x1b[?25h")
        assert not screen.hide_cursor()

    def test_resize_changes_size(self, backend):
        screen = build_screen(backend, 4, 20)
        screen.resize(10, 40)
        assert screen.size() == (10, 40)
        with pytest.raises(ValueError):
            screen.resize(0, 40)

    def test_garbage_input_never_raises(self, backend):
        screen = build_screen(backend, 4, 20)
        screen.feed(b"\xff\xfe\x1b[999;999;999m\x1b]0;title\x07\x1b[?1049h")
        screen.text()


def test_unknown_backend_rejected():
    with pytest.raises(ValueError, match="Unknown terminal backend"):
        build_screen("vt52", 4, 20)


def test_build_screen_picks_adapter():
    assert isinstance(build_screen("pyte", 2, 2), PyteScreen)
    assert isinstance(build_screen("ANSI", 2, 2), AnsiLineScreen)


def test_pyte_cursor_follows_output():
    screen = PyteScreen(5, 20)
    screen.feed(b"ab\r\ncde")
    assert screen.cursor_position() == (1, 3)


def test_ansi_carriage_return_overwrites():
    screen = AnsiLineScreen(3, 20)
    screen.feed(b"progress 10%\rprogress 99%\n")
    assert screen.text().splitlines()[0] == "progress 99%"


def test_ansi_style_carries_across_lines():
    screen = AnsiLineScreen(3, 20)
    screen.feed(b"\x1b[32mgreen\nstill\x1b[0m\n")
    assert _cell(screen, 1, 0).fg.number == 2


def test_ansi_split_utf8_sequence():
    screen = AnsiLineScreen(3, 20)
    encoded = "héllo\n".encode("utf-8")
    screen.feed(encoded[:2])
    screen.feed(encoded[2:])
    assert screen.text().splitlines()[0] == "héllo"


def test_ansi_spinner_redraws_stay_bounded():
    screen = AnsiLineScreen(24, 80, scrollback=100)
    for step in range(5000):
        screen.feed(f"\rWorking {step} ".encode() * 4)
        screen.cell(0, 0)
    assert len(screen._pending) < 64
    assert screen.text().splitlines()[0] == "Working 4999"


def test_ansi_split_crlf_keeps_line():
    screen = AnsiLineScreen(3, 20)
    screen.feed(b"first\r")
    screen.feed(b"\nsecond\n")
    assert screen.text().splitlines()[:2] == ["first", "second"]


def test_ansi_unterminated_line_is_wrapped():
    screen = AnsiLineScreen(3, 20)
    screen.feed(b"x" * (MAX_PENDING_CHARS + 1))
    assert screen._pending == ""
    assert screen.scrollback() == 0
    assert screen.text().splitlines()[0] == "x" * 20
