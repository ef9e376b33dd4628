"""Textual widgets for agent panes."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.style import Style
from rich.text import Text
from textual.events import Click, Resize
from textual.widget import Widget

from agent_deck.instances.state import ClaudeState, InstancePane
from agent_deck.terminal import BufferCell, Screen

if TYPE_CHECKING:
    from agent_deck.instances.engine import AgentStateEngine

STATE_BADGES = {
    ClaudeState.IDLE: ("idle", "grey62"),
    ClaudeState.RUNNING: ("running", "green"),
    ClaudeState.NEEDS_PERMISSIONS: ("needs permission", "bold yellow"),
    ClaudeState.DONE: ("done", "cyan"),
}


def render_screen(screen: Screen, show_cursor: bool = True) -> Text:
    """Render a screen into rich text, one line per row.

    Adjacent cells with identical attributes are merged into one span.
    """
    rows, columns = screen.size()
    cursor = screen.cursor_position() if show_cursor and screen.scroll_offset == 0 and not screen.hide_cursor() else None
    buffer = BufferCell()
    text = Text(no_wrap=True, overflow="crop", end="")

    for row in range(rows):
        if row:
            text.append("\n")
        run: list[str] = []
        run_key: tuple = ()
        for column in range(columns):
            buffer.reset()
            cell = screen.cell(row, column)
            if cell is not None:
                cell.apply(buffer)
            if cursor == (row, column):
                buffer.reverse = not buffer.reverse
            key = (buffer.fg, buffer.bg, buffer.bold, buffer.italic, buffer.underline, buffer.reverse)
            if run and key != run_key:
                text.append("".join(run), _style_for(run_key))
                run = []
            run_key = key
            run.append(buffer.symbol or " ")
        if run:
            text.append("".join(run), _style_for(run_key))
    return text


def _style_for(key: tuple) -> Style:
    fg, bg, bold, italic, underline, reverse = key
    return BufferCell(" ", fg, bg, bold, italic, underline, reverse).style


class TerminalView(Widget, can_focus=True):
    """One pane: a bordered view of the pane's terminal screen."""

    DEFAULT_CSS = """
    TerminalView {
        border: round $primary-darken-2;
        height: 1fr;
        width: 1fr;
    }

    TerminalView.selected {
        border: heavy $accent;
    }

    TerminalView.needs-permission {
        border: heavy $warning;
    }
    """

    def __init__(self, pane: InstancePane, engine: "AgentStateEngine") -> None:
        super().__init__()
        self.pane = pane
        self.engine = engine

    def on_mount(self) -> None:
        self.update_chrome()

    def update_chrome(self) -> None:
        pane = self.pane
        self.set_class(self.engine.collection.selected is pane, "selected")
        self.set_class(pane.claude_state == ClaudeState.NEEDS_PERMISSIONS, "needs-permission")
        label, style = STATE_BADGES[pane.claude_state]
        provider = f" [{pane.provider}]" if pane.provider else ""
        self.border_title = Text.assemble(f" {pane.name}{provider} ", (f"● {label} ", style))
        if pane.spawn_error:
            self.border_subtitle = Text(f" failed: {pane.spawn_error} ", style="bold red")
        elif pane.pty_session is None:
            self.border_subtitle = " exited "
        elif pane.scroll_offset:
            self.border_subtitle = f" scrolled {pane.scroll_offset} "
        else:
            summary = pane.generate_activity_summary() if not self.has_class("selected") else None
            self.border_subtitle = f" {summary.format_as_summary_line()} " if summary else ""

    def render(self) -> Text:
        if self.pane.spawn_error:
            return Text(self.pane.spawn_error, style="red")
        return render_screen(self.pane.screen, show_cursor=self.has_class("selected"))

    def on_resize(self, _: Resize) -> None:
        rows, columns = self.content_size.height, self.content_size.width
        if rows > 0 and columns > 0:
            self.engine.resize_pane(self.pane.id, rows, columns)

    def on_click(self, _: Click) -> None:
        self.engine.select_pane(self.pane.id)
        self.focus()
        self.app.refresh_panes()
