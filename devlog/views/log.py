# devlog/views/log.py
from __future__ import annotations

from typing import TYPE_CHECKING, List

from rich.text import Text
from textual import events
from textual.widgets import Static

if TYPE_CHECKING:
    from devlog.views.host import TextualHost


class LogBuffer:
    """Named list of lines; any number of LogView windows may show it."""

    def __init__(self, buffer_id: int, name: str, filetype: str = "log"):
        self.id = buffer_id
        self.name = name
        self.filetype = filetype
        self.lines: List[str] = []


class LogView(Static):
    """Read-only window onto a LogBuffer, with a line cursor the host can move."""

    DEFAULT_CSS = """
    LogView {
        height: 1fr;
        overflow-y: auto;
        border: solid $accent;
        padding: 0 1;
    }
    LogView:focus {
        border: double $accent;
    }
    """
    BINDINGS = [
        ("w", "wipe", "Wipe log"),
        ("g", "cursor_top", "Top"),
        ("G", "cursor_bottom", "Bottom"),
    ]
    can_focus = True

    def __init__(self, host: "TextualHost", buffer: LogBuffer, window_id: int, **kwargs):
        super().__init__(**kwargs)
        self._host = host
        self.log_buffer = buffer
        self.window_id = window_id
        # 1-based line, 0-based column
        self.cursor_pos = (1, 0)
        self.border_title = buffer.name

    def on_mount(self) -> None:
        self.render_buffer()

    def render_buffer(self) -> None:
        """Redraw from the buffer contents."""
        self.update(Text("\n".join(self.log_buffer.lines)))

    def move_cursor(self, line: int, col: int) -> None:
        self.cursor_pos = (line, col)
        if self.is_mounted:
            self.scroll_to(y=max(0, line - 1), animate=False)

    def on_focus(self, event: events.Focus) -> None:
        self._host.window_entered(self)

    def on_unmount(self) -> None:
        self._host.window_gone(self.window_id)

    def action_wipe(self) -> None:
        self._host.wipe_buffer(self.log_buffer.id)

    def action_cursor_top(self) -> None:
        self.move_cursor(1, 0)

    def action_cursor_bottom(self) -> None:
        self.move_cursor(max(1, len(self.log_buffer.lines)), 0)
