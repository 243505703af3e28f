"""
Textual implementations of the HostView and Notifier seams.

Buffers are plain LogBuffer objects keyed by id; windows are LogView widgets
mounted into one of the dock containers named by the open command. Ids are
never reused, so a stale id held by the sink simply stops being valid.
"""
from __future__ import annotations

import itertools
import logging
from typing import Dict, List, Optional, Sequence, Set, Tuple

from textual.app import App
from textual.css.query import NoMatches

from devlog_core.errors import CursorPositionFailure
from devlog.services.host import DESTROY, ENTER, CreatedCallback, LifecycleCallback, SurfaceOptions
from devlog.views.log import LogBuffer, LogView

logger = logging.getLogger(__name__)

DEFAULT_DOCKS = {
    "bottom": "#dock_bottom",
    "right": "#dock_right",
}


class TextualHost:
    def __init__(self, app: App, docks: Optional[Dict[str, str]] = None):
        self.app = app
        self.docks = dict(docks or DEFAULT_DOCKS)
        self._ids = itertools.count(1)
        self._buffers: Dict[int, LogBuffer] = {}
        self._windows: Dict[int, LogView] = {}
        self._subs: Dict[int, Tuple[int, Set[str], LifecycleCallback]] = {}

    # ─────────────────────────────────────
    # Creation / destruction
    # ─────────────────────────────────────
    def create(self, options: SurfaceOptions, on_created: CreatedCallback) -> None:
        selector = self.docks.get(options.open_cmd)
        if selector is None:
            logger.warning("Unknown open command %r", options.open_cmd)
            on_created(None, None)
            return
        try:
            dock = self.app.query_one(selector)
        except NoMatches:
            on_created(None, None)
            return

        buffer_id = self.find_buffer(options.filename)
        if buffer_id is None:
            buffer_id = next(self._ids)
            self._buffers[buffer_id] = LogBuffer(buffer_id, options.filename, options.filetype)
        buffer = self._buffers[buffer_id]

        window_id = next(self._ids)
        view = LogView(self, buffer, window_id, id=f"logwin_{window_id}")
        self._windows[window_id] = view
        dock.mount(view)
        if options.focus_on_open:
            self.app.call_after_refresh(view.focus)
        on_created(buffer_id, window_id)

    def destroy_window(self, window_id: int) -> None:
        view = self._windows.pop(window_id, None)
        if view is not None:
            view.remove()

    def wipe_buffer(self, buffer_id: int) -> None:
        """Delete a buffer and every window showing it, then fire its destroy handlers."""
        if self._buffers.pop(buffer_id, None) is None:
            return
        for window_id, view in list(self._windows.items()):
            if view.log_buffer.id == buffer_id:
                self.destroy_window(window_id)
        for sub_id, (sub_buffer, events, callback) in list(self._subs.items()):
            if sub_buffer != buffer_id:
                continue
            # buffer-local handlers die with the buffer
            del self._subs[sub_id]
            if DESTROY in events:
                callback(DESTROY)

    def window_gone(self, window_id: int) -> None:
        self._windows.pop(window_id, None)

    def window_entered(self, view: LogView) -> None:
        for sub_buffer, events, callback in list(self._subs.values()):
            if sub_buffer == view.log_buffer.id and ENTER in events:
                callback(ENTER)

    # ─────────────────────────────────────
    # Lookups
    # ─────────────────────────────────────
    def is_buffer_valid(self, buffer_id: Optional[int], name: str) -> bool:
        buffer = self._buffers.get(buffer_id) if buffer_id is not None else None
        return buffer is not None and buffer.name == name

    def find_buffer(self, name: str) -> Optional[int]:
        return next((b.id for b in self._buffers.values() if b.name == name), None)

    def window_for_buffer(self, buffer_id: int) -> Optional[int]:
        return next((wid for wid, v in self._windows.items() if v.log_buffer.id == buffer_id), None)

    def is_window_valid(self, window_id: Optional[int]) -> bool:
        return window_id is not None and window_id in self._windows

    def list_windows(self) -> List[int]:
        return list(self._windows)

    def visible_windows(self) -> List[int]:
        screen = self.app.screen
        visible = []
        for window_id, view in self._windows.items():
            if view.is_attached and view.display and view.screen is screen:
                visible.append(window_id)
        return visible

    def current_window(self) -> Optional[int]:
        focused = self.app.focused
        return focused.window_id if isinstance(focused, LogView) else None

    def current_buffer(self) -> Optional[int]:
        focused = self.app.focused
        return focused.log_buffer.id if isinstance(focused, LogView) else None

    # ─────────────────────────────────────
    # Buffer contents
    # ─────────────────────────────────────
    def _buffer(self, buffer_id: int) -> LogBuffer:
        return self._buffers[buffer_id]

    def _redraw(self, buffer_id: int) -> None:
        for view in self._windows.values():
            if view.log_buffer.id == buffer_id and view.is_mounted:
                view.render_buffer()

    def line_count(self, buffer_id: int) -> int:
        return len(self._buffer(buffer_id).lines)

    def get_lines(self, buffer_id: int) -> List[str]:
        return list(self._buffer(buffer_id).lines)

    def set_lines(self, buffer_id: int, lines: Sequence[str]) -> None:
        self._buffer(buffer_id).lines = list(lines)
        self._redraw(buffer_id)

    def append_lines(self, buffer_id: int, lines: Sequence[str]) -> None:
        self._buffer(buffer_id).lines.extend(lines)
        self._redraw(buffer_id)

    def set_cursor(self, window_id: int, line: int, col: int) -> None:
        view = self._windows.get(window_id)
        if view is None:
            raise CursorPositionFailure(f"Invalid window id: {window_id}")
        if line < 1 or line > max(1, len(view.log_buffer.lines)):
            raise CursorPositionFailure(f"Cursor position outside buffer: {line}")
        view.move_cursor(line, col)

    # ─────────────────────────────────────
    # Lifecycle subscriptions
    # ─────────────────────────────────────
    def subscribe(self, buffer_id: int, events: Sequence[str], callback: LifecycleCallback) -> int:
        sub_id = next(self._ids)
        self._subs[sub_id] = (buffer_id, set(events), callback)
        return sub_id

    def unsubscribe(self, subscription_id: int) -> None:
        self._subs.pop(subscription_id, None)


class TextualNotifier:
    """App.notify toasts, with repeat suppression for once=True."""

    def __init__(self, app: App, title: str = "Dev log"):
        self.app = app
        self.title = title
        self._seen: Set[str] = set()

    def notify(self, message: str, severity: str = "information", once: bool = False) -> None:
        if once:
            if message in self._seen:
                return
            self._seen.add(message)
        logger.log(logging.ERROR if severity == "error" else logging.INFO, message)
        self.app.notify(message, title=self.title, severity=severity)
