"""Shared pytest fixtures: in-memory host and notifier for driving the sink."""

from __future__ import annotations

import itertools
from typing import Dict, List, Optional, Sequence, Set, Tuple

import pytest

from devlog_core.errors import CursorPositionFailure
from devlog_core.models import SinkConfig
from devlog.services.host import DESTROY, ENTER, SurfaceOptions
from devlog.services.sink import LogSink


class FakeNotifier:
    def __init__(self):
        self.messages: List[Tuple[str, str]] = []
        self._seen: Set[str] = set()

    def notify(self, message, severity="information", once=False):
        if once:
            if message in self._seen:
                return
            self._seen.add(message)
        self.messages.append((message, severity))

    @property
    def errors(self) -> List[str]:
        return [m for m, sev in self.messages if sev == "error"]


class FakeHost:
    """Synchronous HostView with knobs for the failure modes the sink must survive."""

    def __init__(self):
        self._ids = itertools.count(100)
        self.buffers: Dict[int, Tuple[str, List[str]]] = {}
        self.windows: Dict[int, int] = {}  # window -> buffer
        self.hidden: Set[int] = set()
        self.subs: Dict[int, Tuple[int, Set[str], object]] = {}
        self.focused: Optional[int] = None
        self.cursor_calls: List[Tuple[int, int, int]] = []
        self.created: List[SurfaceOptions] = []
        self.fail_create = False
        self.fail_cursor = False

    # creation
    def create(self, options, on_created):
        self.created.append(options)
        if self.fail_create:
            on_created(None, None)
            return
        buffer_id = self.find_buffer(options.filename)
        if buffer_id is None:
            buffer_id = next(self._ids)
            self.buffers[buffer_id] = (options.filename, [])
        window_id = next(self._ids)
        self.windows[window_id] = buffer_id
        if options.focus_on_open:
            self.focused = window_id
        on_created(buffer_id, window_id)

    def destroy_window(self, window_id):
        self.windows.pop(window_id, None)
        if self.focused == window_id:
            self.focused = None

    # simulated user/host actions
    def wipe(self, buffer_id):
        self.buffers.pop(buffer_id)
        for wid, bid in list(self.windows.items()):
            if bid == buffer_id:
                self.destroy_window(wid)
        for sid, (bid, events, cb) in list(self.subs.items()):
            if bid == buffer_id:
                del self.subs[sid]
                if DESTROY in events:
                    cb(DESTROY)

    def enter(self, window_id):
        self.focused = window_id
        bid = self.windows[window_id]
        for sub_bid, events, cb in list(self.subs.values()):
            if sub_bid == bid and ENTER in events:
                cb(ENTER)

    def split(self, buffer_id):
        """Open another window onto an existing buffer, behind the sink's back."""
        window_id = next(self._ids)
        self.windows[window_id] = buffer_id
        return window_id

    # lookups
    def is_buffer_valid(self, buffer_id, name):
        return buffer_id in self.buffers and self.buffers[buffer_id][0] == name

    def find_buffer(self, name):
        return next((bid for bid, (n, _) in self.buffers.items() if n == name), None)

    def window_for_buffer(self, buffer_id):
        return next((wid for wid, bid in self.windows.items() if bid == buffer_id), None)

    def is_window_valid(self, window_id):
        return window_id in self.windows

    def list_windows(self):
        return list(self.windows)

    def visible_windows(self):
        return [w for w in self.windows if w not in self.hidden]

    def current_window(self):
        return self.focused

    def current_buffer(self):
        return self.windows.get(self.focused)

    # contents
    def line_count(self, buffer_id):
        return len(self.buffers[buffer_id][1])

    def get_lines(self, buffer_id):
        return list(self.buffers[buffer_id][1])

    def set_lines(self, buffer_id, lines: Sequence[str]):
        self.buffers[buffer_id][1][:] = list(lines)

    def append_lines(self, buffer_id, lines: Sequence[str]):
        self.buffers[buffer_id][1].extend(lines)

    def set_cursor(self, window_id, line, col):
        self.cursor_calls.append((window_id, line, col))
        if self.fail_cursor or window_id not in self.windows:
            raise CursorPositionFailure(f"Invalid window id: {window_id}")

    # subscriptions
    def subscribe(self, buffer_id, events, callback):
        sid = next(self._ids)
        self.subs[sid] = (buffer_id, set(events), callback)
        return sid

    def unsubscribe(self, subscription_id):
        self.subs.pop(subscription_id, None)


@pytest.fixture
def host():
    return FakeHost()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def log_dir(tmp_path):
    return tmp_path / "logs"


@pytest.fixture
def sink(host, notifier, tmp_path):
    s = LogSink(host, notifier, cwd=str(tmp_path))
    yield s
    s.shutdown()


@pytest.fixture
def make_config(log_dir):
    def _make(**overrides):
        values = dict(enabled=True, focus_on_open=False, log_dir=log_dir)
        values.update(overrides)
        return SinkConfig(**values)

    return _make
