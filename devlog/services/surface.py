"""
Keeps track of the log buffer/window pair living inside the host.

The host may wipe, recreate or renumber the log surface at any time and only
tells us about it through coarse lifecycle events, so every query here
re-derives validity from the host instead of trusting the stored ids.
"""
from __future__ import annotations

import logging
from typing import Callable, Optional

from devlog_core.errors import CursorPositionFailure, DevLogError, SurfaceUnavailable
from devlog_core.models import LOG_FILENAME, SurfaceHandle
from devlog.services.host import DESTROY, ENTER, HostView, Notifier, SurfaceOptions

logger = logging.getLogger(__name__)


class SurfaceTracker:
    def __init__(
        self,
        host: HostView,
        notifier: Notifier,
        options_factory: Callable[[], SurfaceOptions],
        filename: str = LOG_FILENAME,
    ):
        self.host = host
        self.notifier = notifier
        self.filename = filename
        self.handle = SurfaceHandle()
        self.subscription_id: Optional[int] = None
        self.last_error: Optional[DevLogError] = None
        self._options_factory = options_factory

    def _report(self, err: DevLogError) -> None:
        self.last_error = err
        self.notifier.notify(str(err), "error")

    # ─────────────────────────────────────
    # Queries
    # ─────────────────────────────────────
    def exists(self) -> bool:
        """Whether the log buffer exists; re-adopts it by name if we lost track of its ids."""
        if self.has_valid_buffer():
            return True

        # The host may have recreated the buffer without telling us, or the
        # window was closed and is_open() dropped our ids. Either way the
        # buffer is still there under its name, shown or not.
        buffer_id = self.host.find_buffer(self.filename)
        if buffer_id is not None:
            window_id = self.host.window_for_buffer(buffer_id)
            logger.debug("Re-adopting log buffer %s (window %s)", buffer_id, window_id)
            self.handle.adopt_buffer(buffer_id, window_id)
            return True

        self.handle.clear()
        return False

    def is_open(self) -> bool:
        h = self.handle
        if not h.is_set:
            return False
        if (
            not self.host.is_window_valid(h.window_id)
            or not self.host.is_buffer_valid(h.buffer_id, self.filename)
            or h.window_id not in self.host.list_windows()
        ):
            h.clear()
            return False
        return True

    def has_valid_buffer(self) -> bool:
        return self.handle.buffer_id is not None and self.host.is_buffer_valid(
            self.handle.buffer_id, self.filename
        )

    # ─────────────────────────────────────
    # Creation
    # ─────────────────────────────────────
    def ensure(self, on_ready: Optional[Callable[[], None]] = None, force: bool = False) -> None:
        if not force and self.exists():
            if on_ready:
                on_ready()
            return

        options = self._options_factory()
        logger.debug("Now opening log buffer with options: %r", options)

        def _created(buffer_id: Optional[int], window_id: Optional[int]) -> None:
            if buffer_id is None or window_id is None:
                self._report(SurfaceUnavailable("Failed to open the dev log as the buffer could not be found"))
                return

            self.last_error = None
            self.handle.adopt(buffer_id, window_id)
            self._resubscribe(buffer_id)
            if on_ready:
                on_ready()

        self.host.create(options, _created)

    def _resubscribe(self, buffer_id: int) -> None:
        # The host may hand out a new buffer id, drop the old subscription first.
        if self.subscription_id is not None:
            self.host.unsubscribe(self.subscription_id)
            self.subscription_id = None
        self.subscription_id = self.host.subscribe(buffer_id, (DESTROY, ENTER), self._on_lifecycle)

    def _on_lifecycle(self, event: str) -> None:
        if event == DESTROY:
            logger.debug("Log buffer %s destroyed", self.handle.buffer_id)
            self.handle.clear()
        elif event == ENTER:
            # The user may have entered the log through a window we did not create.
            self.handle.adopt(self.host.current_buffer(), self.host.current_window())

    # ─────────────────────────────────────
    # Window management
    # ─────────────────────────────────────
    def open(self, scroll_to_bottom: bool = True) -> None:
        if self.is_open():
            return

        def _scroll() -> None:
            if not scroll_to_bottom or not self.handle.is_set:
                return
            try:
                line_count = self.host.line_count(self.handle.buffer_id)
                self.host.set_cursor(self.handle.window_id, line_count, 0)
            except CursorPositionFailure:
                # The window may have been closed in the meantime.
                pass

        self.ensure(_scroll, force=True)

    def close(self) -> None:
        if not self.is_open():
            return
        self.host.destroy_window(self.handle.window_id)

    def toggle(self) -> None:
        if self.is_open():
            self.close()
        else:
            self.open()


class Autoscroll:
    """Keeps the log window pinned to the newest line unless the user is reading it."""

    def __init__(self, tracker: SurfaceTracker, notifier: Notifier):
        self.tracker = tracker
        self.notifier = notifier

    def __call__(self) -> bool:
        """Return True when the cursor was moved."""
        host = self.tracker.host
        window_id = self.tracker.handle.window_id
        buffer_id = self.tracker.handle.buffer_id
        if window_id is None or buffer_id is None:
            return False

        # don't scroll a focused log, it would yank the cursor from the reader
        if host.current_window() == window_id:
            return False

        if window_id not in host.visible_windows():
            return False

        try:
            host.set_cursor(window_id, host.line_count(buffer_id), 0)
        except CursorPositionFailure as e:
            self.notifier.notify(
                f"Failed to set cursor for log window {window_id}: {e}", "error", once=True
            )
            return False
        return True
