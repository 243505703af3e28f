"""
Collaborator seams the sink talks through.

The sink never touches widgets or toasts directly: it holds a HostView (the
thing that owns buffers and windows) and a Notifier (the thing that shows
errors to the user). The Textual app provides real ones, tests provide fakes.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional, Protocol, Sequence

DESTROY = "destroy"
ENTER = "enter"

# on_created(buffer_id, window_id); both None when the host failed
CreatedCallback = Callable[[Optional[int], Optional[int]], None]
LifecycleCallback = Callable[[str], None]


@dataclass(frozen=True)
class SurfaceOptions:
    filename: str
    filetype: str = "log"
    open_cmd: str = "bottom"
    focus_on_open: bool = True


class HostView(Protocol):
    def create(self, options: SurfaceOptions, on_created: CreatedCallback) -> None: ...

    def is_buffer_valid(self, buffer_id: Optional[int], name: str) -> bool: ...

    def find_buffer(self, name: str) -> Optional[int]: ...

    def window_for_buffer(self, buffer_id: int) -> Optional[int]: ...

    def is_window_valid(self, window_id: Optional[int]) -> bool: ...

    def list_windows(self) -> List[int]:
        """Every live window, visible or not."""

    def visible_windows(self) -> List[int]:
        """Windows currently shown to the user."""

    def current_window(self) -> Optional[int]: ...

    def current_buffer(self) -> Optional[int]: ...

    def line_count(self, buffer_id: int) -> int: ...

    def get_lines(self, buffer_id: int) -> List[str]: ...

    def set_lines(self, buffer_id: int, lines: Sequence[str]) -> None: ...

    def append_lines(self, buffer_id: int, lines: Sequence[str]) -> None: ...

    def set_cursor(self, window_id: int, line: int, col: int) -> None:
        """Raise CursorPositionFailure when the window or line is gone."""

    def destroy_window(self, window_id: int) -> None: ...

    def subscribe(self, buffer_id: int, events: Sequence[str], callback: LifecycleCallback) -> int: ...

    def unsubscribe(self, subscription_id: int) -> None: ...


class Notifier(Protocol):
    def notify(self, message: str, severity: str = "information", once: bool = False) -> None: ...
