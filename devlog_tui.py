from textual.app import App, ComposeResult
from textual.widgets import Header, Footer, Button
from textual.containers import Horizontal, Vertical
from textual.logging import TextualHandler
from textual import events
from pathlib import Path
from typing import Any, Dict, List, Optional
import argparse
import logging
import shlex

from devlog.controllers.devlog import DevLogController
from devlog.services.settings import load_settings
from devlog.views.host import TextualHost, TextualNotifier
from devlog.views.status import StatusView


# ─────────────────────────────────────────
# App
# ─────────────────────────────────────────
class DevLogTUI(App):
    CSS = """
    Screen { layout: vertical; }
    #toolbar { height: 3; }
    #main { height: 1fr; }
    #workspace { width: 1fr; }
    #dock_right { width: auto; max-width: 50%; }
    #dock_right LogView { width: 80; }
    #dock_bottom { height: auto; max-height: 50%; }
    #dock_bottom LogView { height: 15; }
    #status { height: auto; }
    """
    BINDINGS = [
        ("o", "open", "Open log"),
        ("c", "close", "Close log"),
        ("t", "toggle", "Toggle log"),
        ("x", "clear", "Clear log"),
        ("v", "version", "SDK version"),
        ("r", "run", "Run"),
        ("q", "quit", "Quit"),
    ]

    def __init__(self, settings: Optional[Dict[str, Any]] = None, command: Optional[str] = None):
        super().__init__()
        self.settings = settings if settings is not None else load_settings()
        if command:
            self.settings["command"] = command
        self.view_host = TextualHost(self)
        self.notifier = TextualNotifier(self)
        self.controller = DevLogController(self.settings, self.view_host, self.notifier, on_change=self._refresh_status)

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Horizontal(id="toolbar"):
            yield Button("Open", id="btn_open")
            yield Button("Close", id="btn_close")
            yield Button("Clear", id="btn_clear")
            yield Button("Version", id="btn_version")
        with Horizontal(id="main"):
            with Vertical(id="workspace"):
                self.status_view = StatusView(id="status")
                yield self.status_view
            yield Vertical(id="dock_right")
        yield Vertical(id="dock_bottom")
        yield Footer()

    @property
    def _toolbar_ids(self) -> List[str]:
        return ["btn_open", "btn_close", "btn_clear", "btn_version"]

    def _focus_toolbar_index(self, idx: int):
        ids = self._toolbar_ids
        idx = max(0, min(len(ids) - 1, idx))
        self.query_one(f"#{ids[idx]}").focus()
        self._focused_idx = idx

    def on_mount(self):
        self._focused_idx = 0
        self.controller.setup()
        self._focus_toolbar_index(0)
        self._refresh_status()
        if self.controller.state.command:
            self.action_run()

    async def on_key(self, event: events.Key):
        focused = self.focused
        ids = self._toolbar_ids
        if not focused or getattr(focused, "id", None) not in ids:
            return
        if event.key in ("left", "right"):
            step = -1 if event.key == "left" else 1
            self._focus_toolbar_index((self._focused_idx + step) % len(ids))
            event.stop()

    def on_button_pressed(self, event: Button.Pressed):
        action = event.button.id.split("_", 1)[1]
        getattr(self, f"action_{action}")()

    def _refresh_status(self):
        if not self.is_running:
            return
        self.status_view.update_status(self.controller.sink, self.controller.state)

    # ─────────────────────────────────────
    # Actions
    # ─────────────────────────────────────
    def action_open(self):
        self.controller.open_log()

    def action_close(self):
        self.controller.close_log()

    def action_toggle(self):
        self.controller.toggle_log()

    def action_clear(self):
        self.controller.clear_log()

    def action_version(self):
        self.controller.refresh_versions()

    def action_run(self):
        if self.controller.state.running:
            self.notify("A command is already running.", severity="warning")
            return
        if not self.controller.state.command:
            self.notify("No command configured.", severity="warning")
            return
        self.run_worker(self.controller.run_command(), group="producer")


def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(description="Live Flutter dev log viewer")
    parser.add_argument("--settings", type=Path, default=Path("settings.yaml"))
    parser.add_argument("command", nargs=argparse.REMAINDER, help="producer command, e.g. flutter run --machine")
    args = parser.parse_args(argv)

    settings = load_settings(args.settings)
    logging.basicConfig(
        level=logging.DEBUG if settings["dev_log"].get("debug") else logging.INFO,
        handlers=[TextualHandler()],
    )
    command = shlex.join(args.command) if args.command else None
    app = DevLogTUI(settings, command)
    try:
        app.run()
    finally:
        # the physical log file is closed exactly once, on the way out
        app.controller.shutdown()


if __name__ == "__main__":
    main()
