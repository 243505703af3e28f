import asyncio
import logging
import shlex
from typing import Callable, Optional

from devlog_core.errors import ConfigError
from devlog_core.models import SemVer, SinkConfig
from devlog_core.state import AppState
from devlog.services.host import HostView, Notifier
from devlog.services.sink import LogSink
from devlog.services.version import VersionProbe

logger = logging.getLogger(__name__)


class DevLogController:
    def __init__(self, settings, host: HostView, notifier: Notifier, on_change: Optional[Callable[[], None]] = None):
        self.settings = settings
        self.notifier = notifier
        self.state = AppState(command=settings.get("command"))
        self.sink = LogSink(host, notifier)
        timeout = settings.get("version_timeout_s")
        self.probe = VersionProbe(
            notifier,
            flutter_path=settings.get("flutter_path"),
            timeout=float(timeout) if timeout else None,
        )
        self._on_change = on_change or (lambda: None)

    def setup(self) -> SinkConfig:
        raw = dict(self.settings.get("dev_log") or {})
        try:
            config = SinkConfig.from_settings(raw)
        except ConfigError as e:
            # fall back to logging every line
            self.notifier.notify(f"{e}, logging every line instead", "error")
            raw.pop("filter_pattern", None)
            config = SinkConfig.from_settings(raw)
        self.sink.setup(config)
        return self.sink.config

    def shutdown(self):
        self.sink.shutdown()

    # ─────────────────────────────────────
    # Producer
    # ─────────────────────────────────────
    async def run_command(self, command: Optional[str] = None) -> Optional[int]:
        """
        Run the producer command and feed every output line into the sink.
        stderr lines are logged too and, with notify_errors, raised as toasts.
        Returns the exit code, or None when the command could not start.
        """
        command = command or self.state.command
        if not command:
            return None
        self.state.command = command

        try:
            proc = await asyncio.create_subprocess_exec(
                *shlex.split(command),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            self.notifier.notify(f"Failed to start '{command}': {e}", "error")
            return None

        self.state.running = True
        self.state.exit_code = None
        self._on_change()
        await asyncio.gather(
            self._pump(proc.stdout, is_error=False),
            self._pump(proc.stderr, is_error=True),
        )
        code = await proc.wait()
        self.state.running = False
        self.state.exit_code = code
        logger.info("'%s' exited with %d", command, code)
        self._on_change()
        return code

    async def _pump(self, stream, is_error: bool):
        while True:
            raw = await stream.readline()
            if not raw:
                return
            self.feed(raw.decode("utf-8", errors="replace").rstrip("\r\n"), is_error=is_error)

    def feed(self, line: str, is_error: bool = False):
        self.state.lines_seen += 1
        self.sink.log(line)
        config = self.sink.config
        if is_error and config is not None and config.notify_errors:
            self.notifier.notify(line, "error")
        self._on_change()

    # ─────────────────────────────────────
    # SDK versions
    # ─────────────────────────────────────
    def refresh_versions(self):
        def _got(flutter: SemVer, dart: SemVer):
            self.state.flutter_version = flutter
            self.state.dart_version = dart
            self.sink.log(f"Flutter {flutter} • Dart {dart}")
            self._on_change()

        return self.probe.version(_got)

    # ─────────────────────────────────────
    # Log window
    # ─────────────────────────────────────
    def open_log(self):
        self.sink.open()
        self._on_change()

    def close_log(self):
        self.sink.close()
        self._on_change()

    def toggle_log(self):
        self.sink.toggle()
        self._on_change()

    def clear_log(self):
        self.sink.clear()
        self._on_change()
