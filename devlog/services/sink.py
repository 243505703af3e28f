"""
The dev log sink.

Mirrors every accepted line into the host's log buffer and, when configured,
into a physical file named after the working directory. One LogSink instance
owns all of that state; build it with the host and notifier it should talk to.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

from devlog_core.errors import DevLogError, FileIOFailure, SetupRequired
from devlog_core.models import LOG_FILENAME, SinkConfig
from devlog.services import paths
from devlog.services.file_writer import LogFileWriter
from devlog.services.host import HostView, Notifier, SurfaceOptions
from devlog.services.surface import Autoscroll, SurfaceTracker


def _debug_level(debug: int) -> int:
    if debug >= 2:
        return logging.DEBUG
    if debug == 1:
        return logging.INFO
    return logging.WARNING


class LogSink:
    def __init__(self, host: HostView, notifier: Notifier, cwd: Optional[str] = None):
        self.host = host
        self.notifier = notifier
        self.config: Optional[SinkConfig] = None
        self.file: Optional[LogFileWriter] = None
        self.logger = logging.getLogger("devlog.sink")
        self._cwd = cwd
        self.tracker = SurfaceTracker(host, notifier, self._surface_options, LOG_FILENAME)
        self.autoscroll = Autoscroll(self.tracker, notifier)

    @property
    def filename(self) -> str:
        """Name of the log buffer inside the host."""
        return self.tracker.filename

    @property
    def is_setup(self) -> bool:
        return self.config is not None

    def _surface_options(self) -> SurfaceOptions:
        assert self.config is not None
        return SurfaceOptions(
            filename=self.filename,
            filetype="log",
            open_cmd=self.config.open_cmd,
            focus_on_open=self.config.focus_on_open,
        )

    def _report(self, err: DevLogError, once: bool = False) -> None:
        self.notifier.notify(str(err), "error", once=once)

    # ─────────────────────────────────────
    # Setup / teardown
    # ─────────────────────────────────────
    def setup(self, config: SinkConfig) -> None:
        if self.config is not None:
            return

        self.config = config
        self.logger.setLevel(_debug_level(config.debug))

        try:
            paths.ensure_log_root(config.log_dir)
        except OSError as e:
            self._report(FileIOFailure(f"Failed to create log directory: {e}"))
            return

        if config.create_file:
            self._create_physical_file()

    def _create_physical_file(self) -> None:
        assert self.config is not None
        filepath = paths.log_filepath(self.config.log_dir, self._cwd)
        try:
            self.file = LogFileWriter.open(filepath, overwrite=self.config.overwrite)
        except FileIOFailure as e:
            self._report(e)
            return
        self.logger.info("Created physical log file '%s'", filepath)

    def shutdown(self) -> None:
        """Close the physical log file. Safe to call more than once."""
        if self.file is None:
            return
        self.logger.debug("Closing log file")
        writer, self.file = self.file, None
        writer.close()

    # ─────────────────────────────────────
    # Logging
    # ─────────────────────────────────────
    def log(self, line: str) -> None:
        opts = self.config
        if opts is None or not opts.enabled:
            return
        if opts.filter is not None and not opts.filter(line):
            return

        def _do_log() -> None:
            self._append([line])
            self.autoscroll()

        self.tracker.ensure(_do_log)

    def _append(self, lines: List[str]) -> None:
        buffer_id = self.tracker.handle.buffer_id
        if buffer_id is None:
            return
        self.host.append_lines(buffer_id, lines)

        if self.file is not None:
            try:
                self.file.append("\n".join(lines) + "\n")
            except FileIOFailure as e:
                self._report(e)

    # ─────────────────────────────────────
    # Queries and buffer ops
    # ─────────────────────────────────────
    def get_filepath(self) -> Optional[Path]:
        return self.file.path if self.file is not None else None

    def get_content(self) -> Optional[List[str]]:
        self.logger.debug("get_content")
        if not self.tracker.has_valid_buffer():
            return None
        return self.host.get_lines(self.tracker.handle.buffer_id)

    def clear(self) -> None:
        if not self.tracker.has_valid_buffer():
            return
        self.host.set_lines(self.tracker.handle.buffer_id, [])
        if self.file is not None:
            try:
                self.file.truncate()
            except FileIOFailure as e:
                self._report(e)

    def is_open(self) -> bool:
        return self.tracker.is_open()

    def open(self, scroll_to_bottom: bool = True) -> None:
        if self.config is None:
            self._report(SetupRequired())
            return
        self.tracker.open(scroll_to_bottom)

    def close(self) -> None:
        self.tracker.close()

    def toggle(self) -> None:
        if self.config is None:
            self._report(SetupRequired())
            return
        self.tracker.toggle()
