import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from devlog_core.errors import ConfigError

LOG_FILENAME = "__FLUTTER_DEV_LOG__"


@dataclass(frozen=True)
class SinkConfig:
    enabled: bool = True
    # None means every line gets logged
    filter: Optional[Callable[[str], bool]] = None
    notify_errors: bool = False
    focus_on_open: bool = True
    create_file: bool = False
    overwrite: bool = False
    open_cmd: str = "bottom"
    debug: int = 0
    log_dir: Optional[Path] = None

    @classmethod
    def from_settings(cls, raw: Optional[Dict[str, Any]]) -> "SinkConfig":
        raw = dict(raw or {})
        pattern = raw.pop("filter_pattern", None)
        log_dir = raw.pop("log_dir", None)
        known = {k: v for k, v in raw.items() if k in cls.__dataclass_fields__ and k != "filter"}
        line_filter = None
        if pattern:
            try:
                compiled = re.compile(pattern)
            except re.error as e:
                raise ConfigError(f"Invalid filter_pattern {pattern!r}: {e}") from e
            line_filter = lambda line: compiled.search(line) is not None
        return cls(
            filter=line_filter,
            log_dir=Path(log_dir).expanduser() if log_dir else None,
            **known,
        )


@dataclass
class SurfaceHandle:
    """What we believe the live log surface is.

    A window id is only ever held together with a buffer id. A buffer id
    without a window is a hidden log: still written to, just not shown.
    """

    buffer_id: Optional[int] = None
    window_id: Optional[int] = None

    @property
    def is_set(self) -> bool:
        return self.buffer_id is not None and self.window_id is not None

    def adopt(self, buffer_id: Optional[int], window_id: Optional[int]) -> None:
        if buffer_id is None or window_id is None:
            self.clear()
            return
        self.buffer_id = buffer_id
        self.window_id = window_id

    def adopt_buffer(self, buffer_id: int, window_id: Optional[int] = None) -> None:
        """Track a buffer found by name, with the window showing it if there is one."""
        self.buffer_id = buffer_id
        self.window_id = window_id

    def clear(self) -> None:
        self.buffer_id = None
        self.window_id = None


@dataclass
class PhysicalLogFile:
    path: Path
    fd: int
    # byte offset of the next write, i.e. bytes confirmed written so far
    size: int = 0


@dataclass(frozen=True)
class SemVer:
    major: int
    minor: int
    patch: int

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


@dataclass
class FlutterVersion:
    framework_version: str
    dart_sdk_version: str
    channel: Optional[str] = None
    repository_url: Optional[str] = None
    framework_revision: Optional[str] = None
    framework_commit_date: Optional[str] = None
    engine_revision: Optional[str] = None
    # missing for Dart SDKs older than 2.15
    devtools_version: Optional[str] = None
    flutter_version: Optional[str] = None
    flutter_root: Optional[str] = None

    @classmethod
    def from_json(cls, obj: Dict[str, Any]) -> "FlutterVersion":
        return cls(
            framework_version=obj["frameworkVersion"],
            dart_sdk_version=obj["dartSdkVersion"],
            channel=obj.get("channel"),
            repository_url=obj.get("repositoryUrl"),
            framework_revision=obj.get("frameworkRevision"),
            framework_commit_date=obj.get("frameworkCommitDate"),
            engine_revision=obj.get("engineRevision"),
            devtools_version=obj.get("devToolsVersion"),
            flutter_version=obj.get("flutterVersion"),
            flutter_root=obj.get("flutterRoot"),
        )
