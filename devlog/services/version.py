import asyncio
import json
import logging
import re
import shutil
from typing import Callable, List, Optional, Tuple

from devlog_core.errors import VersionProbeFailure
from devlog_core.models import FlutterVersion, SemVer
from devlog.services.host import Notifier

logger = logging.getLogger(__name__)

SEMVER_PATTERN = re.compile(r"(\d+)\.(\d+)\.(\d+)")
VERSION_ARGS = ("--version", "--machine")


def parse_semver(version_str: Optional[str]) -> Optional[SemVer]:
    """First major.minor.patch triple in version_str; suffixes like -dev.1 are ignored."""
    if not isinstance(version_str, str):
        return None
    m = SEMVER_PATTERN.search(version_str)
    if not m:
        return None
    return SemVer(int(m.group(1)), int(m.group(2)), int(m.group(3)))


def resolve_flutter(flutter_path: Optional[str] = None) -> str:
    if flutter_path:
        return flutter_path
    found = shutil.which("flutter")
    if not found:
        raise VersionProbeFailure("Failed to find the flutter executable on PATH")
    return found


def _join(chunks: bytes) -> str:
    return chunks.decode("utf-8", errors="replace").strip()


class VersionProbe:
    def __init__(self, notifier: Notifier, flutter_path: Optional[str] = None, timeout: Optional[float] = None):
        self.notifier = notifier
        self.flutter_path = flutter_path
        # None waits for the tool forever
        self.timeout = timeout
        self._tasks: List[asyncio.Task] = []

    async def fetch(self) -> FlutterVersion:
        exe = resolve_flutter(self.flutter_path)
        logger.debug("Running %s %s", exe, " ".join(VERSION_ARGS))
        try:
            proc = await asyncio.create_subprocess_exec(
                exe,
                *VERSION_ARGS,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise VersionProbeFailure(f"Failed to start {exe}: {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), self.timeout)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            raise VersionProbeFailure(
                f"Timed out after {self.timeout}s retrieving the version of the Flutter SDK"
            )

        if proc.returncode != 0:
            raise VersionProbeFailure(
                "Failed to retrieve the version of the Flutter SDK:\n" + _join(stderr)
            )

        try:
            return FlutterVersion.from_json(json.loads(_join(stdout)))
        except (json.JSONDecodeError, KeyError, TypeError) as e:
            raise VersionProbeFailure(f"Failed to decode the Flutter SDK version report: {e}") from e

    async def versions(self) -> Tuple[SemVer, SemVer]:
        """(flutter, dart) versions of the active SDK."""
        version = await self.fetch()

        dart = parse_semver(version.dart_sdk_version)
        if dart is None:
            raise VersionProbeFailure(f"Failed to parse the Dart SDK version: {version.dart_sdk_version!r}")

        flutter = parse_semver(version.framework_version)
        if flutter is None:
            raise VersionProbeFailure(f"Failed to parse the Flutter SDK version: {version.framework_version!r}")

        return flutter, dart

    def version(self, callback: Callable[[SemVer, SemVer], None]) -> asyncio.Task:
        """
        Schedule a version query on the running loop.

        callback(flutter_version, dart_version) fires once on success. On any
        failure an error is notified and the callback never fires.
        """

        async def _run() -> None:
            try:
                flutter, dart = await self.versions()
            except VersionProbeFailure as e:
                self.notifier.notify(str(e), "error")
                return
            callback(flutter, dart)

        task = asyncio.ensure_future(_run())
        self._tasks.append(task)
        task.add_done_callback(self._tasks.remove)
        return task

    def flutter_version(self, callback: Callable[[SemVer], None]) -> asyncio.Task:
        return self.version(lambda flutter, _dart: callback(flutter))

    def dart_version(self, callback: Callable[[SemVer], None]) -> asyncio.Task:
        return self.version(lambda _flutter, dart: callback(dart))
