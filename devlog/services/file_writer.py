import logging
import os
from pathlib import Path
from typing import Optional

from devlog_core.errors import FileIOFailure
from devlog_core.models import PhysicalLogFile
from devlog.services.paths import FILE_MODE

logger = logging.getLogger(__name__)


class LogFileWriter:
    """
    Positional appender for the physical log file.

    Writes go through os.pwrite at the tracked offset instead of O_APPEND so the
    offset only moves by what the kernel reports as written. A failed write
    leaves it where it was and the next write retries at the same position.
    """

    def __init__(self, log_file: PhysicalLogFile):
        self._file: Optional[PhysicalLogFile] = log_file

    @classmethod
    def open(cls, path: Path, overwrite: bool = False) -> "LogFileWriter":
        path = Path(path)
        try:
            fd = os.open(path, os.O_RDWR | os.O_CREAT, FILE_MODE)
        except OSError as e:
            raise FileIOFailure(f"Failed to open physical log file at '{path}': {e}", path) from e

        try:
            if overwrite:
                os.ftruncate(fd, 0)
                size = 0
            else:
                size = os.fstat(fd).st_size
        except OSError as e:
            os.close(fd)
            raise FileIOFailure(f"Failed to prepare physical log file at '{path}': {e}", path) from e

        logger.debug("Opened physical log file %s at offset %d", path, size)
        return cls(PhysicalLogFile(path=path, fd=fd, size=size))

    @property
    def path(self) -> Optional[Path]:
        return self._file.path if self._file else None

    @property
    def size(self) -> int:
        return self._file.size if self._file else 0

    @property
    def closed(self) -> bool:
        return self._file is None

    def append(self, data: str) -> int:
        """Write data at the tracked offset and return the number of bytes written."""
        if self._file is None:
            raise FileIOFailure("Physical log file is already closed")
        payload = data.encode("utf-8")
        try:
            written = os.pwrite(self._file.fd, payload, self._file.size)
        except OSError as e:
            raise FileIOFailure(
                f"Failed to write log lines to the physical log file '{self._file.path}': {e}",
                self._file.path,
            ) from e

        self._file.size += written
        if written < len(payload):
            raise FileIOFailure(
                f"Short write to the physical log file '{self._file.path}': "
                f"{written} of {len(payload)} bytes",
                self._file.path,
            )
        return written

    def truncate(self) -> None:
        if self._file is None:
            return
        try:
            os.ftruncate(self._file.fd, 0)
        except OSError as e:
            raise FileIOFailure(
                f"Failed to truncate the physical log file '{self._file.path}': {e}",
                self._file.path,
            ) from e
        self._file.size = 0

    def close(self) -> None:
        if self._file is None:
            return
        log_file, self._file = self._file, None
        logger.debug("Closing log file %s", log_file.path)
        os.close(log_file.fd)
