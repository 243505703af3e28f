class DevLogError(Exception):
    """Base class for every reportable dev log failure. None of them are fatal."""


class SetupRequired(DevLogError):
    def __init__(self, message: str = "The log module has not been setup yet"):
        super().__init__(message)


class SurfaceUnavailable(DevLogError):
    """The host could not create the log buffer or its window."""


class FileIOFailure(DevLogError):
    """Opening, writing or truncating the physical log file failed."""

    def __init__(self, message: str, path=None):
        super().__init__(message)
        self.path = path


class CursorPositionFailure(DevLogError):
    """Moving the cursor of a log window failed (window closed meanwhile, bad line, ...)."""


class VersionProbeFailure(DevLogError):
    """The flutter version query exited non-zero or returned something unparsable."""


class ConfigError(DevLogError):
    """A dev_log setting could not be turned into a usable value."""
