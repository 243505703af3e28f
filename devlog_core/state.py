from dataclasses import dataclass
from typing import Optional
from devlog_core.models import SemVer

@dataclass
class AppState:
    command: Optional[str] = None
    running: bool = False
    exit_code: Optional[int] = None
    lines_seen: int = 0
    flutter_version: Optional[SemVer] = None
    dart_version: Optional[SemVer] = None
