import hashlib
import os
from pathlib import Path
from typing import Optional

DIR_MODE = 0o755
FILE_MODE = 0o644

def log_root(override: Optional[Path] = None) -> Path:
    """Directory holding one log file per working directory."""
    if override:
        return Path(override)
    root = os.environ.get("DEVLOG_LOG_ROOT")
    if root:
        return Path(root)
    state_home = os.environ.get("XDG_STATE_HOME") or str(Path.home() / ".local" / "state")
    return Path(state_home) / "flutter-devlog"

def ensure_log_root(override: Optional[Path] = None) -> Path:
    root = log_root(override)
    root.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
    return root

def _hash_text(text: str, algo="sha256") -> str:
    h = hashlib.new(algo)
    h.update(text.encode("utf-8"))
    return h.hexdigest()

def log_filename(cwd: Optional[str] = None) -> str:
    return f"{_hash_text(cwd or os.getcwd())}.log"

def log_filepath(override: Optional[Path] = None, cwd: Optional[str] = None) -> Path:
    return log_root(override) / log_filename(cwd)
