from pathlib import Path
from typing import Any, Dict, Optional
import copy
import yaml

DEFAULT_SETTINGS: Dict[str, Any] = {
    "command": None,
    "flutter_path": None,
    "version_timeout_s": None,
    "dev_log": {
        "enabled": True,
        "notify_errors": False,
        "focus_on_open": True,
        "create_file": False,
        "overwrite": False,
        "open_cmd": "bottom",
        "debug": 0,
        "filter_pattern": None,
        "log_dir": None,
    },
}


def load_settings(path: Optional[Path] = None) -> Dict[str, Any]:
    """settings.yaml merged over the defaults; missing file means defaults."""
    path = Path(path or "settings.yaml")
    settings = copy.deepcopy(DEFAULT_SETTINGS)
    if not path.exists():
        return settings
    raw = yaml.safe_load(path.read_text()) or {}
    for key, value in raw.items():
        if key == "dev_log" and isinstance(value, dict):
            settings["dev_log"].update(value)
        else:
            settings[key] = value
    return settings
