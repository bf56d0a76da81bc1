# phasetrack/utils/config.py
import copy
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional
from .paths import DB_PATH, config_dir

log = logging.getLogger(__name__)

SETTINGS_NAME = "settings.json"

_DEFAULTS: Dict[str, Any] = {
    "database": {
        "path": str(DB_PATH),
    },
    "logging": {
        "level": "INFO",
    },
    "seed": {
        "projects": ["Herndon", "Ashburn"],
    },
}


def settings_file() -> Path:
    return config_dir() / SETTINGS_NAME


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = _merge(out[key], value)
        else:
            out[key] = value
    return out


def load_settings(path: Optional[Path] = None) -> Dict[str, Any]:
    """Defaults <- settings.json <- environment (PHASETRACK_DB, PHASETRACK_LOG_LEVEL)."""
    path = path or settings_file()
    data = copy.deepcopy(_DEFAULTS)
    if path.exists():
        try:
            data = _merge(data, json.loads(path.read_text(encoding="utf-8")))
        except (OSError, ValueError) as exc:
            log.warning("Ignoring unreadable settings file %s: %s", path, exc)

    if os.environ.get("PHASETRACK_DB"):
        data["database"]["path"] = os.environ["PHASETRACK_DB"]
    if os.environ.get("PHASETRACK_LOG_LEVEL"):
        data["logging"]["level"] = os.environ["PHASETRACK_LOG_LEVEL"].upper()
    return data


def save_settings(data: Dict[str, Any], path: Optional[Path] = None) -> None:
    path = path or settings_file()
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


def db_path_from(settings: Dict[str, Any]) -> Path:
    return Path(settings["database"]["path"]).expanduser()
