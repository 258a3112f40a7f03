# reflexcrm/utils/config.py  (Rev 0.2.0)
from __future__ import annotations
import copy
import json
import os
from pathlib import Path
from typing import Any, Dict

from .logging_setup import get_logger
from .paths import config_dir, default_db_path

SETTINGS_NAME = "settings.json"

_DEFAULTS: Dict[str, Any] = {
    "session": {
        "ip_lookup_url": "https://api.ipify.org?format=json",
        "ip_lookup_timeout": 3.0,
        "fallback_id": "local-user",
    },
    "user": {
        "display_name": "Gianfranco",
    },
    "storage": {
        "db_path": None,
    },
}

log = get_logger(__name__)


def settings_file() -> Path:
    return config_dir() / SETTINGS_NAME


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = {**out[key], **value}
        else:
            out[key] = value
    return out


def load_settings(path: Path | None = None) -> Dict[str, Any]:
    path = path or settings_file()
    settings = copy.deepcopy(_DEFAULTS)
    if path.exists():
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            log.warning("Ignoring unreadable settings file %s: %s", path, exc)
        else:
            if isinstance(data, dict):
                settings = _merge(settings, data)
            else:
                log.warning("Ignoring settings file %s: root is not an object", path)
    if os.environ.get("REFLEX_DB"):
        settings["storage"]["db_path"] = os.environ["REFLEX_DB"]
    return settings


def db_path_from(settings: Dict[str, Any]) -> Path:
    configured = settings.get("storage", {}).get("db_path")
    return Path(configured).expanduser() if configured else default_db_path()
