"""Optional YAML file holding fallback values for the CLI settings.

Only the ``defaults`` mapping is read; see config/settings.example.yaml.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict

import yaml

DEFAULT_SETTINGS_PATH = "~/.config/gpt-files/settings.yaml"


class SettingsLoadError(RuntimeError):
    """Raised when the settings file is not a YAML mapping."""


def settings_path() -> Path:
    return Path(os.getenv("GPT_FILES_SETTINGS_PATH", DEFAULT_SETTINGS_PATH)).expanduser()


@lru_cache(maxsize=4)
def _read_settings_file(path: Path) -> Dict[str, Any]:
    if not path.is_file():
        return {}
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise SettingsLoadError(f"Settings file {path} must contain a YAML object at the root.")
    return data


def settings_defaults() -> Dict[str, Any]:
    """The ``defaults`` mapping of the settings file, or ``{}``."""
    defaults = _read_settings_file(settings_path()).get("defaults")
    return defaults if isinstance(defaults, dict) else {}


def clear_app_settings_cache() -> None:
    _read_settings_file.cache_clear()
