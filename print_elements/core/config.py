"""
Config utilities for print-elements.

Responsibilities:
- Resolve the config path with environment and XDG support
- Provide JSON load/save helpers for the settings file
- Merge defaults, the settings file and PRINTELEMENTS_* environment overrides
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

ENV_PREFIX = "PRINTELEMENTS_"

DEFAULT_SETTINGS: Dict[str, Any] = {
    "default_encoding": "utf-8",
    # 0 disables the per-element preparation deadline
    "prepare_timeout_seconds": 0.0,
    "max_source_bytes": 32 * 1024 * 1024,
    "rtf_render_width": 576,
    "rtf_font_size": 24,
    "font_path": None,
    "print_left_margin": 16,
    "print_right_margin": 16,
    "print_top_margin": 12,
    "print_bottom_margin": 16,
}


def default_config_path() -> str:
    """
    Resolve the default config path using:
    1) $XDG_CONFIG_HOME/printelements/config.json
    2) ~/.config/printelements/config.json
    """
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return str(Path(xdg) / "printelements" / "config.json")
    return str(Path.home() / ".config" / "printelements" / "config.json")


def get_config_path() -> str:
    """
    Return the config path honoring PRINTELEMENTS_CONFIG_PATH override.
    """
    return os.environ.get(ENV_PREFIX + "CONFIG_PATH", default_config_path())


def load_config(path: Optional[str] = None) -> Optional[dict[str, Any]]:
    """
    Load the JSON config if it exists; return None if missing.

    Raises:
        json.JSONDecodeError if the file exists but contains invalid JSON.
        OSError for I/O errors other than missing file.
    """
    cfg_path = Path(path or get_config_path())
    if not cfg_path.exists():
        return None
    with cfg_path.open("r", encoding="utf-8") as f:
        return json.load(f)


def save_config(data: dict[str, Any], path: Optional[str] = None) -> None:
    """
    Save the JSON config, creating parent directories as needed.

    Writes atomically by using a temporary file and os.replace().
    Raises OSError on I/O failures.
    """
    cfg_path = Path(path or get_config_path())
    cfg_path.parent.mkdir(parents=True, exist_ok=True)

    tmp_path = cfg_path.with_suffix(cfg_path.suffix + ".tmp")
    with tmp_path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)
        f.flush()
        os.fsync(f.fileno())
    os.replace(tmp_path, cfg_path)


def _coerce(value: str, default: Any) -> Any:
    # Environment values are strings; follow the type of the default when there is one.
    if isinstance(default, bool):
        return value.strip().lower() in ("1", "true", "yes")
    if isinstance(default, int):
        return int(value)
    if isinstance(default, float):
        return float(value)
    return value


def _env_settings() -> Dict[str, Any]:
    found: Dict[str, Any] = {}
    for key, default in DEFAULT_SETTINGS.items():
        raw = os.environ.get(ENV_PREFIX + key.upper())
        if raw is None or raw == "":
            continue
        try:
            found[key] = _coerce(raw, default)
        except ValueError:
            logger.warning("Ignoring invalid %s%s=%r", ENV_PREFIX, key.upper(), raw)
    return found


def get_settings(overrides: Optional[Mapping[str, Any]] = None, path: Optional[str] = None) -> Dict[str, Any]:
    """
    Return effective settings.

    Precedence (lowest to highest): DEFAULT_SETTINGS, the JSON config file,
    PRINTELEMENTS_<KEY> environment variables, then `overrides`.
    """
    settings = dict(DEFAULT_SETTINGS)
    file_cfg = load_config(path)
    if file_cfg:
        settings.update(file_cfg)
    settings.update(_env_settings())
    if overrides:
        settings.update(overrides)
    return settings


__all__ = [
    "DEFAULT_SETTINGS",
    "ENV_PREFIX",
    "default_config_path",
    "get_config_path",
    "get_settings",
    "load_config",
    "save_config",
]
