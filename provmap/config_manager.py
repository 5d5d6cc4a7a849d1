"""Configuration manager for provmap using TOML files."""

from __future__ import annotations

import dataclasses
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import toml

from . import config
from .config import DEFAULT_MARKERS, Markers

logger = logging.getLogger(__name__)

MARKER_FIELDS = {f.name for f in dataclasses.fields(Markers)}


def _config_file(path: Optional[Path]) -> Path:
    return path if path is not None else config.CONFIG_FILE


def load_full_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load the entire TOML config (all sections).

    Returns an empty dict when the file is absent or cannot be decoded.
    """
    config_file = _config_file(path)
    if not config_file.exists():
        return {}
    try:
        with open(config_file, "r", encoding="utf-8") as f:
            return toml.load(f)
    except (OSError, toml.TomlDecodeError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", config_file, exc)
        return {}


def _save_full_config(data: Dict[str, Any], path: Optional[Path] = None) -> bool:
    """Write entire config dict to TOML file, preserving all sections."""
    config_file = _config_file(path)
    try:
        config_file.parent.mkdir(parents=True, exist_ok=True)
        with open(config_file, "w", encoding="utf-8") as f:
            toml.dump(data, f)
        return True
    except OSError as exc:
        logger.warning("Could not write config %s: %s", config_file, exc)
        return False


def load_markers(path: Optional[Path] = None) -> Markers:
    """Merge the ``[markers]`` section over the default markers.

    Unknown keys and non-string or empty values are ignored.
    """
    section = load_full_config(path).get("markers", {})
    if not isinstance(section, dict):
        logger.warning("Ignoring [markers] config: expected a table")
        return DEFAULT_MARKERS

    overrides = {}
    for key, value in section.items():
        if key not in MARKER_FIELDS:
            logger.warning("Unknown marker '%s' in config", key)
            continue
        if not isinstance(value, str) or not value:
            logger.warning("Marker '%s' must be a non-empty string", key)
            continue
        overrides[key] = value
    return dataclasses.replace(DEFAULT_MARKERS, **overrides)


def save_marker_config(markers: Markers, path: Optional[Path] = None) -> bool:
    """Save markers to the ``[markers]`` section, keeping other sections.

    Only values that differ from the defaults are written.
    """
    data = load_full_config(path)
    data["markers"] = {
        key: value
        for key, value in dataclasses.asdict(markers).items()
        if value != getattr(DEFAULT_MARKERS, key)
    }
    return _save_full_config(data, path)


def clear_marker_config(path: Optional[Path] = None) -> bool:
    """Remove ``[markers]`` section from config, resetting to defaults."""
    data = load_full_config(path)
    data.pop("markers", None)
    return _save_full_config(data, path)
