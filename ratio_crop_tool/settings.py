"""
Settings persistence: load, save, and validate export settings.

Runtime settings are stored in a JSON file in the user's config directory
(provided by ``config.config_dir()``).  On first launch (or if the file
is missing/corrupt), the file is created from DEFAULT_SETTINGS.  This
module is Qt-free and safe for worker import.

The on-disk format uses a versioned envelope::

    {"version": 1, "settings": { ... }}
"""

import json
import logging
from copy import deepcopy
from pathlib import Path

from ratio_crop_tool.config import (
    DEFAULT_SETTINGS, JPEG_QUALITY_MAX, JPEG_QUALITY_MIN, RESAMPLE_OPTIONS, config_dir,
)
from ratio_crop_tool.errors import ParseError
from ratio_crop_tool.ratios import parse_aspect_ratio_strict

logger = logging.getLogger(__name__)

_SETTINGS_FILENAME = "settings.json"
_FORMAT_VERSION = 1

_REQUIRED_KEYS = set(DEFAULT_SETTINGS)


def _settings_path() -> Path:
    """Return the full path to settings.json."""
    return config_dir() / _SETTINGS_FILENAME


# =============================================================================
# Validation
# =============================================================================
def validate_settings(data: object) -> list[str]:
    """
    Validate a settings dict.

    Returns a list of error strings (empty means valid).
    """
    errors: list[str] = []

    if not isinstance(data, dict):
        errors.append("Settings data must be a dict")
        return errors

    missing = _REQUIRED_KEYS - data.keys()
    if missing:
        errors.append(f"missing keys: {', '.join(sorted(missing))}")
        return errors

    max_dim = data["max_dimension"]
    if not isinstance(max_dim, int) or isinstance(max_dim, bool) or max_dim <= 0:
        errors.append(f"max_dimension must be a positive integer, got {max_dim!r}")

    quality = data["jpeg_quality"]
    if not isinstance(quality, int) or isinstance(quality, bool) or not JPEG_QUALITY_MIN <= quality <= JPEG_QUALITY_MAX:
        errors.append(
            f"jpeg_quality must be an integer in {JPEG_QUALITY_MIN}-{JPEG_QUALITY_MAX}, got {quality!r}"
        )

    if data["resample"] not in RESAMPLE_OPTIONS:
        errors.append(f"resample must be one of {', '.join(RESAMPLE_OPTIONS)}, got {data['resample']!r}")

    ratios = data["aspect_ratios"]
    if not isinstance(ratios, list) or not ratios:
        errors.append("aspect_ratios must be a non-empty list")
        ratios = []
    seen: set[str] = set()
    for i, token in enumerate(ratios):
        try:
            parse_aspect_ratio_strict(token)
        except ParseError as exc:
            errors.append(f"aspect_ratios #{i + 1}: {exc}")
            continue
        if token in seen:
            errors.append(f"aspect_ratios #{i + 1}: duplicate ratio {token!r}")
        seen.add(token)

    default = data["default_aspect_ratio"]
    if ratios and default not in ratios:
        errors.append(f"default_aspect_ratio {default!r} is not in aspect_ratios")

    return errors


# =============================================================================
# Load / Save
# =============================================================================
def load_settings() -> dict:
    """
    Load settings from settings.json.

    If the file is missing, corrupt, or fails validation, writes the
    defaults and returns them.
    """
    path = _settings_path()

    if not path.exists():
        logger.info("settings.json not found — creating with defaults at %s", path)
        _write_defaults(path)
        return deepcopy(DEFAULT_SETTINGS)

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("Failed to read settings.json (%s) — restoring defaults", exc)
        _write_defaults(path)
        return deepcopy(DEFAULT_SETTINGS)

    if not isinstance(raw, dict) or raw.get("version") != _FORMAT_VERSION or "settings" not in raw:
        logger.warning("settings.json missing version envelope — restoring defaults")
        _write_defaults(path)
        return deepcopy(DEFAULT_SETTINGS)

    data = raw["settings"]
    errors = validate_settings(data)
    if errors:
        logger.warning(
            "settings.json validation failed:\n  %s\nRestoring defaults.",
            "\n  ".join(errors),
        )
        _write_defaults(path)
        return deepcopy(DEFAULT_SETTINGS)

    return data


def save_settings(settings: dict) -> None:
    """
    Validate and write settings to settings.json in versioned envelope.

    Raises ValueError if validation fails.
    Raises OSError if the file cannot be written.
    """
    errors = validate_settings(settings)
    if errors:
        raise ValueError("Invalid settings data:\n  " + "\n  ".join(errors))

    envelope = {"version": _FORMAT_VERSION, "settings": settings}
    path = _settings_path()
    path.write_text(json.dumps(envelope, indent=2, ensure_ascii=False), encoding="utf-8")
    logger.info("Saved settings to %s", path)


def _write_defaults(path: Path) -> None:
    """Write DEFAULT_SETTINGS to the given path in versioned envelope."""
    try:
        envelope = {"version": _FORMAT_VERSION, "settings": deepcopy(DEFAULT_SETTINGS)}
        path.write_text(json.dumps(envelope, indent=2, ensure_ascii=False), encoding="utf-8")
    except OSError as exc:
        logger.error("Could not write default settings to %s: %s", path, exc)
