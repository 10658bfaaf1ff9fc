"""
Application constants and configuration.

DEFAULT_SETTINGS provides the built-in fallback settings. Runtime settings are
loaded from settings.json via the settings module. All other constants control
crop-editor behaviour and export encoding.

The ``config_dir()`` helper returns the platform-appropriate config
directory and is shared by all persistence modules.
"""

import os
import sys
from pathlib import Path

# =============================================================================
# APP IDENTITY & CONFIG DIRECTORY
# =============================================================================
APP_NAME = "ratio-crop-tool"


def config_dir() -> Path:
    """Return the platform-appropriate config directory, creating it if needed."""
    if sys.platform == "win32":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
    elif sys.platform == "darwin":
        base = Path.home() / "Library" / "Application Support"
    else:
        base = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    directory = base / APP_NAME
    directory.mkdir(parents=True, exist_ok=True)
    return directory

# =============================================================================
# DEFAULT SETTINGS — Built-in fallback when settings.json is missing or corrupt
# =============================================================================
# The schema editor only ever produces these three ratios, but any "W:H"
# token is accepted by the parser.
DEFAULT_ASPECT_RATIOS = ["1:1", "4:3", "16:9"]

# Longest allowed output side (pixels); larger crops are downscaled
DEFAULT_MAX_DIMENSION = 1600

# JPEG export quality (0.9 on a 0-1 scale)
JPEG_QUALITY = 90
JPEG_QUALITY_MIN = 1
JPEG_QUALITY_MAX = 100

# Resampling filters offered for the final raster
RESAMPLE_OPTIONS = ["nearest", "bilinear", "lanczos"]
RESAMPLE_DEFAULT = "bilinear"

DEFAULT_SETTINGS = {
    "max_dimension": DEFAULT_MAX_DIMENSION,
    "jpeg_quality": JPEG_QUALITY,
    "resample": RESAMPLE_DEFAULT,
    "aspect_ratios": list(DEFAULT_ASPECT_RATIOS),
    "default_aspect_ratio": DEFAULT_ASPECT_RATIOS[0],
}

# Output encoding
OUTPUT_FORMAT = "JPEG"
OUTPUT_EXTENSION = ".jpg"

# Background used when flattening transparent sources for JPEG
FLATTEN_BACKGROUND = (255, 255, 255)

# Supported input extensions (PSD is composited via psd-tools)
IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".bmp", ".gif", ".tiff", ".tif", ".webp", ".psd"}

# =============================================================================
# CROP EDITOR
# =============================================================================
# Minimum crop width during resize (display pixels)
MIN_CROP_SIZE = 20

# Initial crop covers this fraction of the largest crop that fits
INITIAL_CROP_FRACTION = 0.7

# Allowed relative drift between crop width/height and the target ratio
ASPECT_TOLERANCE = 0.01

# Nudge amounts (display pixels)
NUDGE_SMALL = 1
NUDGE_LARGE = 10

# Handle size for the resize corner (pixels in screen coordinates)
HANDLE_SIZE = 10
