"""
Data models shared by the geometry, interaction and raster layers.

Display-space rectangles live in viewport pixels, source-space rectangles in
decoded image pixels.  Both are immutable; the interaction controller
replaces its rectangle on every mutation instead of editing it in place.
"""

import math
from dataclasses import dataclass


# =============================================================================
# Aspect ratio
# =============================================================================
@dataclass(frozen=True)
class AspectRatio:
    """A positive width:height pair, stored and exposed as ``"w:h"``."""
    w: float = 1
    h: float = 1

    def __post_init__(self):
        if self.w <= 0 or self.h <= 0:
            raise ValueError(f"aspect ratio components must be positive, got {self.w}:{self.h}")
        if not 0 < self.w / self.h < math.inf or not 0 < self.h / self.w < math.inf:
            raise ValueError(f"aspect ratio {self.w}:{self.h} is degenerate")

    @property
    def ratio(self) -> float:
        return self.w / self.h

    def __str__(self) -> str:
        return f"{_fmt(self.w)}:{_fmt(self.h)}"


def _fmt(value: float) -> str:
    """Render whole numbers without a trailing ``.0``."""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


SQUARE = AspectRatio(1, 1)


# =============================================================================
# Dimensions and transforms
# =============================================================================
@dataclass(frozen=True)
class ImageDimensions:
    """Intrinsic decoded size of the source image."""
    width: int
    height: int

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"image dimensions must be positive, got {self.width}x{self.height}")

    @property
    def aspect(self) -> float:
        return self.width / self.height


@dataclass(frozen=True)
class ViewportDimensions:
    """Size of the bounded display area, in display pixels."""
    width: float
    height: float

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"viewport dimensions must be positive, got {self.width}x{self.height}")

    @property
    def aspect(self) -> float:
        return self.width / self.height


@dataclass(frozen=True)
class FitTransform:
    """Uniform "contain" mapping: ``display = source * scale + offset``."""
    scale: float
    offset_x: float
    offset_y: float


# =============================================================================
# Rectangles
# =============================================================================
@dataclass(frozen=True)
class DisplayRect:
    """Crop rectangle in viewport (display) coordinates."""
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def aspect(self) -> float:
        return self.width / self.height

    def contains(self, px: float, py: float) -> bool:
        return self.x <= px <= self.right and self.y <= py <= self.bottom


@dataclass(frozen=True)
class SourceRect:
    """Crop rectangle in source image pixel coordinates."""
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def has_area(self) -> bool:
        return self.width > 0 and self.height > 0


# =============================================================================
# Raster output
# =============================================================================
_MIME_TYPES = {"JPEG": "image/jpeg", "PNG": "image/png", "WEBP": "image/webp"}


@dataclass(frozen=True)
class ProcessedImage:
    """Encoded crop result; ownership of ``data`` passes to the caller."""
    data: bytes
    width: int
    height: int
    format: str = "JPEG"

    @property
    def mime_type(self) -> str:
        return _MIME_TYPES.get(self.format.upper(), "application/octet-stream")
