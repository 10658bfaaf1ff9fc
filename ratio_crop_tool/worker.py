"""
Raster pipeline for crop finalization (Qt-free).

Everything here is synchronous and CPU-bound; ``processor.RasterProcessor``
runs these functions on a worker thread.  This module must **never** import
PyQt6 so it stays usable from plain worker threads and headless callers.
"""

import io
import logging

from PIL import Image

from ratio_crop_tool.config import (
    ASPECT_TOLERANCE, DEFAULT_MAX_DIMENSION, FLATTEN_BACKGROUND, JPEG_QUALITY,
    OUTPUT_FORMAT, RESAMPLE_DEFAULT,
)
from ratio_crop_tool.errors import DecodeError, EncodeError
from ratio_crop_tool.geometry import centered_source_crop
from ratio_crop_tool.image_io import open_image_bytes
from ratio_crop_tool.models import AspectRatio, ImageDimensions, ProcessedImage, SourceRect

logger = logging.getLogger(__name__)

RESAMPLE_FILTERS = {
    "nearest": Image.Resampling.NEAREST,
    "bilinear": Image.Resampling.BILINEAR,
    "lanczos": Image.Resampling.LANCZOS,
}


# =============================================================================
# Decoding
# =============================================================================
def load_image(data: bytes) -> Image.Image:
    """Fully decode an image payload, translating library failures to DecodeError."""
    if not data:
        raise DecodeError("Failed to load image: empty payload")
    try:
        img = open_image_bytes(data)
    except Exception as e:
        raise DecodeError(f"Failed to load image: {e}") from e
    if img.width <= 0 or img.height <= 0:
        raise DecodeError(f"Failed to load image: invalid size {img.width}x{img.height}")
    return img


def decode_dimensions(data: bytes) -> ImageDimensions:
    """Decode an image payload and return its intrinsic size."""
    img = load_image(data)
    return ImageDimensions(img.width, img.height)


# =============================================================================
# Crop math
# =============================================================================
def resolve_crop(image: ImageDimensions, aspect: AspectRatio, crop: SourceRect | None) -> SourceRect:
    """
    Turn a caller-supplied source crop into one that is safe to rasterize.

    A missing or empty crop falls back to the centred maximum crop.  Ratio
    drift beyond ``ASPECT_TOLERANCE`` is corrected by recomputing height from
    width.  Finally the crop is clamped to the image, shrinking both sides
    together so the ratio survives.
    """
    ratio = aspect.ratio

    if crop is None:
        return centered_source_crop(image, aspect)
    if not crop.has_area():
        logger.warning("Crop %s has no area — using centred crop", crop)
        return centered_source_crop(image, aspect)

    x, y, w, h = crop.x, crop.y, crop.width, crop.height

    if abs(w / h - ratio) > ASPECT_TOLERANCE:
        logger.debug("Crop ratio %.4f drifted from %.4f — correcting height", w / h, ratio)
        h = w / ratio

    x = max(0.0, min(x, image.width - 1))
    y = max(0.0, min(y, image.height - 1))
    if x + w > image.width or y + h > image.height:
        w = min(w, image.width - x, (image.height - y) * ratio)
        h = w / ratio
        logger.debug("Crop clamped to image bounds: %.1fx%.1f at (%.1f, %.1f)", w, h, x, y)

    return SourceRect(x, y, w, h)


def target_size(crop: SourceRect, max_dimension: int = DEFAULT_MAX_DIMENSION) -> tuple[int, int]:
    """Output size for a crop, uniformly downscaled so no side exceeds ``max_dimension``."""
    target_w = crop.width
    target_h = crop.height
    if target_w > max_dimension or target_h > max_dimension:
        scale = min(max_dimension / target_w, max_dimension / target_h)
        target_w *= scale
        target_h *= scale
    return max(1, round(target_w)), max(1, round(target_h))


# =============================================================================
# Rasterization
# =============================================================================
def flatten(img: Image.Image) -> Image.Image:
    """Convert to RGB, compositing any transparency over a white background."""
    has_alpha = img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info)
    if not has_alpha:
        return img.convert("RGB")
    rgba = img.convert("RGBA")
    background = Image.new("RGB", rgba.size, FLATTEN_BACKGROUND)
    background.paste(rgba, mask=rgba.getchannel("A"))
    return background


def render_crop(
    data: bytes,
    aspect: AspectRatio,
    crop: SourceRect | None = None,
    max_dimension: int = DEFAULT_MAX_DIMENSION,
    quality: int = JPEG_QUALITY,
    resample: str = RESAMPLE_DEFAULT,
) -> ProcessedImage:
    """Decode, crop, downscale and encode an image payload."""
    img = load_image(data)
    dims = ImageDimensions(img.width, img.height)
    final = resolve_crop(dims, aspect, crop)
    target_w, target_h = target_size(final, max_dimension)

    try:
        source = flatten(img)
        box = (final.x, final.y, final.right, final.bottom)
        output = source.resize((target_w, target_h), RESAMPLE_FILTERS[resample], box=box)
        buf = io.BytesIO()
        output.save(buf, OUTPUT_FORMAT, quality=quality, optimize=True)
    except (OSError, ValueError, KeyError) as e:
        raise EncodeError(f"Failed to create image: {e}") from e

    encoded = buf.getvalue()
    if not encoded:
        raise EncodeError("Failed to create image: encoder produced no data")

    logger.debug(
        "Rendered %dx%d crop at (%.1f, %.1f) to %dx%d (%d bytes)",
        round(final.width), round(final.height), final.x, final.y, target_w, target_h, len(encoded),
    )
    return ProcessedImage(encoded, target_w, target_h, OUTPUT_FORMAT)
