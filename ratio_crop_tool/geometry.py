"""
Viewport geometry: pure functions mapping between source and display space.

The source image is shown with a uniform "contain" fit: scaled so the
constraining axis fills the viewport, centred on the other axis.  Both the
interaction controller and crop finalization go through these functions so
the two never disagree about where the image sits on screen.
"""

from ratio_crop_tool.config import INITIAL_CROP_FRACTION
from ratio_crop_tool.models import (
    AspectRatio, DisplayRect, FitTransform, ImageDimensions, SourceRect,
    ViewportDimensions,
)


# =============================================================================
# Fit transform
# =============================================================================
def compute_fit(image: ImageDimensions, viewport: ViewportDimensions) -> FitTransform:
    """Calculate scale and offset to fit the image in the viewport with letterboxing."""
    if image.aspect > viewport.aspect:
        # Relatively wider than the viewport: width constrains
        scale = viewport.width / image.width
    else:
        scale = viewport.height / image.height
    offset_x = (viewport.width - image.width * scale) / 2
    offset_y = (viewport.height - image.height * scale) / 2
    return FitTransform(scale, offset_x, offset_y)


def displayed_bounds(fit: FitTransform, image: ImageDimensions) -> DisplayRect:
    """Rectangle occupied by the scaled image inside the viewport."""
    return DisplayRect(fit.offset_x, fit.offset_y, image.width * fit.scale, image.height * fit.scale)


# =============================================================================
# Coordinate mapping
# =============================================================================
def to_source(rect: DisplayRect, fit: FitTransform) -> SourceRect:
    """Inverse-map a display rectangle to source pixel coordinates."""
    return SourceRect(
        (rect.x - fit.offset_x) / fit.scale,
        (rect.y - fit.offset_y) / fit.scale,
        rect.width / fit.scale,
        rect.height / fit.scale,
    )


def to_display(rect: SourceRect, fit: FitTransform) -> DisplayRect:
    """Forward-map a source rectangle into display coordinates."""
    return DisplayRect(
        rect.x * fit.scale + fit.offset_x,
        rect.y * fit.scale + fit.offset_y,
        rect.width * fit.scale,
        rect.height * fit.scale,
    )


# =============================================================================
# Default crops
# =============================================================================
def max_crop(width: float, height: float, ratio: float) -> tuple[float, float]:
    """Largest ``ratio``-locked box that fits inside ``width`` × ``height``."""
    if width / height > ratio:
        # Area is wider than the ratio: full height, trimmed width
        return height * ratio, height
    return width, width / ratio


def initial_crop(fit: FitTransform, aspect: AspectRatio, image: ImageDimensions) -> DisplayRect:
    """
    Centred default crop for a new session.

    Covers ``INITIAL_CROP_FRACTION`` of the largest aspect-locked box that
    fits the displayed image, so it starts inside the image on both axes.
    Sizing off the displayed width alone would overflow vertically for wide
    ratios on tall images, so the constraining dimension is used instead.
    """
    bounds = displayed_bounds(fit, image)
    box_w, box_h = max_crop(bounds.width, bounds.height, aspect.ratio)
    box_w *= INITIAL_CROP_FRACTION
    box_h *= INITIAL_CROP_FRACTION
    return DisplayRect(
        bounds.x + (bounds.width - box_w) / 2,
        bounds.y + (bounds.height - box_h) / 2,
        box_w,
        box_h,
    )


def centered_source_crop(image: ImageDimensions, aspect: AspectRatio) -> SourceRect:
    """Maximum aspect-locked crop centred in source pixels (no interaction)."""
    crop_w, crop_h = max_crop(image.width, image.height, aspect.ratio)
    return SourceRect((image.width - crop_w) / 2, (image.height - crop_h) / 2, crop_w, crop_h)
