"""
Pointer-driven crop interaction, independent of any rendering layer.

``CropInteractionController`` owns the display-space crop rectangle and an
explicit ``Idle | Dragging`` state.  The actual rectangle math lives in the
pure ``move_rect`` and ``resize_rect`` functions, so the widget only has to
forward pointer events and repaint.

The controller is not thread-safe; confine each instance to one UI context.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum

from ratio_crop_tool.config import HANDLE_SIZE, MIN_CROP_SIZE
from ratio_crop_tool.errors import NotReadyError
from ratio_crop_tool.geometry import compute_fit, displayed_bounds, initial_crop, to_display, to_source
from ratio_crop_tool.models import (
    SQUARE, AspectRatio, DisplayRect, FitTransform, ImageDimensions, SourceRect,
    ViewportDimensions,
)
from ratio_crop_tool.ratios import parse_aspect_ratio

logger = logging.getLogger(__name__)

Point = tuple[float, float]


# =============================================================================
# Interaction state
# =============================================================================
class DragMode(Enum):
    MOVE = "move"
    RESIZE = "resize"


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Dragging:
    mode: DragMode
    anchor: Point
    baseline: DisplayRect


IDLE = Idle()


# =============================================================================
# Pure transitions
# =============================================================================
def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(value, hi))


def move_rect(baseline: DisplayRect, dx: float, dy: float, bounds: DisplayRect) -> DisplayRect:
    """Translate ``baseline`` by (dx, dy), each axis clamped inside ``bounds``."""
    x = _clamp(baseline.x + dx, bounds.x, bounds.right - baseline.width)
    y = _clamp(baseline.y + dy, bounds.y, bounds.bottom - baseline.height)
    return replace(baseline, x=x, y=y)


def resize_rect(
    baseline: DisplayRect,
    dx: float,
    ratio: float,
    bounds: DisplayRect,
    min_width: float = MIN_CROP_SIZE,
) -> DisplayRect:
    """
    Resize from the bottom-right corner with the top-left corner fixed.

    Width follows the pointer (floored at ``min_width``) and height is always
    derived from width.  If the bottom edge would leave ``bounds`` the height
    becomes the limit and width is recomputed from it; the right edge is then
    clamped the same way.  Near an edge the box may stop short of the pointer,
    but it never breaks the ratio or the bounds.
    """
    width = max(baseline.width + dx, min_width)
    height = width / ratio

    if baseline.y + height > bounds.bottom:
        height = bounds.bottom - baseline.y
        width = height * ratio
    if baseline.x + width > bounds.right:
        width = bounds.right - baseline.x
        height = width / ratio

    return DisplayRect(baseline.x, baseline.y, width, height)


# =============================================================================
# Controller
# =============================================================================
class CropInteractionController:
    """State machine over pointer input owning the display-space crop."""

    def __init__(self, min_crop_size: float = MIN_CROP_SIZE, handle_size: float = HANDLE_SIZE):
        self._min_crop_size = min_crop_size
        self._handle_size = handle_size

        self._image: ImageDimensions | None = None
        self._viewport: ViewportDimensions | None = None
        self._fit: FitTransform | None = None
        self._bounds: DisplayRect | None = None
        self._aspect: AspectRatio = SQUARE
        self._crop: DisplayRect | None = None
        self._state: Idle | Dragging = IDLE

    # --- Session lifecycle ---

    def begin(self, image: ImageDimensions, viewport: ViewportDimensions, aspect) -> DisplayRect:
        """Compute the fit transform and a centred initial crop."""
        self._image = image
        self._viewport = viewport
        self._aspect = parse_aspect_ratio(aspect)
        self._update_fit()
        self._crop = initial_crop(self._fit, self._aspect, image)
        self._state = IDLE
        logger.debug(
            "Crop session started: image %dx%d, viewport %sx%s, ratio %s",
            image.width, image.height, viewport.width, viewport.height, self._aspect,
        )
        return self._crop

    def reset(self):
        """Discard all geometry and crop state."""
        self._image = None
        self._viewport = None
        self._fit = None
        self._bounds = None
        self._aspect = SQUARE
        self._crop = None
        self._state = IDLE

    def _update_fit(self):
        self._fit = compute_fit(self._image, self._viewport)
        self._bounds = displayed_bounds(self._fit, self._image)

    # --- Read-only accessors ---

    @property
    def state(self) -> Idle | Dragging:
        return self._state

    @property
    def crop(self) -> DisplayRect | None:
        return self._crop

    @property
    def fit(self) -> FitTransform | None:
        return self._fit

    @property
    def image_bounds(self) -> DisplayRect | None:
        return self._bounds

    @property
    def image(self) -> ImageDimensions | None:
        return self._image

    @property
    def viewport(self) -> ViewportDimensions | None:
        return self._viewport

    @property
    def aspect(self) -> AspectRatio:
        return self._aspect

    def is_ready(self) -> bool:
        return self._crop is not None and self._fit is not None

    def is_dragging(self) -> bool:
        return isinstance(self._state, Dragging)

    # --- Pointer input ---

    def hit_test(self, point: Point) -> DragMode | None:
        """Return the drag mode for a pointer position, or None outside the crop."""
        if self._crop is None:
            return None
        px, py = point
        hs = self._handle_size
        if abs(px - self._crop.right) <= hs and abs(py - self._crop.bottom) <= hs:
            return DragMode.RESIZE
        if self._crop.contains(px, py):
            return DragMode.MOVE
        return None

    def pointer_down(self, point: Point, mode: DragMode) -> bool:
        """Start a drag.  Ignored before ``begin`` or while already dragging."""
        if self._crop is None or self.is_dragging():
            return False
        self._state = Dragging(mode, (float(point[0]), float(point[1])), self._crop)
        return True

    def pointer_move(self, point: Point) -> bool:
        """Apply the active drag.  Returns True when the crop changed."""
        if not isinstance(self._state, Dragging):
            return False
        drag = self._state
        dx = point[0] - drag.anchor[0]
        dy = point[1] - drag.anchor[1]

        if drag.mode is DragMode.MOVE:
            new_crop = move_rect(drag.baseline, dx, dy, self._bounds)
        else:
            new_crop = resize_rect(drag.baseline, dx, self._aspect.ratio, self._bounds, self._min_crop_size)

        changed = new_crop != self._crop
        self._crop = new_crop
        return changed

    def pointer_up(self):
        self._state = IDLE

    # --- Keyboard and host events ---

    def nudge(self, dx: float, dy: float) -> bool:
        """Move the crop by a fixed amount, clamped like a drag."""
        if self._crop is None or self.is_dragging():
            return False
        new_crop = move_rect(self._crop, dx, dy, self._bounds)
        changed = new_crop != self._crop
        self._crop = new_crop
        return changed

    def recenter(self) -> DisplayRect | None:
        """Restore the default centred crop."""
        if self._fit is None:
            return None
        self._state = IDLE
        self._crop = initial_crop(self._fit, self._aspect, self._image)
        return self._crop

    def resize_viewport(self, viewport: ViewportDimensions):
        """Recompute the fit for a new viewport, keeping the selected source region."""
        if self._image is None:
            self._viewport = viewport
            return
        source = to_source(self._crop, self._fit) if self._crop is not None else None
        self._viewport = viewport
        self._update_fit()
        if source is not None:
            self._crop = to_display(source, self._fit)
        # Baseline of an in-flight drag is stale in the new display space
        self._state = IDLE

    # --- Finalization ---

    def confirm(self) -> DisplayRect:
        """Return the final display-space crop."""
        if not self.is_ready():
            raise NotReadyError("Image preview not ready.")
        return self._crop

    def confirm_source(self) -> SourceRect:
        """Return the final crop mapped back to source pixels."""
        return to_source(self.confirm(), self._fit)
