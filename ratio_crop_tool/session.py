"""
One begin-to-confirm-or-cancel cropping episode (Qt-free).

``CropSession`` ties the raster processor to an interaction controller and
enforces the session lifecycle:

* pointer events before ``begin`` resolves, or after the session closed,
  are ignored;
* a decode failure is terminal and closes the session;
* an encode failure leaves the session open so ``confirm`` can be retried;
* ``cancel`` drops every in-memory buffer, and any decode/encode result that
  resolves afterwards is discarded instead of leaking into a new session.
"""

import logging

from ratio_crop_tool.assets import ImageAsset, build_asset
from ratio_crop_tool.errors import CropError, DecodeError, NotReadyError
from ratio_crop_tool.interaction import CropInteractionController, DragMode, Point
from ratio_crop_tool.models import DisplayRect, ImageDimensions, ProcessedImage, ViewportDimensions
from ratio_crop_tool.processor import RasterProcessor
from ratio_crop_tool.ratios import parse_aspect_ratio

logger = logging.getLogger(__name__)


class CropSession:
    """Interactive crop session over a single source image."""

    def __init__(self, processor: RasterProcessor | None = None, filename: str = ""):
        self.processor = processor or RasterProcessor()
        self.filename = filename
        self.controller = CropInteractionController()
        self._data: bytes | None = None
        self._dimensions: ImageDimensions | None = None
        self._aspect = None
        self._generation = 0
        self._closed = False

    # --- Lifecycle ---

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def dimensions(self) -> ImageDimensions | None:
        return self._dimensions

    def is_ready(self) -> bool:
        return not self._closed and self.controller.is_ready()

    async def begin(self, data: bytes, viewport: ViewportDimensions, aspect) -> DisplayRect | None:
        """
        Decode ``data`` and start the interaction.

        Returns the initial crop, or None when the session was cancelled
        while decoding, including when the late decode failed.
        Raises DecodeError, after closing the session, when the payload
        cannot be read.
        """
        if self._closed:
            raise NotReadyError("Session is closed.")
        generation = self._generation
        aspect = parse_aspect_ratio(aspect)
        try:
            dims = await self.processor.decode(data)
        except DecodeError:
            if generation != self._generation:
                logger.debug("Discarding decode failure for cancelled session")
                return None
            self.cancel()
            raise
        if generation != self._generation or self._closed:
            logger.debug("Discarding decode result for cancelled session")
            return None

        self._data = data
        self._dimensions = dims
        self._aspect = aspect
        return self.controller.begin(dims, viewport, aspect)

    def cancel(self):
        """Close the session and discard all in-memory state."""
        self._generation += 1
        self._closed = True
        self._data = None
        self._dimensions = None
        self.controller.reset()

    # --- Pointer input ---

    def pointer_down(self, point: Point, mode: DragMode) -> bool:
        if self._closed:
            return False
        return self.controller.pointer_down(point, mode)

    def pointer_move(self, point: Point) -> bool:
        if self._closed:
            return False
        return self.controller.pointer_move(point)

    def pointer_up(self):
        if not self._closed:
            self.controller.pointer_up()

    def resize_viewport(self, viewport: ViewportDimensions):
        if not self._closed:
            self.controller.resize_viewport(viewport)

    def set_aspect(self, aspect) -> DisplayRect | None:
        """Restart the crop at a new ratio; the final raster uses it too."""
        if not self.is_ready():
            return None
        self._aspect = parse_aspect_ratio(aspect)
        return self.controller.begin(self._dimensions, self.controller.viewport, self._aspect)

    # --- Finalization ---

    async def confirm(self, max_dimension: int | None = None) -> ProcessedImage | None:
        """
        Rasterize the current selection.

        Raises NotReadyError before ``begin`` has produced a crop.  An
        EncodeError propagates and leaves the session open.  Returns None
        when the session was cancelled while processing, whether the work
        succeeded or failed.
        """
        if not self.is_ready() or self._data is None:
            raise NotReadyError("Image preview not ready.")
        generation = self._generation
        source = self.controller.confirm_source()
        try:
            processed = await self.processor.process(self._data, self._aspect, source, max_dimension)
        except CropError:
            if generation != self._generation:
                logger.debug("Discarding processing failure for cancelled session")
                return None
            raise
        if generation != self._generation or self._closed:
            logger.debug("Discarding processed image for cancelled session")
            return None
        self._closed = True
        self._data = None
        self._dimensions = None
        self.controller.reset()
        return processed

    def build_asset(self, processed: ProcessedImage) -> ImageAsset:
        return build_asset(processed, self.filename, self._aspect)
