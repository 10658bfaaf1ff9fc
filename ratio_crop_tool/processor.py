"""
Asynchronous front for the raster pipeline.

Decoding and encoding are CPU-bound, so ``RasterProcessor`` runs the
functions from ``worker`` on a thread via ``asyncio.to_thread``.  Failures
surface as ``DecodeError`` / ``EncodeError``; nothing is retried.
"""

import asyncio
import logging

from ratio_crop_tool.config import (
    DEFAULT_MAX_DIMENSION, JPEG_QUALITY, JPEG_QUALITY_MAX, JPEG_QUALITY_MIN, RESAMPLE_DEFAULT,
)
from ratio_crop_tool.models import ImageDimensions, ProcessedImage, SourceRect
from ratio_crop_tool.ratios import parse_aspect_ratio
from ratio_crop_tool.worker import RESAMPLE_FILTERS, decode_dimensions, render_crop

logger = logging.getLogger(__name__)


class RasterProcessor:
    """Decodes source payloads and produces the final encoded crop."""

    def __init__(
        self,
        max_dimension: int = DEFAULT_MAX_DIMENSION,
        quality: int = JPEG_QUALITY,
        resample: str = RESAMPLE_DEFAULT,
    ):
        if max_dimension <= 0:
            raise ValueError(f"max_dimension must be positive, got {max_dimension}")
        if not JPEG_QUALITY_MIN <= quality <= JPEG_QUALITY_MAX:
            raise ValueError(f"quality must be in {JPEG_QUALITY_MIN}-{JPEG_QUALITY_MAX}, got {quality}")
        if resample not in RESAMPLE_FILTERS:
            raise ValueError(f"unknown resample filter {resample!r}")
        self.max_dimension = max_dimension
        self.quality = quality
        self.resample = resample

    @classmethod
    def from_settings(cls, settings: dict) -> "RasterProcessor":
        return cls(
            max_dimension=settings["max_dimension"],
            quality=settings["jpeg_quality"],
            resample=settings["resample"],
        )

    async def decode(self, data: bytes) -> ImageDimensions:
        """Decode ``data`` and return its intrinsic dimensions."""
        dims = await asyncio.to_thread(decode_dimensions, data)
        logger.debug("Decoded %d bytes as %dx%d image", len(data), dims.width, dims.height)
        return dims

    async def process(
        self,
        data: bytes,
        aspect,
        crop: SourceRect | None = None,
        max_dimension: int | None = None,
    ) -> ProcessedImage:
        """
        Crop ``data`` to ``crop`` (source pixels) and encode the result.

        ``aspect`` is an AspectRatio or a ``"W:H"`` token.  Without a crop the
        centred maximum crop is used.  ``max_dimension`` overrides the
        processor default for this call and must be positive.
        """
        if max_dimension is None:
            max_dimension = self.max_dimension
        elif max_dimension <= 0:
            raise ValueError(f"max_dimension must be positive, got {max_dimension}")
        return await asyncio.to_thread(
            render_crop,
            data,
            parse_aspect_ratio(aspect),
            crop,
            max_dimension,
            self.quality,
            self.resample,
        )
