"""
Exception taxonomy for the crop engine.

Only the decode and encode boundaries fail at runtime.  ``ParseError`` is
recovered inside the ratio parser, and ``NotReadyError`` signals a caller
that confirmed a session before its geometry existed.
"""


class CropError(Exception):
    """Base class for all crop-engine failures."""


class ParseError(CropError, ValueError):
    """An aspect ratio token could not be parsed."""


class DecodeError(CropError):
    """Image bytes are corrupt or in an unsupported format."""


class NotReadyError(CropError, RuntimeError):
    """Confirm was requested before the image geometry and crop existed."""


class EncodeError(CropError):
    """The cropped raster could not be produced or encoded."""
