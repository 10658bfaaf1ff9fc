"""
Aspect ratio parsing.

Ratios arrive from the schema editor as ``"W:H"`` tokens.  A malformed
token must never break the interactive flow, so ``parse_aspect_ratio``
degrades to a square ratio and logs a warning instead of raising.  Callers
that need to reject bad input (settings validation) use the strict variant.
This module is Qt-free and safe for worker import.
"""

import logging
import math

from ratio_crop_tool.errors import ParseError
from ratio_crop_tool.models import SQUARE, AspectRatio

logger = logging.getLogger(__name__)

_SEPARATOR = ":"


# =============================================================================
# Parsing
# =============================================================================
def _parse_component(text: str, token: str) -> float:
    try:
        value = float(text.strip())
    except ValueError:
        raise ParseError(f"non-numeric component {text!r} in aspect ratio {token!r}") from None
    if not math.isfinite(value) or value <= 0:
        raise ParseError(f"aspect ratio component must be positive, got {text!r} in {token!r}")
    return int(value) if value.is_integer() else value


def _is_usable_ratio(w: float, h: float) -> bool:
    ratio = float(w) / float(h)
    inverse = float(h) / float(w)
    return 0 < ratio < math.inf and 0 < inverse < math.inf


def parse_aspect_ratio_strict(token: str) -> AspectRatio:
    """
    Parse ``"W:H"`` into an AspectRatio.

    Raises ParseError when either component is missing, non-numeric,
    non-finite, or not strictly positive, and when w/h or h/w over- or
    underflows a float.
    """
    if not isinstance(token, str):
        raise ParseError(f"aspect ratio must be a string, got {type(token).__name__}")
    parts = token.split(_SEPARATOR)
    if len(parts) != 2:
        raise ParseError(f"aspect ratio must have the form W:H, got {token!r}")
    w = _parse_component(parts[0], token)
    h = _parse_component(parts[1], token)
    if not _is_usable_ratio(w, h):
        raise ParseError(f"aspect ratio {token!r} is too extreme to crop with")
    return AspectRatio(w, h)


def parse_aspect_ratio(token) -> AspectRatio:
    """
    Parse ``"W:H"`` into an AspectRatio, falling back to 1:1.

    An AspectRatio instance is passed through unchanged.
    """
    if isinstance(token, AspectRatio):
        return token
    try:
        return parse_aspect_ratio_strict(token)
    except ParseError as exc:
        logger.warning("%s — using %s", exc, SQUARE)
        return SQUARE
