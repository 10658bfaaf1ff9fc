"""
Qt-free image I/O utilities.

Provides helpers to open image payloads (including PSD) and generate
unique output paths.  Safe to import in worker threads.
"""

import io
from pathlib import Path

from PIL import Image
from psd_tools import PSDImage

# Allow very large images (Pillow's default limit is ~178MP)
Image.MAX_IMAGE_PIXELS = None

# Photoshop documents start with this signature
_PSD_SIGNATURE = b"8BPS"


def is_psd(data: bytes) -> bool:
    return data[:4] == _PSD_SIGNATURE


def open_image_bytes(data: bytes) -> Image.Image:
    """Open an image payload, using psd-tools for PSD and Pillow for the rest."""
    if is_psd(data):
        psd = PSDImage.open(io.BytesIO(data))
        return psd.composite()
    img = Image.open(io.BytesIO(data))
    img.load()
    return img


def read_image_bytes(path: Path) -> bytes:
    """Read a source image file into memory."""
    return Path(path).read_bytes()


def unique_path(out_path: Path) -> Path:
    """Return a unique path by appending -01, -02, etc. if file already exists."""
    if not out_path.exists():
        return out_path
    stem = out_path.stem
    suffix = out_path.suffix
    parent = out_path.parent
    counter = 1
    while True:
        candidate = parent / f"{stem}-{counter:02d}{suffix}"
        if not candidate.exists():
            return candidate
        counter += 1
