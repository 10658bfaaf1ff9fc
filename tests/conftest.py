import io

import pytest
from PIL import Image


def encode_image(width: int, height: int, mode: str = "RGB", color=None, fmt: str = "PNG") -> bytes:
    if color is None:
        color = (0, 0, 0, 0) if mode == "RGBA" else (200, 120, 40)
    buf = io.BytesIO()
    Image.new(mode, (width, height), color).save(buf, fmt)
    return buf.getvalue()


@pytest.fixture
def make_image():
    return encode_image
