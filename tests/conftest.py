"""
Shared fixtures for the stickeranim test suite.
"""

from __future__ import annotations

import io
import tempfile
from pathlib import Path

import pytest
from PIL import Image

from stickeranim.types import Bitmap


@pytest.fixture
def tmp_dir():
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory(prefix="stickeranim_test_") as d:
        yield Path(d)


@pytest.fixture
def red_bitmap() -> Bitmap:
    """A 300x300 fully opaque red bitmap."""
    return Bitmap.solid(300, 300, (255, 0, 0, 255))


@pytest.fixture
def sprite_bitmap() -> Bitmap:
    """A 60x40 bitmap: opaque blue rectangle inset in a transparent border."""
    img = Image.new("RGBA", (60, 40), (0, 0, 0, 0))
    img.paste((0, 0, 255, 255), (10, 10, 50, 30))
    return Bitmap.from_image(img)


@pytest.fixture
def green_screen_png() -> bytes:
    """PNG bytes of an orange disc-ish square on a flat green background."""
    img = Image.new("RGB", (80, 80), (0, 255, 0))
    img.paste((255, 128, 0), (20, 20, 60, 60))
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def sample_apng() -> bytes:
    """A 3-frame 16x16 APNG written by Pillow with infinite looping."""
    frames = [
        Image.new("RGBA", (16, 16), color)
        for color in [(255, 0, 0, 255), (0, 255, 0, 255), (0, 0, 255, 255)]
    ]
    buf = io.BytesIO()
    frames[0].save(
        buf,
        format="PNG",
        save_all=True,
        append_images=frames[1:],
        duration=[125, 125, 125],
        loop=0,
    )
    return buf.getvalue()


@pytest.fixture
def static_png() -> bytes:
    """A plain single-image PNG with no animation-control chunk."""
    buf = io.BytesIO()
    Image.new("RGBA", (8, 8), (10, 20, 30, 255)).save(buf, format="PNG")
    return buf.getvalue()
