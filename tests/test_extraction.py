"""
Tests for the foreground extractors.
"""

from __future__ import annotations

import io

import pytest
from PIL import Image

from stickeranim.exceptions import ExtractionError, InputError, StickerAnimError
from stickeranim.extraction import (
    ColorKeyExtractor,
    PassthroughExtractor,
    decode_image,
    estimate_background,
    has_transparency,
    parse_hex_color,
)


def _png(img: Image.Image) -> bytes:
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


class TestDecode:
    def test_empty(self):
        with pytest.raises(ExtractionError):
            decode_image(b"")

    def test_garbage(self):
        with pytest.raises(ExtractionError, match="Cannot decode"):
            decode_image(b"definitely not an image")

    def test_converts_to_rgba(self, green_screen_png):
        img = decode_image(green_screen_png)
        assert img.mode == "RGBA"
        assert not has_transparency(img)

    def test_errors_share_base(self):
        assert issubclass(ExtractionError, StickerAnimError)


class TestHelpers:
    def test_parse_hex(self):
        assert parse_hex_color("#00FF7f") == (0, 255, 127)
        assert parse_hex_color("102030") == (16, 32, 48)

    @pytest.mark.parametrize("value", ["#fff", "#zzzzzz", ""])
    def test_parse_hex_invalid(self, value):
        with pytest.raises(InputError):
            parse_hex_color(value)

    def test_estimate_background(self, green_screen_png):
        assert estimate_background(decode_image(green_screen_png)) == (0, 255, 0)


class TestExtractors:
    def test_passthrough_keeps_pixels(self, green_screen_png):
        bm = PassthroughExtractor().extract(green_screen_png)
        assert bm.size == (80, 80)
        assert bm.alpha().min() == 255

    def test_color_key_removes_background(self, green_screen_png):
        bm = ColorKeyExtractor().extract(green_screen_png)
        img = bm.to_image()
        assert img.getpixel((0, 0))[3] == 0
        assert img.getpixel((79, 40))[3] == 0
        assert img.getpixel((40, 40)) == (255, 128, 0, 255)

    def test_explicit_key(self, green_screen_png):
        # Keying on the subject colour clears the subject instead.
        bm = ColorKeyExtractor(key="#ff8000").extract(green_screen_png)
        img = bm.to_image()
        assert img.getpixel((40, 40))[3] == 0
        assert img.getpixel((0, 0))[3] == 255

    def test_transparent_input_untouched(self):
        img = Image.new("RGBA", (20, 20), (0, 255, 0, 0))
        img.paste((0, 255, 0, 255), (5, 5, 15, 15))
        bm = ColorKeyExtractor().extract(_png(img))
        assert bm.to_image().getpixel((10, 10)) == (0, 255, 0, 255)

    def test_bad_key(self):
        with pytest.raises(InputError):
            ColorKeyExtractor(key="green")
