"""
Foreground extractors.

An extractor turns uploaded image bytes into an RGBA bitmap whose alpha
channel separates the subject from the background.  The exporter treats it
as an opaque collaborator: it gets a Bitmap back or an ExtractionError.

Two extractors ship with the package:

* ``PassthroughExtractor`` -- background removal disabled; decode only.
* ``ColorKeyExtractor`` -- clears pixels close to a background colour,
  either given explicitly or estimated from the image border.
"""

from __future__ import annotations

import abc
import io
import logging

from PIL import Image, ImageChops, UnidentifiedImageError

from stickeranim.exceptions import ExtractionError, InputError
from stickeranim.types import Bitmap

logger = logging.getLogger(__name__)


class ForegroundExtractor(abc.ABC):
    """Abstract interface that every extractor must implement."""

    name: str = "abstract"

    @abc.abstractmethod
    def extract(self, image_bytes: bytes) -> Bitmap:
        """Return the foreground of *image_bytes* as an RGBA bitmap."""


def decode_image(image_bytes: bytes) -> Image.Image:
    """Decode *image_bytes* into an RGBA image, or raise ExtractionError."""
    if not image_bytes:
        raise ExtractionError("No image data")
    try:
        img = Image.open(io.BytesIO(image_bytes))
        img.load()
    except (UnidentifiedImageError, OSError) as exc:
        raise ExtractionError(f"Cannot decode image: {exc}") from exc
    return img.convert("RGBA")


def has_transparency(img: Image.Image) -> bool:
    """True if any pixel is meaningfully translucent."""
    return img.getchannel("A").getextrema()[0] < 250


def estimate_background(img: Image.Image, samples_per_edge: int = 10) -> tuple[int, int, int]:
    """Per-channel median of pixels sampled along the four image edges."""
    w, h = img.size
    pixels = []
    step_x = max(1, w // samples_per_edge)
    step_y = max(1, h // samples_per_edge)
    for x in range(0, w, step_x):
        pixels.append(img.getpixel((x, 0))[:3])
        pixels.append(img.getpixel((x, h - 1))[:3])
    for y in range(step_y, h - step_y, step_y):
        pixels.append(img.getpixel((0, y))[:3])
        pixels.append(img.getpixel((w - 1, y))[:3])

    mid = len(pixels) // 2
    return (
        sorted(p[0] for p in pixels)[mid],
        sorted(p[1] for p in pixels)[mid],
        sorted(p[2] for p in pixels)[mid],
    )


def parse_hex_color(value: str) -> tuple[int, int, int]:
    raw = value.lstrip("#")
    try:
        if len(raw) != 6:
            raise ValueError(raw)
        return (int(raw[0:2], 16), int(raw[2:4], 16), int(raw[4:6], 16))
    except ValueError:
        raise InputError(f"Expected a #RRGGBB colour, got {value!r}") from None


class PassthroughExtractor(ForegroundExtractor):
    """Decode the image and keep whatever alpha it already has."""

    name = "passthrough"

    def extract(self, image_bytes: bytes) -> Bitmap:
        return Bitmap.from_image(decode_image(image_bytes))


class ColorKeyExtractor(ForegroundExtractor):
    """Make background-coloured pixels transparent.

    Pixels whose largest per-channel distance from the key colour is at
    most *tolerance* get alpha 0; everything else keeps its alpha.  Images
    that already carry transparency are returned unchanged.
    """

    name = "color-key"

    def __init__(self, tolerance: int = 30, key: str | None = None) -> None:
        self.tolerance = tolerance
        self.key = parse_hex_color(key) if key else None

    def extract(self, image_bytes: bytes) -> Bitmap:
        img = decode_image(image_bytes)
        if has_transparency(img):
            logger.debug("Image already has transparency, skipping colour key")
            return Bitmap.from_image(img)

        key = self.key or estimate_background(img)
        r, g, b, a = img.split()
        diff = ImageChops.lighter(
            ImageChops.lighter(
                r.point([abs(i - key[0]) for i in range(256)]),
                g.point([abs(i - key[1]) for i in range(256)]),
            ),
            b.point([abs(i - key[2]) for i in range(256)]),
        )
        keep = diff.point([0 if i <= self.tolerance else 255 for i in range(256)])
        img.putalpha(ImageChops.multiply(a, keep))
        logger.debug("Colour key #%02x%02x%02x (tolerance %d) applied",
                     key[0], key[1], key[2], self.tolerance)
        return Bitmap.from_image(img)
