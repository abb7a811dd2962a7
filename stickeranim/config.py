"""
Runtime configuration and font discovery.

Captions want a bold, rounded typeface.  This module locates one on the
system and exposes the resolved path for use by the compositor.  Lookup
order:

    1. an explicit path passed by the caller
    2. the STICKERANIM_FONT environment variable
    3. a list of well-known bold rounded / bold sans font files
    4. Pillow's bundled default font (always available)
"""

from __future__ import annotations

import functools
import logging
import os
from pathlib import Path

from PIL import ImageFont

logger = logging.getLogger(__name__)

FONT_ENV_VAR = "STICKERANIM_FONT"

# Reference canvas width the caption metrics are tuned for.
CAPTION_REFERENCE_WIDTH = 320
CAPTION_FONT_SIZE = 32
CAPTION_STROKE_WIDTH = 6
CAPTION_BASELINE_LIFT = 10
CAPTION_FILL = (0x1E, 0x29, 0x3B, 255)   # dark slate
CAPTION_STROKE = (255, 255, 255, 255)

FONT_CANDIDATES: tuple[str, ...] = (
    "/usr/share/fonts/truetype/mplus/MPLUSRounded1c-Bold.ttf",
    "/usr/share/fonts/opentype/noto/NotoSansCJK-Bold.ttc",
    "/usr/share/fonts/noto-cjk/NotoSansCJK-Bold.ttc",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
    "/usr/share/fonts/dejavu/DejaVuSans-Bold.ttf",
    "/Library/Fonts/Arial Rounded Bold.ttf",
    "/System/Library/Fonts/Supplemental/Arial Rounded Bold.ttf",
    "/System/Library/Fonts/Supplemental/Arial Bold.ttf",
    "C:/Windows/Fonts/arialbd.ttf",
)


def resolve_caption_font(explicit: str | Path | None = None) -> Path | None:
    """Find a font file for captions, or None to use Pillow's default."""
    if explicit:
        path = Path(explicit)
        if path.is_file():
            return path
        logger.warning("Caption font %s not found, falling back.", path)
    env = os.environ.get(FONT_ENV_VAR, "")
    if env:
        path = Path(env)
        if path.is_file():
            return path
        logger.warning("%s=%s does not exist, falling back.", FONT_ENV_VAR, env)
    for candidate in FONT_CANDIDATES:
        path = Path(candidate)
        if path.is_file():
            return path
    return None


@functools.lru_cache(maxsize=32)
def _load_font(path: str | None, size: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    if path is not None:
        try:
            return ImageFont.truetype(path, size=size)
        except OSError:
            logger.warning("Could not load font %s, using Pillow default.", path)
    return ImageFont.load_default(size=size)


def load_caption_font(
    size: int,
    path: str | Path | None = None,
) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    """Return a caption font of *size* pixels."""
    resolved = resolve_caption_font(path)
    return _load_font(str(resolved) if resolved else None, max(1, size))


def caption_metrics(canvas_width: int) -> tuple[int, int, int]:
    """Font size, outline width and baseline lift scaled to *canvas_width*."""
    ratio = canvas_width / CAPTION_REFERENCE_WIDTH
    return (
        max(1, round(CAPTION_FONT_SIZE * ratio)),
        max(1, round(CAPTION_STROKE_WIDTH * ratio)),
        round(CAPTION_BASELINE_LIFT * ratio),
    )
