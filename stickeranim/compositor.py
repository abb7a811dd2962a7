"""
Frame compositor.

Renders one RGBA frame from a cleaned sprite, a Transform and an optional
caption:

    1. Fit the sprite into 80% of the shorter canvas side (aspect kept),
       multiplied by the transform's scale.
    2. Lay the sprite out centred on a transparent canvas-sized layer and
       draw the caption beneath the sprite's midpoint.
    3. Place the layer with an explicit affine matrix,
       translate -> pivot-rotate -> translate-back, built fresh per frame.

No drawing state is carried from one frame to the next; the only thing a
FrameRenderer keeps between calls is a cache of resized sprites.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from pathlib import Path

from PIL import Image, ImageDraw

from stickeranim.config import (
    CAPTION_FILL,
    CAPTION_STROKE,
    caption_metrics,
    load_caption_font,
)
from stickeranim.exceptions import InputError
from stickeranim.types import Bitmap, Pivot, Transform

logger = logging.getLogger(__name__)

SPRITE_FILL_RATIO = 0.8
_TRANSPARENT = (0, 0, 0, 0)


# ---------------------------------------------------------------------------
# Affine matrices
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Affine:
    """2D affine map ``(x, y) -> (a*x + b*y + c, d*x + e*y + f)``.

    Canvas coordinates have y pointing down, so a positive rotation turns
    clockwise on screen.
    """
    a: float = 1.0
    b: float = 0.0
    c: float = 0.0
    d: float = 0.0
    e: float = 1.0
    f: float = 0.0

    @classmethod
    def translation(cls, tx: float, ty: float) -> Affine:
        return cls(c=tx, f=ty)

    @classmethod
    def rotation(cls, theta: float) -> Affine:
        cos_t, sin_t = math.cos(theta), math.sin(theta)
        return cls(a=cos_t, b=-sin_t, d=sin_t, e=cos_t)

    @classmethod
    def rotation_about(cls, theta: float, px: float, py: float) -> Affine:
        """Rotate by *theta* about the point (px, py)."""
        return (cls.translation(px, py)
                @ cls.rotation(theta)
                @ cls.translation(-px, -py))

    def __matmul__(self, other: Affine) -> Affine:
        """Compose: the result applies *other* first, then *self*."""
        return Affine(
            a=self.a * other.a + self.b * other.d,
            b=self.a * other.b + self.b * other.e,
            c=self.a * other.c + self.b * other.f + self.c,
            d=self.d * other.a + self.e * other.d,
            e=self.d * other.b + self.e * other.e,
            f=self.d * other.c + self.e * other.f + self.f,
        )

    def apply(self, x: float, y: float) -> tuple[float, float]:
        return (self.a * x + self.b * y + self.c,
                self.d * x + self.e * y + self.f)

    def inverse(self) -> Affine:
        det = self.a * self.e - self.b * self.d
        if det == 0:
            raise ValueError("Affine matrix is singular")
        a, b, d, e = self.e / det, -self.b / det, -self.d / det, self.a / det
        return Affine(
            a=a, b=b, c=-(a * self.c + b * self.f),
            d=d, e=e, f=-(d * self.c + e * self.f),
        )

    @property
    def is_translation(self) -> bool:
        return self.a == 1.0 and self.b == 0.0 and self.d == 0.0 and self.e == 1.0

    def coefficients(self) -> tuple[float, float, float, float, float, float]:
        return (self.a, self.b, self.c, self.d, self.e, self.f)


# ---------------------------------------------------------------------------
# Layout helpers
# ---------------------------------------------------------------------------

def fit_scale(src_w: int, src_h: int, canvas_w: int, canvas_h: int) -> float:
    """Uniform scale that fits the source into 80% of the shorter canvas side."""
    max_side = min(canvas_w, canvas_h) * SPRITE_FILL_RATIO
    return min(max_side / src_w, max_side / src_h)


def placement_matrix(
    transform: Transform,
    canvas_w: int,
    canvas_h: int,
    drawn_h: float,
) -> Affine:
    """Map the centred sprite layer onto the canvas for *transform*."""
    cx, cy = canvas_w / 2, canvas_h / 2
    if transform.pivot is Pivot.BOTTOM_CENTER:
        px, py = cx, cy + drawn_h / 2
    else:
        px, py = cx, cy
    return (Affine.translation(transform.dx, transform.dy)
            @ Affine.rotation_about(transform.rotation, px, py))


# ---------------------------------------------------------------------------
# Renderer
# ---------------------------------------------------------------------------

class FrameRenderer:
    """Render frames of one source sprite onto a fixed-size canvas.

    The renderer keeps resized copies of the sprite keyed by drawn size so
    that a whole export resamples the source only once per distinct scale.
    """

    def __init__(
        self,
        source: Bitmap,
        canvas_width: int,
        canvas_height: int,
        font_path: str | Path | None = None,
    ) -> None:
        if source is None:
            raise InputError("No source bitmap to render")
        if canvas_width <= 0 or canvas_height <= 0:
            raise InputError(
                f"Canvas must be positive, got {canvas_width}x{canvas_height}"
            )
        self.source = source
        self.canvas_width = canvas_width
        self.canvas_height = canvas_height
        self.font_path = font_path
        self.base_scale = fit_scale(source.width, source.height,
                                    canvas_width, canvas_height)
        self._source_img = source.to_image()
        self._sprites: dict[tuple[int, int], Image.Image] = {}

    def _sprite(self, size: tuple[int, int]) -> Image.Image:
        sprite = self._sprites.get(size)
        if sprite is None:
            if size == self._source_img.size:
                sprite = self._source_img
            else:
                sprite = self._source_img.resize(size, Image.LANCZOS)
            self._sprites[size] = sprite
        return sprite

    def _draw_caption(self, layer: Image.Image, text: str, drawn_h: float) -> None:
        font_size, stroke_width, lift = caption_metrics(self.canvas_width)
        font = load_caption_font(font_size, self.font_path)
        x = self.canvas_width / 2
        y = self.canvas_height / 2 + max(0.0, drawn_h / 2 - lift)
        text_layer = Image.new("RGBA", layer.size, _TRANSPARENT)
        draw = ImageDraw.Draw(text_layer)
        draw.text(
            (x, y),
            text,
            font=font,
            fill=CAPTION_FILL,
            anchor="mm",
            stroke_width=stroke_width,
            stroke_fill=CAPTION_STROKE,
        )
        layer.alpha_composite(text_layer)

    def render(self, transform: Transform, caption: str = "") -> Bitmap:
        """Render one frame for *transform*."""
        w, h = self.canvas_width, self.canvas_height
        scale = self.base_scale * transform.scale
        drawn_w = self.source.width * scale
        drawn_h = self.source.height * scale

        layer = Image.new("RGBA", (w, h), _TRANSPARENT)
        size = (round(drawn_w), round(drawn_h))
        if size[0] > 0 and size[1] > 0:
            sprite = self._sprite(size)
            layer.paste(sprite, (round(w / 2 - size[0] / 2),
                                 round(h / 2 - size[1] / 2)))
        if caption:
            self._draw_caption(layer, caption, drawn_h)

        matrix = placement_matrix(transform, w, h, drawn_h)
        if matrix.is_translation:
            frame = Image.new("RGBA", (w, h), _TRANSPARENT)
            frame.paste(layer, (round(matrix.c), round(matrix.f)))
        else:
            # PIL's AFFINE data maps output pixels back to input pixels.
            frame = layer.transform(
                (w, h),
                Image.AFFINE,
                matrix.inverse().coefficients(),
                resample=Image.BICUBIC,
                fillcolor=_TRANSPARENT,
            )
        return Bitmap.from_image(frame)


def render_frame(
    source: Bitmap,
    transform: Transform,
    caption: str = "",
    canvas_width: int = 320,
    canvas_height: int = 270,
) -> Bitmap:
    """Render a single frame.  Output is always canvas_width x canvas_height."""
    return FrameRenderer(source, canvas_width, canvas_height).render(transform, caption)
