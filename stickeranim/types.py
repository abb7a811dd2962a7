"""
Core data structures shared by the matte cleaner, the animation engine,
the compositor and the container assembler.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass

import numpy as np
from PIL import Image

from stickeranim.exceptions import InputError

FRAME_RATE = 8                      # Samples per second for every export.


class AnimationKind(enum.Enum):
    """Procedural motions that can be applied to a sticker."""
    NONE = "none"
    BOUNCE = "bounce"
    SHAKE = "shake"
    PULSE = "pulse"
    SWING = "swing"

    @classmethod
    def parse(cls, value: AnimationKind | str) -> AnimationKind:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            names = ", ".join(k.value for k in cls)
            raise InputError(
                f"Unknown animation kind {value!r}. Expected one of: {names}"
            ) from None


class Pivot(enum.Enum):
    """Sprite anchor that a rotation turns about."""
    CENTER = "center"
    BOTTOM_CENTER = "bottom_center"


class CanvasPreset(enum.Enum):
    """Export canvas sizes (width, height) in pixels."""
    STICKER = (320, 270)
    MAIN = (240, 240)

    @property
    def width(self) -> int:
        return self.value[0]

    @property
    def height(self) -> int:
        return self.value[1]

    @classmethod
    def parse(cls, value: CanvasPreset | str) -> CanvasPreset:
        if isinstance(value, cls):
            return value
        try:
            return cls[str(value).upper()]
        except KeyError:
            raise InputError(f"Unknown canvas preset {value!r}.") from None


@dataclass(frozen=True)
class Bitmap:
    """Row-major RGBA pixel buffer, 4 bytes per pixel."""
    width: int
    height: int
    data: bytes

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise InputError(
                f"Bitmap dimensions must be positive, got {self.width}x{self.height}"
            )
        expected = self.width * self.height * 4
        if len(self.data) != expected:
            raise InputError(
                f"Bitmap buffer holds {len(self.data)} bytes, "
                f"expected {expected} for {self.width}x{self.height} RGBA"
            )

    @property
    def size(self) -> tuple[int, int]:
        return (self.width, self.height)

    @classmethod
    def from_image(cls, img: Image.Image) -> Bitmap:
        rgba = img if img.mode == "RGBA" else img.convert("RGBA")
        return cls(rgba.width, rgba.height, rgba.tobytes())

    @classmethod
    def from_array(cls, arr: np.ndarray) -> Bitmap:
        """Build a bitmap from an (H, W, 4) uint8 array."""
        if arr.ndim != 3 or arr.shape[2] != 4:
            raise InputError(f"Expected an (H, W, 4) array, got shape {arr.shape}")
        h, w = arr.shape[:2]
        return cls(w, h, np.ascontiguousarray(arr, dtype=np.uint8).tobytes())

    @classmethod
    def solid(cls, width: int, height: int,
              rgba: tuple[int, int, int, int] = (0, 0, 0, 0)) -> Bitmap:
        return cls(width, height, bytes(rgba) * (width * height))

    def to_image(self) -> Image.Image:
        return Image.frombytes("RGBA", self.size, self.data)

    def to_array(self) -> np.ndarray:
        """Return a writable (H, W, 4) uint8 copy of the pixels."""
        return np.frombuffer(self.data, dtype=np.uint8).reshape(
            self.height, self.width, 4
        ).copy()

    def alpha(self) -> np.ndarray:
        """Return the alpha channel as an (H, W) uint8 array."""
        return self.to_array()[:, :, 3]


@dataclass(frozen=True)
class Transform:
    """Placement of the sprite for one sample time.

    ``rotation`` is in radians and turns about ``pivot``; translation and
    scale are applied relative to the canvas centre.
    """
    dx: float = 0.0
    dy: float = 0.0
    scale: float = 1.0
    rotation: float = 0.0
    pivot: Pivot = Pivot.CENTER

    def __post_init__(self) -> None:
        if self.scale < 0:
            raise InputError(f"Transform scale must be >= 0, got {self.scale}")

    @classmethod
    def identity(cls) -> Transform:
        return cls()

    @property
    def is_identity(self) -> bool:
        return (self.dx == 0.0 and self.dy == 0.0
                and self.scale == 1.0 and self.rotation == 0.0)


@dataclass(frozen=True)
class AnimationSpec:
    """Which motion to play, how long one cycle lasts, and the caption."""
    kind: AnimationKind
    cycle_ms: int = 1000
    caption: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", AnimationKind.parse(self.kind))
        if self.cycle_ms <= 0:
            raise InputError(f"Cycle duration must be > 0 ms, got {self.cycle_ms}")
        if self.caption is None:
            object.__setattr__(self, "caption", "")


@dataclass(frozen=True)
class ExportJob:
    """Parameters of a single export action."""
    canvas_width: int
    canvas_height: int
    total_duration_ms: int
    loop_count: int = 0             # 0 = infinite, no patch
    color_hint: int = 0             # 0 = full color, N = palette bound
    frame_rate: int = FRAME_RATE

    def __post_init__(self) -> None:
        if self.canvas_width <= 0 or self.canvas_height <= 0:
            raise InputError(
                f"Canvas must be positive, got {self.canvas_width}x{self.canvas_height}"
            )
        if self.total_duration_ms < 0:
            raise InputError(f"Total duration must be >= 0, got {self.total_duration_ms}")
        if self.loop_count < 0:
            raise InputError(f"Loop count must be >= 0, got {self.loop_count}")
        if self.color_hint < 0:
            raise InputError(f"Color hint must be >= 0, got {self.color_hint}")
        if self.frame_rate <= 0:
            raise InputError(f"Frame rate must be > 0, got {self.frame_rate}")

    @classmethod
    def for_preset(
        cls,
        preset: CanvasPreset | str,
        total_duration_ms: int,
        loop_count: int = 0,
        color_hint: int = 0,
    ) -> ExportJob:
        p = CanvasPreset.parse(preset)
        return cls(
            canvas_width=p.width,
            canvas_height=p.height,
            total_duration_ms=total_duration_ms,
            loop_count=loop_count,
            color_hint=color_hint,
        )

    @property
    def canvas_size(self) -> tuple[int, int]:
        return (self.canvas_width, self.canvas_height)

    @property
    def frame_interval_ms(self) -> float:
        return 1000 / self.frame_rate

    @property
    def frame_count(self) -> int:
        # Integer form of floor(total / (1000 / rate)).
        return math.floor(self.total_duration_ms * self.frame_rate // 1000)


@dataclass(frozen=True)
class Frame:
    """One rendered bitmap and its display duration."""
    bitmap: Bitmap
    delay_ms: float
