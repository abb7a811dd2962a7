"""
Animation assembly engine.

Samples an animation over its full duration at a fixed frame rate,
renders one RGBA frame per sample with the compositor, and hands the
ordered frame sequence to a multi-frame encoder.  The default encoder
writes APNG with Pillow; any object implementing ``FrameEncoder`` can be
substituted.

Frames are rendered strictly in time order and the encoder is called once
per export.
"""

from __future__ import annotations

import abc
import io
import logging
from pathlib import Path
from typing import Sequence

import numpy as np
from PIL import Image

from stickeranim.apng import read_animation_control
from stickeranim.compositor import FrameRenderer
from stickeranim.exceptions import EncoderError, InputError
from stickeranim.motion import transform_at
from stickeranim.types import AnimationSpec, Bitmap, ExportJob, Frame

logger = logging.getLogger(__name__)

MAX_PALETTE_COLORS = 256

# APNG fcTL dispose_op / blend_op values.
_DISPOSE_BACKGROUND = 1
_BLEND_SOURCE = 0


# ---------------------------------------------------------------------------
# Encoders
# ---------------------------------------------------------------------------

class FrameEncoder(abc.ABC):
    """Abstract interface for multi-frame encoders.

    Implementations must return bytes that start with the PNG signature,
    carry an acTL chunk (infinite play count unless told otherwise), and
    keep frame order and per-frame delay exactly as given.  A color hint of
    0 means full color; a positive hint bounds the palette size.
    """

    name: str = "abstract"

    @abc.abstractmethod
    def encode(
        self,
        frames: Sequence[Frame],
        width: int,
        height: int,
        color_hint: int = 0,
    ) -> bytes:
        """Encode *frames* into container bytes."""


def quantize_frame(img: Image.Image, colors: int) -> Image.Image:
    """Reduce *img* to at most *colors* colors, keeping it RGBA."""
    colors = max(2, min(MAX_PALETTE_COLORS, colors))
    quantized = img.quantize(colors=colors, method=Image.Quantize.FASTOCTREE)
    return quantized.convert("RGBA")


class PillowApngEncoder(FrameEncoder):
    """Assemble frames into APNG using Pillow.

    APNG keeps full 8-bit alpha.  Each frame is written with
    dispose-to-background and source blending so that every frame stands
    on its own.
    """

    name = "pillow-apng"

    def encode(
        self,
        frames: Sequence[Frame],
        width: int,
        height: int,
        color_hint: int = 0,
    ) -> bytes:
        if not frames:
            raise EncoderError("No frames to encode")

        images: list[Image.Image] = []
        for i, frame in enumerate(frames):
            if frame.bitmap.size != (width, height):
                raise EncoderError(
                    f"Frame {i} is {frame.bitmap.width}x{frame.bitmap.height}, "
                    f"expected {width}x{height}"
                )
            img = frame.bitmap.to_image()
            if color_hint > 0:
                img = quantize_frame(img, color_hint)
            images.append(img)
        durations = [int(round(f.delay_ms)) for f in frames]

        # Pillow writes a plain PNG for a lone animation frame; a separate
        # default image keeps acTL in the output.
        single = len(images) == 1
        buf = io.BytesIO()
        try:
            images[0].save(
                buf,
                format="PNG",
                save_all=True,
                append_images=images if single else images[1:],
                duration=durations,
                loop=0,
                disposal=_DISPOSE_BACKGROUND,
                blend=_BLEND_SOURCE,
                default_image=single,
            )
        except (OSError, ValueError) as exc:
            raise EncoderError(f"APNG encoding failed: {exc}") from exc

        data = buf.getvalue()
        control = read_animation_control(data)
        if control is None:
            raise EncoderError(
                f"Pillow wrote no acTL chunk for {len(frames)} frames "
                f"(identical frames collapsed into one still image)"
            )
        if control[0] != len(frames):
            # Pillow folds consecutive identical frames into one; with
            # dispose-to-background only fully transparent frames match.
            raise EncoderError(
                f"Encoder merged {len(frames)} frames into {control[0]}; "
                f"frame timing would not be preserved"
            )
        return data


# ---------------------------------------------------------------------------
# Sampling
# ---------------------------------------------------------------------------

def sample_times(job: ExportJob) -> list[float]:
    """Synthetic sample times (ms) for every frame of *job*."""
    interval = job.frame_interval_ms
    return [i * interval for i in range(job.frame_count)]


def sample_frames(
    cleaned: Bitmap | None,
    spec: AnimationSpec,
    job: ExportJob,
    font_path: str | Path | None = None,
) -> list[Frame]:
    """Render the ordered frame sequence for an export.

    Raises InputError when there is no source bitmap, the source has no
    visible pixels, or the duration is too short to hold a single frame.
    """
    if cleaned is None:
        raise InputError("No source bitmap to export")
    if not cleaned.alpha().any():
        raise InputError("Source has no opaque pixels after cleanup")
    if job.frame_count == 0:
        raise InputError(
            f"Total duration {job.total_duration_ms} ms yields no frames "
            f"at {job.frame_rate} fps"
        )

    renderer = FrameRenderer(cleaned, job.canvas_width, job.canvas_height,
                             font_path=font_path)
    interval = job.frame_interval_ms
    frames = []
    for t in sample_times(job):
        transform = transform_at(spec.kind, spec.cycle_ms, t)
        frames.append(Frame(renderer.render(transform, spec.caption), interval))
    return frames


def loop_seam_rmse(first: Bitmap, last: Bitmap) -> float:
    """RMSE between two frames, normalized to [0, 1].

    A low value means the jump from the last frame back to the first is
    smooth.
    """
    if first.size != last.size:
        return 1.0
    a = first.to_array().astype(np.float64)
    b = last.to_array().astype(np.float64)
    return float(np.sqrt(np.mean((a - b) ** 2)) / 255.0)


def assemble_export(
    cleaned: Bitmap | None,
    spec: AnimationSpec,
    job: ExportJob,
    encoder: FrameEncoder | None = None,
    font_path: str | Path | None = None,
) -> bytes:
    """Render all frames of *job* and encode them into one container."""
    frames = sample_frames(cleaned, spec, job, font_path=font_path)
    encoder = encoder or PillowApngEncoder()

    if job.total_duration_ms % spec.cycle_ms != 0:
        logger.warning(
            "Total duration %d ms is not a multiple of the %d ms cycle; "
            "the animation will jump at the loop point",
            job.total_duration_ms, spec.cycle_ms,
        )

    if len(frames) > 1:
        logger.debug("Loop seam RMSE: %.4f", loop_seam_rmse(frames[-1].bitmap, frames[0].bitmap))

    logger.info(
        "Encoding %d frames (%dx%d, %.0f ms each, colors=%s) with %s",
        len(frames), job.canvas_width, job.canvas_height,
        job.frame_interval_ms, job.color_hint or "full", encoder.name,
    )
    data = encoder.encode(frames, job.canvas_width, job.canvas_height, job.color_hint)
    logger.info("Encoded container: %d bytes", len(data))
    return data
