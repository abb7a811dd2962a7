"""
stickeranim -- Still image to animated APNG sticker pipeline.

Cleans the alpha matte of a cut-out subject, renders it through a
periodic motion (bounce, shake, pulse, swing), assembles the frames
into an APNG container and patches its loop count in place.
"""

__version__ = "0.1.0"

from stickeranim.types import (
    AnimationKind,
    AnimationSpec,
    Bitmap,
    CanvasPreset,
    ExportJob,
    Frame,
    Pivot,
    Transform,
)

__all__ = [
    "AnimationKind",
    "AnimationSpec",
    "Bitmap",
    "CanvasPreset",
    "ExportJob",
    "Frame",
    "Pivot",
    "Transform",
]
