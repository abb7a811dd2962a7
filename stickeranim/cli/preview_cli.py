"""
CLI command for previewing an animation without encoding it.

Usage:
    stickeranim preview face.png --animation pulse --seconds 2 --out-dir preview/
"""

from __future__ import annotations

import argparse
import sys
import threading
from pathlib import Path

from ..exceptions import StickerAnimError
from ..extraction import PassthroughExtractor
from ..preview import PreviewLoop
from ..types import AnimationKind, AnimationSpec, Bitmap, CanvasPreset


class _DirectorySink:
    """Write every Nth preview frame into a directory."""

    def __init__(self, out_dir: Path, every: int = 1) -> None:
        self.out_dir = out_dir
        self.every = max(1, every)
        self.count = 0
        self.written = 0

    def __call__(self, frame: Bitmap) -> None:
        if self.count % self.every == 0:
            frame.to_image().save(self.out_dir / f"preview_{self.written:04d}.png")
            self.written += 1
        self.count += 1


def cmd_preview(args: argparse.Namespace) -> int:
    """Main handler for ``stickeranim preview``."""
    image_path = Path(args.image)
    if not image_path.is_file():
        print(f"Error: file not found: {image_path}", file=sys.stderr)
        return 1
    if args.seconds <= 0:
        print("Error: --seconds must be positive", file=sys.stderr)
        return 2

    out_dir = Path(args.out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    sink = _DirectorySink(out_dir, every=args.every)

    try:
        source = PassthroughExtractor().extract(image_path.read_bytes())
        spec = AnimationSpec(args.animation, cycle_ms=args.cycle, caption=args.caption)
        loop = PreviewLoop(
            source, spec, sink,
            canvas=CanvasPreset.parse(args.preset),
            fps=args.fps,
        )
    except (StickerAnimError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    stop = threading.Event()
    timer = threading.Timer(args.seconds, stop.set)
    timer.start()
    try:
        shown = loop.run(stop)
    except KeyboardInterrupt:
        stop.set()
        shown = sink.count
    finally:
        timer.cancel()

    print(f"Previewed {shown} frames; wrote {sink.written} to {out_dir}")
    return 0


def build_preview_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register the ``preview`` subcommand."""
    p = subparsers.add_parser(
        "preview",
        help="Render the animation against the wall clock",
        description="Run the live preview loop for a fixed time and dump frames.",
    )
    p.add_argument("image", help="Path to the source image (alpha is used as-is)")
    p.add_argument(
        "--animation", choices=[k.value for k in AnimationKind], default="bounce",
    )
    p.add_argument("--cycle", type=int, default=1000, help="Cycle length in ms")
    p.add_argument("--caption", default="")
    p.add_argument(
        "--preset", choices=[c.name.lower() for c in CanvasPreset], default="sticker",
    )
    p.add_argument("--fps", type=float, default=30.0, help="Preview rate (default: 30)")
    p.add_argument("--seconds", type=float, default=2.0, help="How long to run")
    p.add_argument("--every", type=int, default=1, help="Keep every Nth frame")
    p.add_argument("-o", "--out-dir", default="preview", dest="out_dir",
                   help="Directory for the dumped frames (default: preview)")
    p.set_defaults(func=cmd_preview)
