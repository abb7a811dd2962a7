"""
CLI command for exporting a still image as an animated sticker.

Usage:
    stickeranim export face.png --animation bounce -o face.png
    stickeranim export face.png --animation swing --loops 3 --cycle 1000 --caption OK
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from ..exceptions import StickerAnimError
from ..extraction import ColorKeyExtractor, PassthroughExtractor
from ..pipeline import export_sticker
from ..policy import LINE_POLICY, compute_total_duration, load_policy
from ..types import AnimationKind, AnimationSpec, CanvasPreset, ExportJob

_KINDS = [k.value for k in AnimationKind]
_PRESETS = [p.name.lower() for p in CanvasPreset]


def _format_size(size_bytes: int) -> str:
    if size_bytes < 1024:
        return f"{size_bytes} B"
    if size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    return f"{size_bytes / (1024 * 1024):.1f} MB"


def cmd_export(args: argparse.Namespace) -> int:
    """Main handler for ``stickeranim export``."""
    image_path = Path(args.image)
    if not image_path.is_file():
        print(f"Error: file not found: {image_path}", file=sys.stderr)
        return 1

    if args.animation == AnimationKind.NONE.value:
        print("Error: animation 'none' produces a static image; pick a motion.",
              file=sys.stderr)
        return 2

    try:
        policy = load_policy(args.policy) if args.policy else LINE_POLICY
        spec = AnimationSpec(args.animation, cycle_ms=args.cycle, caption=args.caption)
        duration = args.duration if args.duration is not None else args.cycle
        job = ExportJob.for_preset(
            args.preset,
            total_duration_ms=duration,
            loop_count=args.loops,
            color_hint=args.colors,
        )
        if args.no_bg_removal:
            extractor = PassthroughExtractor()
        else:
            extractor = ColorKeyExtractor(tolerance=args.tolerance, key=args.key_color)
    except StickerAnimError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    total = compute_total_duration(args.loops, args.cycle)
    if not policy.is_compliant(args.loops, args.cycle):
        message = (f"{args.loops} loops x {args.cycle} ms = {total} ms "
                   f"does not satisfy the {policy.name} duration rule")
        if args.strict:
            print(f"Error: {message}", file=sys.stderr)
            return 2
        print(f"Warning: {message}", file=sys.stderr)

    print(f"Rendering {job.frame_count} frames ({args.animation}, "
          f"{job.canvas_width}x{job.canvas_height}) ...")
    try:
        result = export_sticker(
            image_path.read_bytes(),
            spec,
            job,
            extractor=extractor,
            policy=policy,
            clean=not args.no_clean,
            font_path=args.font,
        )
    except StickerAnimError as exc:
        print(f"Error: export failed: {exc}", file=sys.stderr)
        return 1

    if args.loops > 0 and not result.patch.patched:
        print("Warning: loop count could not be set; file loops forever.",
              file=sys.stderr)

    output = Path(args.output) if args.output else Path(result.file_name)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(result.data)

    if result.policy is not None:
        for line in result.policy.lines():
            print(line)
    loops = "infinite" if args.loops == 0 else str(args.loops)
    print(f"Done! {result.frame_count} frames, loops={loops} -> {output} "
          f"({_format_size(len(result.data))})")
    return 0


def build_export_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register the ``export`` subcommand and its arguments."""
    p = subparsers.add_parser(
        "export",
        help="Export an image as an animated APNG sticker",
        description="Remove the background, animate, and write an APNG sticker.",
    )
    p.add_argument("image", help="Path to the source image (PNG, JPEG, WebP)")
    p.add_argument(
        "--animation", choices=_KINDS, default="bounce",
        help="Motion to apply (default: bounce)",
    )
    p.add_argument(
        "--cycle", type=int, choices=[1000, 2000, 3000, 4000], default=1000,
        help="Length of one animation cycle in ms (default: 1000)",
    )
    p.add_argument(
        "--duration", type=int, default=None,
        help="Total rendered duration in ms (default: one cycle)",
    )
    p.add_argument(
        "--loops", type=int, choices=[0, 1, 2, 3, 4], default=0,
        help="Play count; 0 = infinite (default: 0)",
    )
    p.add_argument(
        "--preset", choices=_PRESETS, default="sticker",
        help="Canvas preset: sticker 320x270 or main 240x240 (default: sticker)",
    )
    p.add_argument("--caption", default="", help="Caption drawn under the sprite")
    p.add_argument(
        "--colors", type=int, default=128,
        help="Palette size bound; 0 keeps full color (default: 128)",
    )
    p.add_argument(
        "--no-bg-removal", action="store_true", dest="no_bg_removal",
        help="Keep the image's existing alpha instead of removing the background",
    )
    p.add_argument(
        "--key-color", default=None, dest="key_color",
        help="Background colour to remove, e.g. '#00FF00' (default: sampled from edges)",
    )
    p.add_argument(
        "--tolerance", type=int, default=30,
        help="Max channel distance treated as background (default: 30)",
    )
    p.add_argument(
        "--no-clean", action="store_true", dest="no_clean",
        help="Skip alpha-matte cleanup",
    )
    p.add_argument("--font", default=None, help="Caption font file")
    p.add_argument("--policy", default=None, help="Target policy YAML (default: LINE)")
    p.add_argument(
        "--strict", action="store_true",
        help="Refuse to export when the loop/duration rule is violated",
    )
    p.add_argument(
        "-o", "--output", default=None,
        help="Output file path (default: sticker_<kind>_<s>s_<timestamp>.png)",
    )
    p.set_defaults(func=cmd_export)
