"""
CLI command for listing the chunks of an APNG file.

Usage:
    stickeranim inspect sticker.png
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from ..apng import iter_chunks, read_animation_control, verify_chunk_crcs
from ..exceptions import ContainerFormatError


def cmd_inspect(args: argparse.Namespace) -> int:
    """Main handler for ``stickeranim inspect``."""
    path = Path(args.file)
    if not path.is_file():
        print(f"Error: file not found: {path}", file=sys.stderr)
        return 1

    data = path.read_bytes()
    try:
        chunks = list(iter_chunks(data))
    except ContainerFormatError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    bad = {c.offset for c in verify_chunk_crcs(data)}
    print(f"{path}: {len(data)} bytes, {len(chunks)} chunks")
    for chunk in chunks:
        flag = "  CRC MISMATCH" if chunk.offset in bad else ""
        print(f"  {chunk.name}  offset={chunk.offset:<8} length={chunk.length}{flag}")

    if chunks and chunks[-1].end < len(data):
        print(f"  (stream truncated or trailing data after offset {chunks[-1].end})")

    control = read_animation_control(data)
    if control is None:
        print("acTL: none (not animated)")
    else:
        num_frames, num_plays = control
        plays = "infinite" if num_plays == 0 else str(num_plays)
        print(f"acTL: {num_frames} frames, plays={plays}")
    return 1 if bad else 0


def build_inspect_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register the ``inspect`` subcommand."""
    p = subparsers.add_parser(
        "inspect",
        help="List the chunks of a PNG/APNG file",
        description="Print chunk layout, acTL values and CRC validity (read-only).",
    )
    p.add_argument("file", help="PNG or APNG file")
    p.set_defaults(func=cmd_inspect)
