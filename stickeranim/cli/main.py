"""Main CLI entry point for stickeranim."""

from __future__ import annotations

import argparse
import logging
import sys

from .. import __version__
from .export_cli import build_export_parser
from .inspect_cli import build_inspect_parser
from .preview_cli import build_preview_parser


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="stickeranim",
        description="Still image to animated APNG sticker pipeline",
    )
    parser.add_argument("--version", action="version", version=f"stickeranim {__version__}")
    parser.add_argument(
        "-v", "--verbose", action="count", default=0,
        help="Log progress (-v) or debug detail (-vv) to stderr",
    )
    subparsers = parser.add_subparsers(dest="command")
    build_export_parser(subparsers)
    build_inspect_parser(subparsers)
    build_preview_parser(subparsers)
    args = parser.parse_args(argv)

    if args.verbose:
        level = logging.DEBUG if args.verbose > 1 else logging.INFO
        logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    if args.command is None:
        parser.print_help()
        return 0
    return args.func(args)


def cli_entry() -> None:
    sys.exit(main())
