#!/usr/bin/env python3
"""Thin CLI over the stencil catalog.

This script is intentionally minimal: it parses arguments, calls catalog
operations, prints JSON, and returns meaningful exit codes.
"""

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path

from .errors import StencilError
from .repository import open_catalog


def _record_json(record) -> dict:
    return record.to_dict() if record is not None else None


def _print(payload) -> None:
    print(json.dumps(payload, indent=2))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tattoo-stencil", description="Tattoo stencil catalog")
    parser.add_argument("--data-dir", type=Path, default=None,
                        help="catalog directory (default: $STENCIL_DATA_DIR or ~/.tattoo_stencil)")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = parser.add_subparsers(dest="cmd")

    p = sub.add_parser("create", help="create a stencil from an image")
    p.add_argument("image", type=Path)
    p.add_argument("--width", type=float, required=True, help="print width in cm")
    p.add_argument("--name")

    p = sub.add_parser("list", help="list stencils")
    p.add_argument("--favorites-first", action="store_true")

    p = sub.add_parser("search", help="search names and client notes")
    p.add_argument("query")

    p = sub.add_parser("show", help="show one stencil")
    p.add_argument("id")

    p = sub.add_parser("update", help="change stencil parameters")
    p.add_argument("id")
    p.add_argument("--name")
    p.add_argument("--width", type=float, dest="width_cm")
    p.add_argument("--rotate", type=int, dest="rotation_degrees")
    p.add_argument("--mirror-h", action=argparse.BooleanOptionalAction, dest="is_mirrored_h")
    p.add_argument("--mirror-v", action=argparse.BooleanOptionalAction, dest="is_mirrored_v")
    p.add_argument("--contrast", type=int, dest="contrast_level")
    p.add_argument("--brightness", type=int, dest="brightness_level")
    p.add_argument("--paper", dest="paper_size")
    p.add_argument("--note", dest="client_note")
    p.add_argument("--favorite", action=argparse.BooleanOptionalAction, dest="is_favorite")

    for name, help_text in (
        ("duplicate", "copy a stencil"),
        ("delete", "delete a stencil and its images"),
        ("mark-exported", "record that a stencil was exported"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("id")

    sub.add_parser("stats", help="catalog and storage statistics")
    sub.add_parser("cleanup", help="prune old exports and orphaned files")
    return parser


UPDATE_FIELDS = (
    "name", "width_cm", "rotation_degrees", "is_mirrored_h", "is_mirrored_v",
    "contrast_level", "brightness_level", "paper_size", "client_note", "is_favorite",
)


async def run(args) -> int:
    catalog = open_catalog(args.data_dir)
    try:
        if args.cmd == "create":
            record = await catalog.create_stencil(args.image.read_bytes(), args.width, args.name)
            _print(_record_json(record))
        elif args.cmd == "list":
            _print([r.to_dict() for r in catalog.get_all_stencils(args.favorites_first)])
        elif args.cmd == "search":
            _print([r.to_dict() for r in catalog.search_stencils(args.query)])
        elif args.cmd == "show":
            record = catalog.get_stencil(args.id)
            if record is None:
                print(f"Stencil not found: {args.id}", file=sys.stderr)
                return 2
            _print(_record_json(record))
        elif args.cmd == "update":
            changes = {f: getattr(args, f) for f in UPDATE_FIELDS if getattr(args, f) is not None}
            _print(_record_json(await catalog.update_stencil(args.id, **changes)))
        elif args.cmd == "duplicate":
            _print(_record_json(await catalog.duplicate_stencil(args.id)))
        elif args.cmd == "delete":
            await catalog.delete_stencil(args.id)
        elif args.cmd == "mark-exported":
            await catalog.mark_as_exported(args.id)
        elif args.cmd == "stats":
            _print(await catalog.get_statistics())
        elif args.cmd == "cleanup":
            await catalog.cleanup()
        return 0
    finally:
        catalog.worker.shutdown()


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    level_name = "DEBUG" if args.verbose else os.getenv("STENCIL_LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(level=getattr(logging, level_name, logging.WARNING))

    if args.cmd is None:
        parser.print_help()
        return 1

    try:
        return asyncio.run(run(args))
    except (StencilError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
