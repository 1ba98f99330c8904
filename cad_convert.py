#!/usr/bin/env python3
"""
Convert between Iwamoto 3D-CAD ``.cad`` files, Wavefront ``.obj`` and
Fundoshi-Kun ``3DG1`` text (``.txt`` / ``.3dg1``).

The formats are picked from the file suffixes:

    python cad_convert.py SHIP.cad                # -> SHIP.txt (3DG1)
    python cad_convert.py SHIP.cad SHIP.obj       # also writes SHIP.mtl
    python cad_convert.py mesh.obj mesh.cad --skip-log mesh_load.txt

Exit codes: 0 success, 1 bad arguments, 2 input could not be loaded,
3 output could not be written.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

from iwacad.arena import CadArena
from iwacad.errors import CadError
from iwacad.fundoshi import export_3dg1, import_3dg1
from iwacad.logging import LoadReportWriter
from iwacad.obj_io import export_obj, import_obj

CAD_SUFFIXES = {".cad"}
OBJ_SUFFIXES = {".obj"}
FUNDOSHI_SUFFIXES = {".txt", ".3dg1"}


def format_for(path: Path) -> str | None:
    suffix = path.suffix.lower()
    if suffix in CAD_SUFFIXES:
        return "cad"
    if suffix in OBJ_SUFFIXES:
        return "obj"
    if suffix in FUNDOSHI_SUFFIXES:
        return "3dg1"
    return None


def default_output(source: Path) -> Path:
    return source.with_suffix(".txt")


def load_any(arena: CadArena, source: Path, fmt: str, skip_log: Path | None = None) -> None:
    if fmt == "cad":
        report = arena.load_file(source)
        if report.skipped:
            print(f"[!] {len(report.skipped)} record(s) skipped while loading {source}", file=sys.stderr)
        if skip_log is not None:
            writer = LoadReportWriter(skip_log)
            writer.record(source.name, report)
            writer.flush()
    elif fmt == "obj":
        import_obj(arena, source)
    else:
        import_3dg1(arena, source)


def save_any(arena: CadArena, destination: Path, fmt: str) -> None:
    if fmt == "cad":
        arena.save_file(destination)
    elif fmt == "obj":
        export_obj(arena, destination)
    else:
        export_3dg1(arena, destination)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Convert between .cad, .obj and 3DG1 geometry files.")
    parser.add_argument("input", type=Path, help="Source file (.cad, .obj, .txt/.3dg1)")
    parser.add_argument("output", type=Path, nargs="?", help="Destination file (default: input with .txt suffix)")
    parser.add_argument("--skip-log", type=Path, help="Write a report of skipped/remapped .cad records here")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log loader diagnostics to stderr")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    output = args.output or default_output(args.input)
    src_fmt = format_for(args.input)
    dst_fmt = format_for(output)
    if src_fmt is None or dst_fmt is None:
        print(f"Error: unsupported file type ({args.input.suffix} -> {output.suffix})", file=sys.stderr)
        return 1

    arena = CadArena()
    try:
        load_any(arena, args.input, src_fmt, args.skip_log)
    except CadError as exc:
        print(f"Failed to load '{args.input}': {exc}", file=sys.stderr)
        return 2
    try:
        save_any(arena, output, dst_fmt)
    except CadError as exc:
        print(f"Failed to export '{output}': {exc}", file=sys.stderr)
        return 3

    stats = arena.stats()
    print(f"[+] {args.input} -> {output} ({stats['points']} points, {stats['polygons']} polygons)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
