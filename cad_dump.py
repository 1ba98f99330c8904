#!/usr/bin/env python3
"""
Record dumper for Iwamoto 3D-CAD ``.cad`` files.

Each record is printed on one line with its byte offset, the index exactly
as stored, the table slot the loader would pick and which interpretation
produced it. Records no interpretation can place are flagged rather than
hidden, so legacy files with byte-offset indices are easy to spot:

    python cad_dump.py SHIP.cad --limit 40 --bytes
"""

from __future__ import annotations

import argparse
import itertools
import sys
from pathlib import Path
from typing import Sequence

from iwacad.codec import RawRecord, iter_records, resolve_index, unpack_payload
from iwacad.errors import CadLoadError, MalformedRecord
from iwacad.records import CadObject, CadPoint, CadPolygon


def describe_fields(record: CadObject | CadPolygon | CadPoint) -> str:
    if isinstance(record, CadPoint):
        return (
            f"flags={record.flags} sel={record.select_flag} next={record.next_point} "
            f"xyz=({record.x:.6f},{record.y:.6f},{record.z:.6f})"
        )
    if isinstance(record, CadPolygon):
        return (
            f"flags={record.flags} sel={record.select_flag} next={record.next_polygon} "
            f"first={record.first_point} anim={record.animation} both={record.both} "
            f"side={record.side} color={record.color} npoints={record.npoints}"
        )
    return (
        f"flags={record.flags} sel={record.select_flag} parent={record.parent_object} "
        f"brother={record.next_brother} child={record.child_object} first={record.first_polygon} "
        f"offset=({record.offset_x:.6f},{record.offset_y:.6f},{record.offset_z:.6f})"
    )


def describe_record(record: RawRecord, *, show_bytes: bool = False) -> str:
    parts = [
        f"off=0x{record.offset:06X}",
        f"{record.kind:<7}",
        f"raw={record.raw_index:<6}",
    ]
    try:
        index, hypothesis = resolve_index(record.tag, record.raw_index)
    except MalformedRecord:
        parts.append("index=SKIP")
    else:
        parts.append(f"index={index:<4}")
        if hypothesis != "direct":
            parts.append(f"via={hypothesis}")
    parts.append(describe_fields(unpack_payload(record)))
    if show_bytes:
        parts.append(f"bytes={record.payload.hex(' ').upper()}")
    return " | ".join(parts)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Dump the records of an Iwamoto 3D-CAD .cad file.")
    parser.add_argument("input", type=Path, help="Path to the .cad file")
    parser.add_argument("--start", type=lambda x: int(x, 0), default=0, help="Byte offset to start parsing (default 0)")
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Maximum number of records to print (default: no limit)",
    )
    parser.add_argument(
        "--bytes",
        action="store_true",
        help="Include the raw payload bytes of every record",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        blob = args.input.read_bytes()
    except OSError as exc:
        print(f"Error: could not open '{args.input}': {exc}", file=sys.stderr)
        return 2
    records = iter_records(blob, start=args.start)
    if args.limit is not None:
        records = itertools.islice(records, args.limit)
    count = 0
    try:
        for record in records:
            print(describe_record(record, show_bytes=args.bytes))
            count += 1
    except CadLoadError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    if count == 0:
        print("No records discovered in the requested window.", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
