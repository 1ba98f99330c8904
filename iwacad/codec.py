"""
Reader/writer for the legacy ``.cad`` record stream.

The stream has no header, footer or length prefix; it is a run of records
terminated by EOF:

    uint8  tag          # 0 = object, 1 = polygon, 2 = point
    int16  index        # big endian
    <payload>           # the legacy C struct, big endian, padding included

Payload layouts (sizes match ``sizeof`` of the legacy C structs, so the
padding bytes are part of the record and of the byte-offset arithmetic):

    object   40 bytes   flags u8, select u8, parent/next/child/firstPolygon i16,
                        6 pad, offset x/y/z f64
    polygon  14 bytes   flags u8, select u8, next/firstPoint/animation/both i16,
                        side u8, color u8, npoints u8, 1 pad
    point    32 bytes   flags u8, select u8, nextPoint i16, 4 pad, x/y/z f64

Older writers stored polygon and point indices either as table indices or as
byte offsets into the table, so the loader tries a fixed list of
interpretations in order and keeps the first one that lands in range.
"""

from __future__ import annotations

import io
import logging
import struct
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO, Callable, Iterator, List, Optional, Sequence, Tuple

from .errors import FormatMismatch, IOFailure, MalformedRecord, TruncatedStream
from .records import (
    MAX_OBJECTS,
    MAX_POINTS,
    MAX_POLYGONS,
    TAG_NAMES,
    TAG_OBJECT,
    TAG_POINT,
    TAG_POLYGON,
    CadObject,
    CadPoint,
    CadPolygon,
)

if TYPE_CHECKING:
    from .arena import CadArena

logger = logging.getLogger(__name__)

HEADER_STRUCT = struct.Struct(">Bh")
OBJECT_STRUCT = struct.Struct(">BBhhhh6xddd")
POLYGON_STRUCT = struct.Struct(">BBhhhhBBBx")
POINT_STRUCT = struct.Struct(">BBh4xddd")

PAYLOAD_STRUCTS = {
    TAG_OBJECT: OBJECT_STRUCT,
    TAG_POLYGON: POLYGON_STRUCT,
    TAG_POINT: POINT_STRUCT,
}
CAPACITIES = {
    TAG_OBJECT: MAX_OBJECTS,
    TAG_POLYGON: MAX_POLYGONS,
    TAG_POINT: MAX_POINTS,
}

PEEK_BYTES = 16
DEBUG_INDEX_LIMIT = 5


@dataclass(frozen=True)
class RawRecord:
    offset: int
    tag: int
    raw_index: int
    payload: bytes

    @property
    def kind(self) -> str:
        return TAG_NAMES[self.tag]


@dataclass(frozen=True)
class SkippedRecord:
    offset: int
    tag: int
    raw_index: int
    reason: str


@dataclass(frozen=True)
class ResolvedIndex:
    offset: int
    tag: int
    raw_index: int
    index: int
    hypothesis: str


@dataclass
class LoadReport:
    objects: int = 0
    polygons: int = 0
    points: int = 0
    skipped: List[SkippedRecord] = field(default_factory=list)
    remapped: List[ResolvedIndex] = field(default_factory=list)

    @property
    def records(self) -> int:
        return self.objects + self.polygons + self.points

    @property
    def clean(self) -> bool:
        return not self.skipped


# -- index disambiguation ------------------------------------------------


def _direct(raw: int, capacity: int, record_size: int) -> Optional[int]:
    return raw if 0 <= raw < capacity else None


def _byte_offset(raw: int, capacity: int, record_size: int) -> Optional[int]:
    if raw > 0 and raw % record_size == 0:
        index = raw // record_size
        if index < capacity:
            return index
    return None


def _unsigned(raw: int, capacity: int, record_size: int) -> Optional[int]:
    unsigned = raw & 0xFFFF
    return unsigned if unsigned < capacity else None


Hypothesis = Tuple[str, Callable[[int, int, int], Optional[int]]]

# Order matters: files we write always resolve through the first entry.
INDEX_HYPOTHESES: Tuple[Hypothesis, ...] = (
    ("direct", _direct),
    ("byte-offset", _byte_offset),
    ("unsigned", _unsigned),
)
OBJECT_HYPOTHESES: Tuple[Hypothesis, ...] = INDEX_HYPOTHESES[:1]


def resolve_index(tag: int, raw_index: int) -> Tuple[int, str]:
    """
    Map a stored 16-bit index to a table slot, returning ``(index, hypothesis)``.

    Raises ``MalformedRecord`` when no interpretation lands inside the table.
    """

    capacity = CAPACITIES[tag]
    record_size = PAYLOAD_STRUCTS[tag].size
    hypotheses = OBJECT_HYPOTHESES if tag == TAG_OBJECT else INDEX_HYPOTHESES
    for name, hypothesis in hypotheses:
        index = hypothesis(raw_index, capacity, record_size)
        if index is not None:
            return index, name
    raise MalformedRecord(
        f"{TAG_NAMES[tag]} index {raw_index} (0x{raw_index & 0xFFFF:04X}) out of bounds (0-{capacity - 1})",
        tag=tag,
        raw_index=raw_index,
    )


# -- record framing ------------------------------------------------------


def _hex_dump(data: bytes) -> str:
    return " ".join(f"{b:02X}" for b in data)


def iter_records(blob: bytes, *, start: int = 0) -> Iterator[RawRecord]:
    """
    Yield every record in ``blob`` in stream order.

    EOF right before a tag byte ends the stream cleanly. An unknown tag means
    we cannot find the next record boundary, so it raises ``FormatMismatch``;
    running out of bytes inside a record raises ``TruncatedStream``.
    """

    offset = start
    length = len(blob)
    while offset < length:
        tag = blob[offset]
        payload_struct = PAYLOAD_STRUCTS.get(tag)
        if payload_struct is None:
            peek = bytes(blob[offset + 1 : offset + 1 + PEEK_BYTES])
            raise FormatMismatch(
                f"unknown tag {tag} (0x{tag:02X}) at byte {offset} "
                f"(expected 0=object, 1=polygon, 2=point); next bytes: {_hex_dump(peek) or '<eof>'}",
                offset=offset,
                tag=tag,
                peek=peek,
            )
        if offset + HEADER_STRUCT.size > length:
            raise TruncatedStream(
                f"unexpected end of stream while reading {TAG_NAMES[tag]} index at byte {offset}",
                offset=offset,
            )
        _, raw_index = HEADER_STRUCT.unpack_from(blob, offset)
        payload_start = offset + HEADER_STRUCT.size
        payload_end = payload_start + payload_struct.size
        if payload_end > length:
            raise TruncatedStream(
                f"{TAG_NAMES[tag]} record at byte {offset} needs {payload_struct.size} payload bytes, "
                f"only {length - payload_start} left",
                offset=offset,
            )
        yield RawRecord(offset=offset, tag=tag, raw_index=raw_index, payload=bytes(blob[payload_start:payload_end]))
        offset = payload_end


# -- payload conversion --------------------------------------------------


def unpack_object(payload: bytes) -> CadObject:
    return CadObject(*OBJECT_STRUCT.unpack(payload))


def unpack_polygon(payload: bytes) -> CadPolygon:
    return CadPolygon(*POLYGON_STRUCT.unpack(payload))


def unpack_point(payload: bytes) -> CadPoint:
    return CadPoint(*POINT_STRUCT.unpack(payload))


def unpack_payload(record: RawRecord) -> CadObject | CadPolygon | CadPoint:
    if record.tag == TAG_OBJECT:
        return unpack_object(record.payload)
    if record.tag == TAG_POLYGON:
        return unpack_polygon(record.payload)
    return unpack_point(record.payload)


def pack_object(obj: CadObject) -> bytes:
    return OBJECT_STRUCT.pack(
        obj.flags,
        obj.select_flag,
        obj.parent_object,
        obj.next_brother,
        obj.child_object,
        obj.first_polygon,
        obj.offset_x,
        obj.offset_y,
        obj.offset_z,
    )


def pack_polygon(polygon: CadPolygon) -> bytes:
    return POLYGON_STRUCT.pack(
        polygon.flags,
        polygon.select_flag,
        polygon.next_polygon,
        polygon.first_point,
        polygon.animation,
        polygon.both,
        polygon.side,
        polygon.color,
        polygon.npoints,
    )


def pack_point(point: CadPoint) -> bytes:
    return POINT_STRUCT.pack(
        point.flags,
        point.select_flag,
        point.next_point,
        point.x,
        point.y,
        point.z,
    )


# -- arena load/save -----------------------------------------------------


def decode_into(arena: "CadArena", blob: bytes) -> LoadReport:
    """
    Clear ``arena`` and fill it from ``blob``.

    Records whose index cannot be placed are skipped and listed in the
    report. On ``FormatMismatch``/``TruncatedStream`` the arena keeps whatever
    was applied before the failure and must be cleared before reuse.
    """

    arena.clear()
    report = LoadReport()
    placers = {
        TAG_OBJECT: arena.place_object,
        TAG_POLYGON: arena.place_polygon,
        TAG_POINT: arena.place_point,
    }
    seen = {TAG_OBJECT: 0, TAG_POLYGON: 0, TAG_POINT: 0}

    for record in iter_records(blob):
        if seen[record.tag] < DEBUG_INDEX_LIMIT:
            logger.debug(
                "%s tag, index=%d (0x%04X) at byte %d",
                record.kind,
                record.raw_index,
                record.raw_index & 0xFFFF,
                record.offset,
            )
        seen[record.tag] += 1
        try:
            index, hypothesis = resolve_index(record.tag, record.raw_index)
        except MalformedRecord as exc:
            logger.warning("skipping record at byte %d: %s", record.offset, exc)
            report.skipped.append(
                SkippedRecord(offset=record.offset, tag=record.tag, raw_index=record.raw_index, reason=str(exc))
            )
            continue
        if hypothesis != "direct":
            report.remapped.append(
                ResolvedIndex(
                    offset=record.offset,
                    tag=record.tag,
                    raw_index=record.raw_index,
                    index=index,
                    hypothesis=hypothesis,
                )
            )
        placers[record.tag](index, unpack_payload(record))
        if record.tag == TAG_OBJECT:
            report.objects += 1
        elif record.tag == TAG_POLYGON:
            report.polygons += 1
        else:
            report.points += 1

    if report.remapped:
        logger.info("%d record index(es) resolved by a non-direct interpretation", len(report.remapped))
    return report


def write_stream(arena: "CadArena", fp: BinaryIO) -> int:
    """Write every valid record (objects, polygons, points) and return the byte count."""

    written = 0
    tables: Sequence[Tuple[int, Iterator, Callable]] = (
        (TAG_OBJECT, arena.iter_objects(), pack_object),
        (TAG_POLYGON, arena.iter_polygons(), pack_polygon),
        (TAG_POINT, arena.iter_points(), pack_point),
    )
    for tag, records, pack in tables:
        for index, record in records:
            chunk = HEADER_STRUCT.pack(tag, index) + pack(record)
            fp.write(chunk)
            written += len(chunk)
    return written


def encode(arena: "CadArena") -> bytes:
    buffer = io.BytesIO()
    write_stream(arena, buffer)
    return buffer.getvalue()


def load_file(arena: "CadArena", path: Path) -> LoadReport:
    path = Path(path)
    try:
        blob = path.read_bytes()
    except OSError as exc:
        raise IOFailure(f"could not open '{path}' for reading: {exc}") from exc
    arena.clear()
    if not blob:
        raise FormatMismatch(f"'{path}' is empty", offset=0)
    logger.info("loading %s (%d bytes)", path, len(blob))
    report = decode_into(arena, blob)
    logger.info(
        "loaded %s: %d objects, %d polygons, %d points, %d skipped",
        path.name,
        report.objects,
        report.polygons,
        report.points,
        len(report.skipped),
    )
    return report


def save_file(arena: "CadArena", path: Path) -> int:
    path = Path(path)
    blob = encode(arena)
    try:
        path.write_bytes(blob)
    except OSError as exc:
        raise IOFailure(f"could not open '{path}' for writing: {exc}") from exc
    logger.info("saved %s (%d bytes)", path, len(blob))
    return len(blob)
