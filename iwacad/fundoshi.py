"""
Fundoshi-Kun ``3DG1`` text geometry.

    3DG1
    <vertex count>
    x y z                      (one line per vertex)
    n i0 i1 ... i(n-1) color   (one line per face, 0-based vertex refs)

A ``0x1A`` byte ends the face list early, as DOS-era files often carry one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Dict, List, Tuple

from .chain import walk_polygon
from .errors import CapacityExceeded, FormatMismatch, IOFailure
from .faces import add_face
from .records import MAX_FACE_POINTS, MAX_POINTS, MIN_FACE_POINTS

if TYPE_CHECKING:
    from .arena import CadArena

logger = logging.getLogger(__name__)

MAGIC = "3DG1"
EOF_MARKER = "\x1a"
MIN_EXPORT_FACE_POINTS = 3
FACE_WALK_LIMIT = 256


@dataclass(frozen=True)
class Fundoshi3DG1Summary:
    vertices: int
    faces: int
    skipped_faces: int = 0


def render_3dg1(arena: "CadArena") -> Tuple[str, Fundoshi3DG1Summary]:
    vertex_map: Dict[int, int] = {}
    lines = [MAGIC]
    coords: List[str] = []
    for number, (index, pt) in enumerate(arena.iter_points()):
        vertex_map[index] = number
        # Consumers expect whole units.
        coords.append(f"{pt.x:.0f} {pt.y:.0f} {pt.z:.0f}")
    lines.append(str(len(coords)))
    lines.extend(coords)
    lines.append("")

    faces = 0
    for poly_index, polygon in arena.iter_polygons():
        if polygon.npoints < MIN_EXPORT_FACE_POINTS:
            continue
        refs = [
            vertex_map[index]
            for index, _pt in walk_polygon(arena, poly_index, max_steps=FACE_WALK_LIMIT)
            if index in vertex_map
        ]
        if len(refs) < MIN_EXPORT_FACE_POINTS:
            continue
        lines.append(" ".join([str(len(refs)), *(str(r) for r in refs), str(polygon.color)]))
        faces += 1
    return "\n".join(lines) + "\n", Fundoshi3DG1Summary(vertices=len(coords), faces=faces)


def export_3dg1(arena: "CadArena", path: Path) -> Fundoshi3DG1Summary:
    text, summary = render_3dg1(arena)
    try:
        Path(path).write_text(text, encoding="ascii")
    except OSError as exc:
        raise IOFailure(f"could not open '{path}' for writing: {exc}") from exc
    logger.info("exported %s (%d vertices, %d faces)", path, summary.vertices, summary.faces)
    return summary


def _parse_face(line: str, vertex_count: int) -> Tuple[List[int], int] | None:
    fields = line.split()
    try:
        numbers = [int(f) for f in fields]
    except ValueError:
        return None
    if not numbers:
        return None
    count = numbers[0]
    if not MIN_FACE_POINTS <= count <= MAX_FACE_POINTS:
        logger.warning("skipping face with invalid vertex count: %d", count)
        return None
    refs = numbers[1 : 1 + count]
    if len(refs) != count:
        logger.warning("skipping face with mismatched vertex count")
        return None
    for ref in refs:
        if not 0 <= ref < vertex_count:
            logger.warning("skipping face with invalid vertex index: %d", ref)
            return None
    color = numbers[1 + count] if len(numbers) > 1 + count else 0
    return refs, color


def import_3dg1(arena: "CadArena", path: Path) -> Fundoshi3DG1Summary:
    source = Path(path)
    try:
        text = source.read_text(encoding="ascii", errors="replace")
    except OSError as exc:
        raise IOFailure(f"could not open '{source}' for reading: {exc}") from exc

    lines = text.splitlines()
    if not lines or lines[0].strip() != MAGIC:
        got = lines[0].strip() if lines else ""
        raise FormatMismatch(f"invalid file format - expected '{MAGIC}', got '{got}'")

    rest = lines[1:]
    cursor = 0
    while cursor < len(rest) and not rest[cursor].strip():
        cursor += 1
    try:
        vertex_count = int(rest[cursor].split()[0])
    except (IndexError, ValueError) as exc:
        raise FormatMismatch("could not read vertex count") from exc
    cursor += 1
    if not 0 < vertex_count <= MAX_POINTS:
        raise FormatMismatch(f"invalid vertex count: {vertex_count}")

    vertices: List[Tuple[float, float, float]] = []
    while len(vertices) < vertex_count:
        if cursor >= len(rest):
            raise FormatMismatch(f"could not read vertex {len(vertices)}")
        parts = rest[cursor].split()
        cursor += 1
        if not parts:
            continue
        try:
            x, y, z = (float(v) for v in parts[:3])
        except ValueError as exc:
            raise FormatMismatch(f"could not read vertex {len(vertices)}") from exc
        vertices.append((x, y, z))

    arena.clear()
    faces = 0
    skipped = 0
    for line in rest[cursor:]:
        stripped = line.strip()
        if not stripped:
            continue
        if stripped.startswith(EOF_MARKER):
            break
        parsed = _parse_face(stripped, vertex_count)
        if parsed is None:
            skipped += 1
            continue
        refs, color = parsed
        try:
            add_face(arena, [vertices[r] for r in refs], color=color & 0xFF)
        except CapacityExceeded as exc:
            logger.warning("stopping 3DG1 import: %s", exc)
            break
        faces += 1

    logger.info("imported %s: %d vertices, %d faces", source, vertex_count, faces)
    return Fundoshi3DG1Summary(vertices=vertex_count, faces=faces, skipped_faces=skipped)
