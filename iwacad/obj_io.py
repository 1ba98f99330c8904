"""
Wavefront OBJ/MTL exchange.

Export writes every valid point as a vertex and every valid polygon as a
face built from its point ring, with one material per palette colour in
use. Import rebuilds each face as a private point chain, as the arena
requires.
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
from .view import palette_rgb

if TYPE_CHECKING:
    from .arena import CadArena

logger = logging.getLogger(__name__)

FACE_WALK_LIMIT = 256


@dataclass(frozen=True)
class ObjExportSummary:
    obj_path: Path
    mtl_path: Path
    vertices: int
    faces: int
    materials: int


@dataclass(frozen=True)
class ObjImportSummary:
    vertices: int
    faces: int
    skipped_faces: int


def _vertex_map(arena: "CadArena") -> Dict[int, int]:
    # OBJ vertex numbers are 1-based and only count valid points.
    return {index: number for number, (index, _pt) in enumerate(arena.iter_points(), start=1)}


def _face_vertices(arena: "CadArena", poly_index: int, vertex_map: Dict[int, int]) -> List[int]:
    return [vertex_map[index] for index, _pt in walk_polygon(arena, poly_index, max_steps=FACE_WALK_LIMIT) if index in vertex_map]


def render_mtl(colors: List[int], mtl_name: str) -> str:
    lines = ["# MTL file exported from iwacad", f"# Material library for {mtl_name}", ""]
    for color_idx in colors:
        r, g, b = palette_rgb(color_idx)
        lines.extend(
            [
                f"newmtl material_{color_idx}",
                f"Ka {r * 0.2:.3f} {g * 0.2:.3f} {b * 0.2:.3f}",
                f"Kd {r:.3f} {g:.3f} {b:.3f}",
                "Ks 0.500 0.500 0.500",
                "Ns 32.0",
                "d 1.0",
                "",
            ]
        )
    return "\n".join(lines) + "\n"


def render_obj(arena: "CadArena", mtl_name: str) -> Tuple[str, int, int, List[int]]:
    """Return ``(text, vertex_count, face_count, colors)`` for the arena."""

    vertex_map = _vertex_map(arena)
    lines = [
        "# OBJ file exported from iwacad",
        f"# Points: {arena.point_count}, Polygons: {arena.polygon_count}",
        f"mtllib {mtl_name}",
        "",
    ]
    for _index, pt in arena.iter_points():
        lines.append(f"v {pt.x:.6f} {pt.y:.6f} {pt.z:.6f}")
    lines.append("")

    colors: List[int] = []
    current_material = None
    faces = 0
    for poly_index, polygon in arena.iter_polygons():
        if polygon.npoints < MIN_FACE_POINTS:
            continue
        face = _face_vertices(arena, poly_index, vertex_map)
        if len(face) < MIN_FACE_POINTS:
            continue
        if polygon.color not in colors:
            colors.append(polygon.color)
        if polygon.color != current_material:
            current_material = polygon.color
            lines.append(f"usemtl material_{current_material}")
        lines.append("f " + " ".join(str(v) for v in face))
        faces += 1
    return "\n".join(lines) + "\n", len(vertex_map), faces, colors


def export_obj(arena: "CadArena", path: Path) -> ObjExportSummary:
    obj_path = Path(path)
    mtl_path = obj_path.with_suffix(".mtl")
    text, vertices, faces, colors = render_obj(arena, mtl_path.name)
    try:
        mtl_path.write_text(render_mtl(colors, mtl_path.name), encoding="ascii")
        obj_path.write_text(text, encoding="ascii")
    except OSError as exc:
        raise IOFailure(f"could not write OBJ export '{obj_path}': {exc}") from exc
    logger.info("exported %s (%d vertices, %d faces, %d materials)", obj_path, vertices, faces, len(colors))
    return ObjExportSummary(obj_path=obj_path, mtl_path=mtl_path, vertices=vertices, faces=faces, materials=len(colors))


def _parse_face_token(token: str, vertex_count: int) -> int | None:
    head = token.split("/", 1)[0]
    try:
        idx = int(head)
    except ValueError:
        return None
    idx = idx - 1 if idx > 0 else vertex_count + idx
    if 0 <= idx < vertex_count:
        return idx
    return None


def parse_obj(text: str) -> Tuple[List[Tuple[float, float, float]], List[List[int]]]:
    """Split OBJ text into a vertex list and 0-based face index lists."""

    vertices: List[Tuple[float, float, float]] = []
    raw_faces: List[List[str]] = []
    for line in text.splitlines():
        parts = line.split()
        if not parts or parts[0].startswith("#"):
            continue
        if parts[0] == "v" and len(parts) >= 4:
            try:
                vertices.append((float(parts[1]), float(parts[2]), float(parts[3])))
            except ValueError:
                logger.warning("ignoring malformed vertex line: %r", line)
        elif parts[0] == "f":
            raw_faces.append(parts[1:])

    # Faces may reference vertices declared after them, so resolve at the end.
    faces: List[List[int]] = []
    for tokens in raw_faces:
        indices = []
        for token in tokens:
            idx = _parse_face_token(token, len(vertices))
            if idx is not None:
                indices.append(idx)
        faces.append(indices)
    return vertices, faces


def import_obj(arena: "CadArena", path: Path) -> ObjImportSummary:
    source = Path(path)
    try:
        text = source.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        raise IOFailure(f"could not open '{source}' for reading: {exc}") from exc

    vertices, faces = parse_obj(text)
    if not vertices:
        raise FormatMismatch(f"no vertices found in OBJ file '{source}'")
    if len(vertices) > MAX_POINTS:
        logger.warning("OBJ has %d vertices; only the first %d can be referenced", len(vertices), MAX_POINTS)
        vertices = vertices[:MAX_POINTS]

    arena.clear()
    created = 0
    skipped = 0
    for indices in faces:
        indices = [idx for idx in indices if idx < len(vertices)]
        if len(indices) < MIN_FACE_POINTS:
            skipped += 1
            continue
        if len(indices) > MAX_FACE_POINTS:
            logger.warning("face with %d vertices exceeds limit (%d), truncating", len(indices), MAX_FACE_POINTS)
            indices = indices[:MAX_FACE_POINTS]
        try:
            add_face(arena, [vertices[idx] for idx in indices], color=0)
        except CapacityExceeded as exc:
            logger.warning("stopping OBJ import: %s", exc)
            break
        created += 1

    if created == 0:
        logger.warning("no faces found in OBJ file %s", source)
    logger.info("imported %s: %d vertices, %d faces", source, len(vertices), created)
    return ObjImportSummary(vertices=len(vertices), faces=created, skipped_faces=skipped)
