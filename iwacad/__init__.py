"""
Geometry arena and legacy ``.cad`` codec for the Iwamoto 3D-CAD format.
"""

from .arena import CadArena
from .chain import (
    DEFAULT_MAX_STEPS,
    VISITED_WINDOW,
    ChainWalker,
    iter_object_polygons,
    npoints_mismatch,
    polygon_coordinates,
    polygon_point_indices,
    walk_children,
    walk_points,
    walk_polygon,
    walk_polygon_group,
)
from .codec import LoadReport, RawRecord, SkippedRecord, iter_records, resolve_index
from .errors import (
    CadError,
    CadLoadError,
    CapacityExceeded,
    FaceError,
    FormatMismatch,
    IOFailure,
    MalformedRecord,
    RecordNotFound,
    TruncatedStream,
)
from .faces import add_face, face_from_selection, find_coincident_points, find_polygon_with_chain
from .records import (
    INVALID_INDEX,
    MAX_FACE_POINTS,
    MAX_OBJECTS,
    MAX_POINTS,
    MAX_POLYGONS,
    MIN_FACE_POINTS,
    CadObject,
    CadPoint,
    CadPolygon,
)
from .selection import PointSelection

__all__ = [
    "CadArena",
    "ChainWalker",
    "DEFAULT_MAX_STEPS",
    "VISITED_WINDOW",
    "walk_points",
    "walk_polygon",
    "walk_polygon_group",
    "walk_children",
    "polygon_point_indices",
    "polygon_coordinates",
    "iter_object_polygons",
    "npoints_mismatch",
    "LoadReport",
    "RawRecord",
    "SkippedRecord",
    "iter_records",
    "resolve_index",
    "CadError",
    "CadLoadError",
    "CapacityExceeded",
    "FaceError",
    "FormatMismatch",
    "IOFailure",
    "MalformedRecord",
    "RecordNotFound",
    "TruncatedStream",
    "add_face",
    "face_from_selection",
    "find_coincident_points",
    "find_polygon_with_chain",
    "INVALID_INDEX",
    "MAX_FACE_POINTS",
    "MAX_OBJECTS",
    "MAX_POINTS",
    "MAX_POLYGONS",
    "MIN_FACE_POINTS",
    "CadObject",
    "CadPoint",
    "CadPolygon",
    "PointSelection",
]
