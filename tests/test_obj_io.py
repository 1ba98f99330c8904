import pytest

from iwacad.chain import polygon_coordinates
from iwacad.errors import FormatMismatch, IOFailure
from iwacad.faces import add_face
from iwacad.obj_io import export_obj, import_obj, parse_obj


def test_export_writes_obj_and_mtl(triangle_arena, tmp_path):
    summary = export_obj(triangle_arena, tmp_path / "tri.obj")
    assert (summary.vertices, summary.faces, summary.materials) == (3, 1, 1)

    obj_lines = (tmp_path / "tri.obj").read_text().splitlines()
    assert "mtllib tri.mtl" in obj_lines
    assert "v 1.000000 0.000000 0.000000" in obj_lines
    assert "usemtl material_5" in obj_lines
    assert obj_lines[-1] == "f 1 2 3"

    mtl = (tmp_path / "tri.mtl").read_text()
    assert "newmtl material_5" in mtl
    assert "Kd 0.333 0.333 0.333" in mtl


def test_export_skips_deleted_points_in_numbering(arena, tmp_path):
    arena.add_point(9.0, 9.0, 9.0)
    arena.delete_point(0)
    add_face(arena, [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0)], color=20)
    export_obj(arena, tmp_path / "edge.obj")
    lines = (tmp_path / "edge.obj").read_text().splitlines()
    assert sum(1 for line in lines if line.startswith("v ")) == 2
    assert "f 1 2" in lines


def test_material_switches_once_per_colour_run(arena, tmp_path):
    add_face(arena, [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0)], color=1)
    add_face(arena, [(0.0, 0.0, 1.0), (1.0, 0.0, 1.0), (0.0, 1.0, 1.0)], color=1)
    add_face(arena, [(0.0, 0.0, 2.0), (1.0, 0.0, 2.0), (0.0, 1.0, 2.0)], color=2)
    summary = export_obj(arena, tmp_path / "multi.obj")
    lines = (tmp_path / "multi.obj").read_text().splitlines()
    assert [line for line in lines if line.startswith("usemtl")] == ["usemtl material_1", "usemtl material_2"]
    assert summary.materials == 2


OBJ_TEXT = """\
# quad and triangle
v 0 0 0
v 1 0 0
v 1 1 0
v 0 1 0
f 1/1/1 2/2/2 3/3/3 4/4/4
f -4 -3 -2
f 1
"""


def test_parse_obj_indices():
    vertices, faces = parse_obj(OBJ_TEXT)
    assert len(vertices) == 4
    assert faces == [[0, 1, 2, 3], [0, 1, 2], [0]]


def test_import_builds_private_chains(arena, tmp_path):
    path = tmp_path / "mesh.obj"
    path.write_text(OBJ_TEXT)
    summary = import_obj(arena, path)
    assert (summary.vertices, summary.faces, summary.skipped_faces) == (4, 2, 1)
    assert arena.stats() == {"points": 7, "polygons": 2, "objects": 0}
    assert arena.get_polygon(0).npoints == 4
    assert polygon_coordinates(arena, 1) == [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (1.0, 1.0, 0.0)]


def test_import_truncates_large_faces(arena, tmp_path):
    lines = [f"v {i} 0 0" for i in range(14)]
    lines.append("f " + " ".join(str(i) for i in range(1, 15)))
    path = tmp_path / "big.obj"
    path.write_text("\n".join(lines) + "\n")
    import_obj(arena, path)
    assert arena.get_polygon(0).npoints == 12


def test_import_replaces_existing_geometry(triangle_arena, tmp_path):
    path = tmp_path / "mesh.obj"
    path.write_text(OBJ_TEXT)
    import_obj(triangle_arena, path)
    assert triangle_arena.stats()["polygons"] == 2


def test_import_without_vertices(arena, tmp_path):
    path = tmp_path / "empty.obj"
    path.write_text("# nothing here\n")
    with pytest.raises(FormatMismatch):
        import_obj(arena, path)


def test_import_missing_file(arena, tmp_path):
    with pytest.raises(IOFailure):
        import_obj(arena, tmp_path / "missing.obj")
