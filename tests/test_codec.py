import math
import struct

import pytest

from iwacad.arena import CadArena
from iwacad.chain import polygon_coordinates, polygon_point_indices
from iwacad.codec import (
    OBJECT_STRUCT,
    POINT_STRUCT,
    POLYGON_STRUCT,
    encode,
    iter_records,
    resolve_index,
)
from iwacad.errors import FormatMismatch, IOFailure, MalformedRecord, TruncatedStream
from iwacad.faces import add_face
from iwacad.records import TAG_OBJECT, TAG_POINT, TAG_POLYGON

from conftest import TRIANGLE, object_record, point_record, polygon_record


def test_payload_sizes_match_legacy_structs():
    assert OBJECT_STRUCT.size == 40
    assert POLYGON_STRUCT.size == 14
    assert POINT_STRUCT.size == 32


class TestRoundTrip:
    def test_minimal_scenario(self):
        arena = CadArena()
        arena.add_point(1.0, 2.0, 3.0)
        add_face(arena, TRIANGLE)
        blob = arena.save_bytes()

        loaded = CadArena()
        report = loaded.load_bytes(blob)
        assert report.clean
        assert loaded.stats() == {"points": 4, "polygons": 1, "objects": 0}
        assert loaded.get_point(0).coords == (1.0, 2.0, 3.0)
        assert polygon_point_indices(loaded, 0) == [1, 2, 3]
        assert polygon_coordinates(loaded, 0) == TRIANGLE

    def test_every_field_survives(self):
        arena = CadArena()
        root = arena.add_object(offset=(0.5, -1.25, 1e10))
        arena.add_object(parent=root, offset=(1.0, 2.0, 3.0))
        add_face(arena, TRIANGLE, color=200)
        add_face(arena, [(5.0, 5.0, 5.0), (6.0, 6.0, 6.0)], color=3)
        arena.get_polygon(0).animation = 4
        arena.get_polygon(0).both = 1
        arena.get_polygon(0).side = 1
        arena.get_point(2).select_flag = 1

        loaded = CadArena()
        loaded.load_bytes(arena.save_bytes())
        assert (loaded.point_count, loaded.polygon_count, loaded.object_count) == (
            arena.point_count,
            arena.polygon_count,
            arena.object_count,
        )
        assert loaded.points[: arena.point_count] == arena.points[: arena.point_count]
        assert loaded.polygons[: arena.polygon_count] == arena.polygons[: arena.polygon_count]
        assert loaded.objects[: arena.object_count] == arena.objects[: arena.object_count]

    def test_non_finite_doubles_survive(self, arena):
        arena.add_point(math.inf, -math.inf, math.nan)
        loaded = CadArena()
        loaded.load_bytes(arena.save_bytes())
        x, y, z = loaded.get_point(0).coords
        assert x == math.inf
        assert y == -math.inf
        assert math.isnan(z)

    def test_empty_arena_round_trips(self, arena):
        assert arena.save_bytes() == b""
        report = CadArena().load_bytes(b"")
        assert report.records == 0

    def test_file_round_trip(self, triangle_arena, tmp_path):
        path = tmp_path / "tri.cad"
        written = triangle_arena.save_file(path)
        assert written == path.stat().st_size == 3 * (3 + 32) + (3 + 14)
        loaded = CadArena()
        loaded.load_file(path)
        assert polygon_coordinates(loaded, 0) == TRIANGLE


class TestWriter:
    def test_point_record_bytes(self, arena):
        arena.add_point(1.0, 0.0, -2.0)
        blob = encode(arena)
        assert blob[:3] == b"\x02\x00\x00"
        assert blob[3:7] == b"\x01\x00\xff\xff"
        assert blob[7:11] == b"\x00\x00\x00\x00"
        assert struct.unpack(">ddd", blob[11:35]) == (1.0, 0.0, -2.0)
        assert blob[11:19] == bytes.fromhex("3FF0000000000000")

    def test_tables_written_objects_polygons_points(self, triangle_arena):
        triangle_arena.add_object()
        tags = [record.tag for record in iter_records(triangle_arena.save_bytes())]
        assert tags == [TAG_OBJECT, TAG_POLYGON, TAG_POINT, TAG_POINT, TAG_POINT]

    def test_cleared_slots_are_omitted(self, arena):
        for i in range(3):
            arena.add_point(float(i), 0.0, 0.0)
        arena.delete_point(1)
        records = list(iter_records(arena.save_bytes()))
        assert [r.raw_index for r in records] == [0, 2]

        loaded = CadArena()
        loaded.load_bytes(arena.save_bytes())
        assert loaded.point_count == 3
        assert not loaded.get_point(1).valid

    def test_encoding_is_deterministic(self, triangle_arena):
        assert triangle_arena.save_bytes() == triangle_arena.save_bytes()


class TestIndexResolution:
    def test_direct_index_wins_over_byte_offset(self, arena):
        # 28 is a valid slot and also 2 * sizeof(polygon).
        blob = polygon_record(28, color=9)
        report = arena.load_bytes(blob)
        assert arena.get_polygon(28).color == 9
        assert arena.get_polygon(2) is None or not arena.get_polygon(2).valid
        assert report.remapped == []

    def test_point_direct_index_wins(self, arena):
        arena.load_bytes(point_record(64, 7.0))
        assert arena.get_point(64).x == 7.0
        assert arena.point_count == 65

    def test_point_byte_offset(self, arena):
        report = arena.load_bytes(point_record(32 * 1000, 3.5))
        assert arena.get_point(1000).x == 3.5
        assert report.remapped[0].index == 1000
        assert report.remapped[0].hypothesis == "byte-offset"

    def test_polygon_byte_offset(self, arena):
        arena.load_bytes(polygon_record(14 * 100, color=1))
        assert arena.get_polygon(100).color == 1
        assert arena.polygon_count == 101

    def test_byte_offset_past_capacity_is_skipped(self):
        with pytest.raises(MalformedRecord):
            resolve_index(TAG_POINT, 32 * 1024)

    @pytest.mark.parametrize("raw", [-1, -32768, 1030, 32767])
    def test_unplaceable_point_index(self, raw):
        with pytest.raises(MalformedRecord):
            resolve_index(TAG_POINT, raw)

    def test_object_index_is_direct_only(self):
        assert resolve_index(TAG_OBJECT, 255) == (255, "direct")
        with pytest.raises(MalformedRecord):
            resolve_index(TAG_OBJECT, 40 * 10 + 40 * 256)
        with pytest.raises(MalformedRecord):
            resolve_index(TAG_OBJECT, 400)

    def test_bad_record_is_skipped_and_load_continues(self, arena):
        blob = point_record(-5, 1.0) + point_record(0, 2.0) + object_record(300)
        report = arena.load_bytes(blob)
        assert arena.get_point(0).x == 2.0
        assert report.points == 1
        assert [s.raw_index for s in report.skipped] == [-5, 300]
        assert report.skipped[0].offset == 0
        assert arena.object_count == 0

    def test_later_record_overwrites_earlier(self, arena):
        arena.load_bytes(point_record(3, 1.0) + point_record(3, 9.0))
        assert arena.get_point(3).x == 9.0
        assert arena.point_count == 4


class TestFailures:
    def test_unknown_tag_aborts(self, arena):
        blob = bytes([0x05, 0x00, 0x00]) + b"\xaa" * 20
        with pytest.raises(FormatMismatch) as excinfo:
            arena.load_bytes(blob)
        assert excinfo.value.offset == 0
        assert excinfo.value.tag == 5
        assert excinfo.value.peek == blob[1:17]
        assert "AA AA" in str(excinfo.value)
        assert arena.stats() == {"points": 0, "polygons": 0, "objects": 0}

    def test_unknown_tag_after_valid_records_leaves_partial_state(self, arena):
        blob = point_record(0, 1.0) + b"\x07"
        with pytest.raises(FormatMismatch) as excinfo:
            arena.load_bytes(blob)
        assert excinfo.value.offset == 35
        assert arena.get_point(0).x == 1.0

    def test_truncated_payload(self, arena):
        blob = b"\x02\x00\x00" + b"\x01\x00\xff\xff"
        with pytest.raises(TruncatedStream):
            arena.load_bytes(blob)
        assert arena.get_point(0) is None

    def test_truncated_index(self, arena):
        with pytest.raises(TruncatedStream):
            arena.load_bytes(b"\x01\x00")

    def test_truncated_payload_of_skipped_record(self, arena):
        blob = point_record(-5)[:-1]
        with pytest.raises(TruncatedStream):
            arena.load_bytes(blob)

    def test_load_replaces_previous_contents(self, triangle_arena):
        triangle_arena.load_bytes(point_record(0, 4.0))
        assert triangle_arena.stats() == {"points": 1, "polygons": 0, "objects": 0}

    def test_empty_file_clears_previous_geometry(self, triangle_arena, tmp_path):
        path = tmp_path / "empty.cad"
        path.write_bytes(b"")
        with pytest.raises(FormatMismatch):
            triangle_arena.load_file(path)
        assert triangle_arena.stats() == {"points": 0, "polygons": 0, "objects": 0}
        assert triangle_arena.point_count == 0

    def test_missing_file_keeps_geometry(self, triangle_arena, tmp_path):
        with pytest.raises(IOFailure):
            triangle_arena.load_file(tmp_path / "missing.cad")
        assert triangle_arena.stats()["polygons"] == 1

    def test_unwritable_destination(self, triangle_arena, tmp_path):
        with pytest.raises(IOFailure):
            triangle_arena.save_file(tmp_path / "no_such_dir" / "out.cad")
