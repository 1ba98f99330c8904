from iwacad.selection import PointSelection


def test_add_rejects_duplicates_and_keeps_order():
    sel = PointSelection()
    assert sel.add(5)
    assert sel.add(2)
    assert not sel.add(5)
    assert sel.indices() == [5, 2]
    assert len(sel) == 2
    assert 5 in sel
    assert 3 not in sel


def test_remove_and_clear():
    sel = PointSelection()
    for idx in (1, 2, 3):
        sel.add(idx)
    assert sel.remove(2)
    assert not sel.remove(2)
    assert list(sel) == [1, 3]
    sel.clear()
    assert len(sel) == 0
    assert 1 not in sel


def test_toggle():
    sel = PointSelection()
    assert sel.toggle(4) is True
    assert sel.toggle(4) is False
    assert 4 not in sel


def test_iteration_is_safe_while_mutating():
    sel = PointSelection()
    for idx in (1, 2, 3):
        sel.add(idx)
    for idx in sel:
        sel.remove(idx)
    assert len(sel) == 0


def test_select_all_skips_deleted_points(arena):
    for i in range(4):
        arena.add_point(float(i), 0.0, 0.0)
    arena.delete_point(2)
    sel = PointSelection()
    sel.add(3)
    assert sel.select_all(arena) == 2
    assert sel.indices() == [3, 0, 1]


def test_apply_flags_mirrors_membership(arena):
    for i in range(3):
        arena.add_point(float(i), 0.0, 0.0)
    arena.get_point(0).select_flag = 1
    sel = PointSelection()
    sel.add(1)
    sel.apply_flags(arena)
    assert [arena.get_point(i).selected for i in range(3)] == [False, True, False]
