"""穴の包含判定とポリゴン組み立てのテスト群。"""

from __future__ import annotations

import logging

from contourf.core.geometry import LinearRing
from contourf.core.polygons import assemble_polygons, attach_holes, ring_contains


def _rect(x0: float, y0: float, x1: float, y1: float, *, hole: bool = False) -> LinearRing:
    pts = [(x0, y0), (x1, y0), (x1, y1), (x0, y1)]
    if hole:
        pts = pts[::-1]
    return LinearRing(tuple(pts) + (pts[0],))


def test_ring_contains_strictly_inside_hole() -> None:
    assert ring_contains(_rect(0.0, 0.0, 10.0, 10.0), _rect(2.0, 2.0, 4.0, 4.0, hole=True))


def test_ring_contains_tolerates_boundary_contact() -> None:
    exterior = _rect(0.0, 0.0, 10.0, 10.0)
    # 外周の頂点を共有する穴
    assert ring_contains(exterior, _rect(0.0, 0.0, 3.0, 3.0, hole=True))
    # 外周の辺上に頂点を持つ穴
    touching = LinearRing(((5.0, 0.0), (4.0, 2.0), (6.0, 2.0), (5.0, 0.0)))
    assert ring_contains(exterior, touching)


def test_ring_contains_rejects_outside_and_crossing_holes() -> None:
    exterior = _rect(0.0, 0.0, 10.0, 10.0)
    assert not ring_contains(exterior, _rect(20.0, 20.0, 22.0, 22.0, hole=True))
    assert not ring_contains(exterior, _rect(8.0, 8.0, 12.0, 12.0, hole=True))


def test_ring_contains_checks_concave_exterior() -> None:
    # U 字形の外周。凹部にある穴はバウンディングボックスには入るが含まれない。
    u_shape = LinearRing(
        (
            (0.0, 0.0),
            (9.0, 0.0),
            (9.0, 9.0),
            (6.0, 9.0),
            (6.0, 3.0),
            (3.0, 3.0),
            (3.0, 9.0),
            (0.0, 9.0),
            (0.0, 0.0),
        )
    )
    assert not ring_contains(u_shape, _rect(4.0, 5.0, 5.0, 6.0, hole=True))
    assert ring_contains(u_shape, _rect(1.0, 4.0, 2.0, 5.0, hole=True))


def test_nested_holes_attach_to_smallest_containing_exterior() -> None:
    outer = _rect(0.0, 0.0, 100.0, 100.0)
    outer_hole = _rect(10.0, 10.0, 90.0, 90.0, hole=True)
    inner = _rect(20.0, 20.0, 80.0, 80.0)
    inner_hole = _rect(30.0, 30.0, 70.0, 70.0, hole=True)

    polygons, orphans = attach_holes([outer, inner], [inner_hole, outer_hole])

    assert orphans == []
    assert [p.exterior for p in polygons] == [outer, inner]
    assert polygons[0].interiors == (outer_hole,)
    assert polygons[1].interiors == (inner_hole,)


def test_assemble_polygons_partitions_by_orientation() -> None:
    rings = [
        _rect(3.0, 3.0, 4.0, 4.0, hole=True),
        _rect(0.0, 0.0, 10.0, 10.0),
        _rect(20.0, 0.0, 30.0, 10.0),
        _rect(22.0, 2.0, 24.0, 4.0, hole=True),
        _rect(25.0, 5.0, 27.0, 7.0, hole=True),
    ]
    polygons = assemble_polygons(rings)

    assert len(polygons) == 2
    assert len(polygons[0].interiors) == 1
    assert len(polygons[1].interiors) == 2
    assert sum(len(p.interiors) for p in polygons) == 3


def test_orphan_hole_is_dropped_with_warning(caplog) -> None:
    rings = [_rect(0.0, 0.0, 1.0, 1.0), _rect(5.0, 5.0, 6.0, 6.0, hole=True)]
    with caplog.at_level(logging.WARNING, logger="contourf.core.polygons"):
        polygons = assemble_polygons(rings, level=2.0)

    assert len(polygons) == 1
    assert polygons[0].interiors == ()
    assert any("level=2.0" in r.getMessage() for r in caplog.records)
