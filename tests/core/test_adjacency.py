"""AdjacencyMap のテスト群。"""

from __future__ import annotations

from contourf.core.adjacency import AdjacencyMap, Segment

A = (0.0, 0.0)
B = (1.0, 0.0)
C = (1.0, 1.0)
D = (0.0, 1.0)


def test_zero_length_segment_is_ignored() -> None:
    m = AdjacencyMap()
    assert m.insert(A, A, (0, 0)) is None
    assert m.inserted_count == 0
    assert len(m) == 0
    assert not m
    assert m.take_any() is None


def test_take_removes_segment_from_both_indexes() -> None:
    m = AdjacencyMap()
    sid = m.insert(A, B, (3, 4))
    assert sid == 0
    assert A in m
    assert B not in m

    seg = m.take_ending_at(B)
    assert seg == Segment(A, B, (3, 4))
    assert m.take_starting_at(A) is None
    assert m.take_ending_at(B) is None
    assert m.take_any() is None
    assert len(m) == 0
    assert m.inserted_count == 1
    assert A not in m


def test_lowest_id_wins_when_points_coincide() -> None:
    m = AdjacencyMap()
    m.insert(A, B)
    m.insert(A, C)
    m.insert(D, C)

    assert m.take_starting_at(A) == Segment(A, B)
    assert m.take_starting_at(A) == Segment(A, C)
    assert m.take_starting_at(A) is None
    assert m.take_ending_at(C) == Segment(D, C)


def test_take_any_returns_lowest_live_id() -> None:
    m = AdjacencyMap()
    m.insert(A, B)
    m.insert(B, C)
    m.insert(C, D)

    assert m.take_starting_at(A) == Segment(A, B)
    assert m.take_any() == Segment(B, C)
    assert len(m) == 1
    assert m.take_any() == Segment(C, D)
    assert m.take_any() is None


def test_every_segment_is_taken_exactly_once() -> None:
    m = AdjacencyMap()
    square = [(A, B), (B, C), (C, D), (D, A)]
    for start, end in square:
        m.insert(start, end)

    taken = []
    seg = m.take_any()
    while seg is not None:
        taken.append((seg.start, seg.end))
        seg = m.take_starting_at(seg.end) or m.take_any()

    assert sorted(taken) == sorted(square)
    assert not m
