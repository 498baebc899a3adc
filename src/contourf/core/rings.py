# どこで: `src/contourf/core/rings.py`。
# 何を: 隣接マップを消費して閉じたリング列を復元し、外周/穴に振り分ける。
# なぜ: 線分の総数に比例する時間でリングを組み立てるため（各線分はちょうど 1 回だけ消費される）。

from __future__ import annotations

import logging
from collections.abc import Iterable

from contourf.core.adjacency import AdjacencyMap
from contourf.core.errors import AlgorithmInvariantViolation
from contourf.core.geometry import LinearRing
from contourf.core.transform import Point

logger = logging.getLogger(__name__)


def trace_rings(adjacency: AdjacencyMap, *, level: float | None = None) -> list[LinearRing]:
    """隣接マップが空になるまでリングを取り出す。

    Parameters
    ----------
    adjacency : AdjacencyMap
        1 レベル分の線分を持つマップ。呼び出し後は空になる。
    level : float or None
        例外・ログに載せる等値レベル。

    Returns
    -------
    list[LinearRing]
        閉じたリング列（`points[0] == points[-1]`）。異なる点が 3 未満のリングは含まない。

    Raises
    ------
    AlgorithmInvariantViolation
        前後の延長がともに止まったのに、鎖が閉じていない場合。

    Notes
    -----
    種線分から前方（start→end の向き）と後方を 1 本ずつ交互に延ばし、
    両方が行き詰まったところで `reversed(後方) + 前方` を 1 本のリングとする。
    パディングにより等値線は必ず閉じるので、行き詰まり点は種線分の始点に戻っている。
    隣接マップ自身が検出した不整合にも `level` を付けて送出する。
    """

    try:
        return _trace_rings(adjacency, level)
    except AlgorithmInvariantViolation as exc:
        if exc.level is not None or level is None:
            raise
        raise AlgorithmInvariantViolation(exc.message, level=level, cell=exc.cell) from exc


def _trace_rings(adjacency: AdjacencyMap, level: float | None) -> list[LinearRing]:
    rings: list[LinearRing] = []
    degenerate = 0

    while True:
        seed = adjacency.take_any()
        if seed is None:
            break

        forward: Point | None = seed.end
        backward: Point | None = seed.start
        forward_line: list[Point] = [seed.end]
        backward_line: list[Point] = [seed.start]

        while forward is not None or backward is not None:
            if forward is not None:
                nxt = adjacency.take_starting_at(forward)
                if nxt is None:
                    forward = None
                else:
                    forward = nxt.end
                    forward_line.append(forward)
            if backward is not None:
                prv = adjacency.take_ending_at(backward)
                if prv is None:
                    backward = None
                else:
                    backward = prv.start
                    backward_line.append(backward)

        backward_line.reverse()
        ring = LinearRing(tuple(backward_line + forward_line))
        if not ring.is_closed:
            raise AlgorithmInvariantViolation(
                "線分の鎖が閉じませんでした"
                f"（始点={ring.points[0]!r}, 終点={ring.points[-1]!r}）",
                level=level,
                cell=seed.cell,
            )
        if ring.is_degenerate:
            degenerate += 1
            continue
        rings.append(ring)

    if degenerate:
        logger.debug("面積 0 のリングを %d 本捨てました: level=%r", degenerate, level)
    return rings


def partition_rings(rings: Iterable[LinearRing]) -> tuple[list[LinearRing], list[LinearRing]]:
    """リング列を `(外周, 穴)` に分ける（それぞれ入力順を保つ）。"""

    exteriors: list[LinearRing] = []
    interiors: list[LinearRing] = []
    for ring in rings:
        if ring.is_interior:
            interiors.append(ring)
        else:
            exteriors.append(ring)
    return exteriors, interiors


__all__ = ["partition_rings", "trace_rings"]
