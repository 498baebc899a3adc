"""Marching Squares のセル分類と、向き付き線分の生成。

処理の全体像（読む順）
----------------------
1. パディング済みグリッドの全セルについて 4bit の case と saddle の flip を求める（Numba）
2. `SEGMENT_TABLE[case][flip]` からセル辺のペア（0〜2 本の線分）を引く
3. 各辺の交点を線形補間で求める（レベルに近い値・平坦な辺はグリッド点へスナップ）
4. グリッド位置をアフィン変換で出力座標へ写し、隣接マップへ挿入する

セルの角と case
---------------
`bl=(x,y)`, `br=(x+1,y)`, `tr=(x+1,y+1)`, `tl=(x,y+1)`。
レベル未満（strictly below）の角のビットを立てる: tl=8, tr=4, br=2, bl=1。

線分の向き
----------
グリッド空間では、線分の進行方向の左側が常に「レベル以上」の領域になる。
よって外周リングは反時計回り（`shoelace_sum() <= 0`）、穴は時計回りになる。
変換の行列式が負（north-up の GDAL 変換など）の場合は、出力空間で同じ規約になるよう
線分を反転して挿入する。

注意
----
隣接セルが共有する辺は、両セルで同じ A/B の順序・同じ補間式を通るように定義している。
交点座標のビット一致がリング復元の前提なので、式の等価変形もしない。
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass

import numpy as np
from numba import njit  # type: ignore[import-untyped]

from contourf.core.adjacency import AdjacencyMap, Cell
from contourf.core.grid import PaddedGrid
from contourf.core.transform import AffineTransform, Point

logger = logging.getLogger(__name__)

DEFAULT_EPSILON = 1e-5

CASE_EMPTY = 0b0000
CASE_FULL = 0b1111
SADDLE_CASES = (0b0101, 0b1010)


@dataclass(frozen=True, slots=True)
class CellEdge:
    """セルの 1 辺。`a`/`b` は辺の両端の角の、セル原点からのオフセット。"""

    name: str
    a: tuple[int, int]
    b: tuple[int, int]


BOTTOM = CellEdge("bottom", (0, 0), (1, 0))
LEFT = CellEdge("left", (0, 1), (0, 0))
RIGHT = CellEdge("right", (1, 1), (1, 0))
TOP = CellEdge("top", (0, 1), (1, 1))

_EdgePairs = tuple[tuple[CellEdge, CellEdge], ...]


def _same(*pairs: tuple[CellEdge, CellEdge]) -> tuple[_EdgePairs, _EdgePairs]:
    return (pairs, pairs)


# `SEGMENT_TABLE[case][flip]`。各線分は (始点の辺, 終点の辺)。
# saddle（0101/1010）は flip=0 でレベル以上の角がセル中心でつながり、
# flip=1 でレベル以上の角が個別に切り離される。
SEGMENT_TABLE: tuple[tuple[_EdgePairs, _EdgePairs], ...] = (
    _same(),  # 0000
    _same((LEFT, BOTTOM)),  # 0001
    _same((BOTTOM, RIGHT)),  # 0010
    _same((LEFT, RIGHT)),  # 0011
    _same((RIGHT, TOP)),  # 0100
    (
        ((LEFT, BOTTOM), (RIGHT, TOP)),
        ((LEFT, TOP), (RIGHT, BOTTOM)),
    ),  # 0101
    _same((BOTTOM, TOP)),  # 0110
    _same((LEFT, TOP)),  # 0111
    _same((TOP, LEFT)),  # 1000
    _same((TOP, BOTTOM)),  # 1001
    (
        ((TOP, LEFT), (BOTTOM, RIGHT)),
        ((BOTTOM, LEFT), (TOP, RIGHT)),
    ),  # 1010
    _same((TOP, RIGHT)),  # 1011
    _same((RIGHT, LEFT)),  # 1100
    _same((RIGHT, BOTTOM)),  # 1101
    _same((BOTTOM, LEFT)),  # 1110
    _same(),  # 1111
)


@njit(cache=True)
def _classify_cells_numba(values: np.ndarray, level: float) -> tuple[np.ndarray, np.ndarray]:
    """全セルの case と flip を求める。

    `values` は `[col, row]` のパディング済みグリッド。
    返り値はいずれも uint8 の shape `(cols-1, rows-1)`。
    """

    nx = int(values.shape[0]) - 1
    ny = int(values.shape[1]) - 1
    cases = np.zeros((nx, ny), dtype=np.uint8)
    flips = np.zeros((nx, ny), dtype=np.uint8)

    for x in range(nx):
        for y in range(ny):
            tl = float(values[x, y + 1])
            tr = float(values[x + 1, y + 1])
            br = float(values[x + 1, y])
            bl = float(values[x, y])

            idx = 0
            if tl < level:
                idx |= 8
            if tr < level:
                idx |= 4
            if br < level:
                idx |= 2
            if bl < level:
                idx |= 1
            cases[x, y] = idx

            # saddle のみ、4 角の平均（セル中心の近似値）で接続を決める。
            if idx == 5 or idx == 10:
                if (tl + tr + br + bl) / 4.0 < level:
                    flips[x, y] = 1

    return cases, flips


def classify_cells(padded: PaddedGrid, level: float) -> tuple[np.ndarray, np.ndarray]:
    """パディング済みグリッドの全セルを分類し、`(cases, flips)` を返す。"""

    return _classify_cells_numba(padded.values, float(level))


def classify_cell(tl: float, tr: float, br: float, bl: float, level: float) -> tuple[int, int]:
    """1 セル分の `(case, flip)` を返す（`classify_cells()` と同じ規則）。"""

    values = np.array([[bl, tl], [br, tr]], dtype=np.float64)
    cases, flips = _classify_cells_numba(values, float(level))
    return int(cases[0, 0]), int(flips[0, 0])


def interpolate_crossing(
    level: float,
    a: Point,
    b: Point,
    value_a: float,
    value_b: float,
    epsilon: float = DEFAULT_EPSILON,
) -> Point:
    """辺 A-B 上で値が `level` になる点を線形補間で返す。

    Notes
    -----
    - `level` が端点の値から `epsilon` 未満ならその端点へスナップする（A を優先）。
    - 両端の値がほぼ等しい（平坦な辺）なら A を返す。
    - どの分岐でも例外や NaN は出さない。
    """

    if abs(level - value_a) < epsilon:
        return a
    if abs(level - value_b) < epsilon:
        return b
    if abs(value_a - value_b) < epsilon:
        return a

    mu = (level - value_a) / (value_b - value_a)
    return (a[0] + mu * (b[0] - a[0]), a[1] + mu * (b[1] - a[1]))


def _edge_crossing(
    table: tuple[tuple[float, ...], ...],
    x: int,
    y: int,
    edge: CellEdge,
    level: float,
    epsilon: float,
) -> Point:
    ax = x + edge.a[0]
    ay = y + edge.a[1]
    bx = x + edge.b[0]
    by = y + edge.b[1]
    # パディング座標から元グリッドの位置へ（-1）。整数のまま引いてから float にする。
    return interpolate_crossing(
        level,
        (float(ax - 1), float(ay - 1)),
        (float(bx - 1), float(by - 1)),
        table[ax][ay],
        table[bx][by],
        epsilon,
    )


def generate_segments(
    padded: PaddedGrid,
    level: float,
    transform: AffineTransform,
    *,
    epsilon: float = DEFAULT_EPSILON,
) -> Iterator[tuple[Point, Point, Cell]]:
    """レベル `level` の向き付き線分を `(start, end, cell)` で列挙する。

    Parameters
    ----------
    padded : PaddedGrid
        パディング済みグリッド。
    level : float
        等値レベル。
    transform : AffineTransform
        グリッド位置から出力座標への変換。
    epsilon : float
        交点スナップの閾値。

    Notes
    -----
    - セルは x（列）外側・y（行）内側の順で走査する。
    - `cell` は元グリッドのインデックス空間でのセル原点 `(col, row)`。
      パディング部のセルでは -1 や `col_size` になり得る。
    - 始点と終点が一致する線分もそのまま返す（隣接マップ側で捨てる）。
    """

    level_f = float(level)
    cases, flips = classify_cells(padded, level_f)
    table = padded.table
    reverse = transform.flips_orientation

    active = (cases != CASE_EMPTY) & (cases != CASE_FULL)
    xs, ys = np.nonzero(active)
    for x, y in zip(xs.tolist(), ys.tolist()):
        pairs = SEGMENT_TABLE[int(cases[x, y])][int(flips[x, y])]
        cell = (x - 1, y - 1)
        for start_edge, end_edge in pairs:
            start = transform.apply(*_edge_crossing(table, x, y, start_edge, level_f, epsilon))
            end = transform.apply(*_edge_crossing(table, x, y, end_edge, level_f, epsilon))
            if reverse:
                yield end, start, cell
            else:
                yield start, end, cell


def build_adjacency_map(
    padded: PaddedGrid,
    level: float,
    transform: AffineTransform,
    *,
    epsilon: float = DEFAULT_EPSILON,
) -> AdjacencyMap:
    """1 レベル分の線分を生成し、新しい `AdjacencyMap` に詰めて返す。"""

    adjacency = AdjacencyMap()
    emitted = 0
    for start, end, cell in generate_segments(padded, level, transform, epsilon=epsilon):
        adjacency.insert(start, end, cell)
        emitted += 1
    dropped = emitted - adjacency.inserted_count
    if dropped:
        logger.debug("長さ 0 の線分を %d 本捨てました: level=%r", dropped, level)
    return adjacency


__all__ = [
    "BOTTOM",
    "CASE_EMPTY",
    "CASE_FULL",
    "CellEdge",
    "DEFAULT_EPSILON",
    "LEFT",
    "RIGHT",
    "SADDLE_CASES",
    "SEGMENT_TABLE",
    "TOP",
    "build_adjacency_map",
    "classify_cell",
    "classify_cells",
    "generate_segments",
    "interpolate_crossing",
]
