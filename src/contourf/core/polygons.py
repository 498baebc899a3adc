"""外周リングと穴リングを組み合わせてポリゴン（穴あき）を作る。

包含判定の方針
--------------
穴の頂点が 1 つも外周の「厳密に外側」に無ければ、穴は外周に含まれるとみなす。
外周の頂点上・辺上にある穴頂点は「含まれる」側に数える（境界接触を許容する）。
等値線由来のリング同士は交差しないので、穴は外周の完全に内側か完全に外側にあり、
接するとすればスナップされた格子点で接する。

割り当ての方針
--------------
1 つの穴を含む外周が複数ある（山の中の窪地の中の山…と入れ子になっている）場合は、
面積が最小の外周に割り当てる。最初に見つかった外周へ割り当てると、
内側の外周が持つべき穴を外側の外周が持ってしまうため。
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import numpy as np
from numba import njit  # type: ignore[import-untyped]

from contourf.core.geometry import LinearRing, Polygon
from contourf.core.rings import partition_rings

logger = logging.getLogger(__name__)


def _ring_xy(ring: LinearRing) -> np.ndarray:
    return np.asarray(ring.points, dtype=np.float64).reshape(-1, 2)


@njit(cache=True)
def _point_location_numba(ring_xy: np.ndarray, px: float, py: float) -> int:
    """点とリングの位置関係を返す（1: 内側, 0: 境界上, -1: 外側）。

    Notes
    -----
    - `ring_xy` は閉じた頂点列（first == last）。
    - 境界判定は外積 0 かつ線分の AABB 内（float の厳密比較）。
    - 内外判定は even-odd（半直線との交差回数の偶奇）。
    """

    n = int(ring_xy.shape[0])
    inside = False
    for k in range(n - 1):
        ax = float(ring_xy[k, 0])
        ay = float(ring_xy[k, 1])
        bx = float(ring_xy[k + 1, 0])
        by = float(ring_xy[k + 1, 1])

        if (px == ax and py == ay) or (px == bx and py == by):
            return 0
        cross = (bx - ax) * (py - ay) - (by - ay) * (px - ax)
        if cross == 0.0:
            if min(ax, bx) <= px <= max(ax, bx) and min(ay, by) <= py <= max(ay, by):
                return 0

        if (ay > py) == (by > py):
            continue
        x_int = ax + (py - ay) * (bx - ax) / (by - ay)
        if px < x_int:
            inside = not inside

    if inside:
        return 1
    return -1


@njit(cache=True)
def _any_point_outside_numba(ring_xy: np.ndarray, points_xy: np.ndarray) -> bool:
    """`points_xy` のいずれかが `ring_xy` の厳密に外側なら True。"""

    for i in range(int(points_xy.shape[0])):
        if _point_location_numba(ring_xy, float(points_xy[i, 0]), float(points_xy[i, 1])) < 0:
            return True
    return False


def _bounds_cover(outer: tuple[float, float, float, float], inner: tuple[float, float, float, float]) -> bool:
    return (
        outer[0] <= inner[0]
        and outer[1] <= inner[1]
        and outer[2] >= inner[2]
        and outer[3] >= inner[3]
    )


def ring_contains(exterior: LinearRing, hole: LinearRing) -> bool:
    """`hole` が `exterior` に含まれるなら True（境界接触は含まれる扱い）。"""

    if not _bounds_cover(exterior.bounds(), hole.bounds()):
        return False
    return not _any_point_outside_numba(_ring_xy(exterior), _ring_xy(hole))


def attach_holes(
    exteriors: Sequence[LinearRing],
    interiors: Sequence[LinearRing],
) -> tuple[list[Polygon], list[LinearRing]]:
    """穴を外周へ割り当て、`(ポリゴン列, 割り当てられなかった穴)` を返す。

    ポリゴンは `exteriors` の順、各ポリゴンの穴は `interiors` の順に並ぶ。
    """

    ext_bounds = [ring.bounds() for ring in exteriors]
    ext_xy: list[np.ndarray | None] = [None] * len(exteriors)
    ext_area = [ring.area() for ring in exteriors]
    owned: list[list[LinearRing]] = [[] for _ in exteriors]
    orphans: list[LinearRing] = []

    for hole in interiors:
        hole_bounds = hole.bounds()
        hole_xy = _ring_xy(hole)
        best = -1
        for i, exterior in enumerate(exteriors):
            if not _bounds_cover(ext_bounds[i], hole_bounds):
                continue
            if best >= 0 and ext_area[i] >= ext_area[best]:
                continue
            xy = ext_xy[i]
            if xy is None:
                xy = _ring_xy(exterior)
                ext_xy[i] = xy
            if not _any_point_outside_numba(xy, hole_xy):
                best = i
        if best < 0:
            orphans.append(hole)
        else:
            owned[best].append(hole)

    polygons = [
        Polygon(exterior=exterior, interiors=tuple(holes))
        for exterior, holes in zip(exteriors, owned)
    ]
    return polygons, orphans


def assemble_polygons(rings: Sequence[LinearRing], *, level: float | None = None) -> list[Polygon]:
    """リング列を外周/穴に分け、穴あきポリゴン列を組み立てる。

    Notes
    -----
    どの外周にも含まれない穴は警告を出して捨てる（パディング済みグリッドでは起きない）。
    """

    exteriors, interiors = partition_rings(rings)
    polygons, orphans = attach_holes(exteriors, interiors)
    if orphans:
        logger.warning(
            "外周に含まれない穴を %d 本捨てました: level=%r", len(orphans), level
        )
    return polygons


__all__ = ["assemble_polygons", "attach_holes", "ring_contains"]
