"""出力座標空間のリング/ポリゴン表現と、符号付き面積による向き判定。

- `LinearRing`: 閉じた点列（先頭と末尾が一致、first == last）
- `Polygon`: 外周リング 1 本 + 穴リング 0 本以上

向きの規約
----------
`shoelace_sum()` は `Σ (x1-x0)(y1+y0)` を返す（数学座標で時計回りなら正）。
正なら穴（interior）、0 以下なら外周（exterior）とする。
この符号はセル分類の線分テーブルの向きと対になっているため、片方だけを変更してはいけない。
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from contourf.core.transform import Point


def shoelace_sum(points: Sequence[Point]) -> float:
    """靴紐公式の和 `Σ (x1-x0)(y1+y0)` を返す。

    末尾から先頭へ戻るペアも含めて足すため、閉じていない点列でも、
    開始点をずらした（回転した）点列でも同じ値になる。閉じた点列では末尾ペアの寄与は 0。
    """

    n = len(points)
    if n < 2:
        return 0.0
    total = 0.0
    x0, y0 = points[-1]
    for x1, y1 in points:
        total += (x1 - x0) * (y1 + y0)
        x0, y0 = x1, y1
    return total


@dataclass(frozen=True, slots=True)
class LinearRing:
    """閉じたリング。`points[0] == points[-1]` を契約とする。"""

    points: tuple[Point, ...]

    def __len__(self) -> int:
        return len(self.points)

    @property
    def is_closed(self) -> bool:
        return len(self.points) >= 2 and self.points[0] == self.points[-1]

    @property
    def distinct_point_count(self) -> int:
        return len(set(self.points))

    @property
    def is_degenerate(self) -> bool:
        """異なる点が 3 未満（面積 0）なら True。"""

        return self.distinct_point_count < 3

    def shoelace_sum(self) -> float:
        return shoelace_sum(self.points)

    @property
    def is_interior(self) -> bool:
        # 保持せず毎回計算する（リングの点列だけが真実）。
        return self.shoelace_sum() > 0.0

    def area(self) -> float:
        """絶対面積を返す。"""

        return abs(self.shoelace_sum()) * 0.5

    def bounds(self) -> tuple[float, float, float, float]:
        """`(min_x, min_y, max_x, max_y)` を返す。"""

        xs = [p[0] for p in self.points]
        ys = [p[1] for p in self.points]
        return min(xs), min(ys), max(xs), max(ys)

    def reversed(self) -> LinearRing:
        return LinearRing(tuple(reversed(self.points)))


@dataclass(frozen=True, slots=True)
class Polygon:
    """外周リングと穴リング列からなるポリゴン。

    Notes
    -----
    穴は外周に含まれ、同じポリゴンの他の穴には含まれない（`assemble_polygons()` が保証する）。
    """

    exterior: LinearRing
    interiors: tuple[LinearRing, ...] = ()

    @property
    def rings(self) -> tuple[LinearRing, ...]:
        return (self.exterior, *self.interiors)

    @property
    def __geo_interface__(self) -> dict[str, Any]:
        return {
            "type": "Polygon",
            "coordinates": tuple(
                tuple((float(x), float(y)) for x, y in ring.points) for ring in self.rings
            ),
        }


__all__ = ["LinearRing", "Polygon", "shoelace_sum"]
