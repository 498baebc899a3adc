"""
どこで: `src/contourf/export/sink.py`。
何を: レベルごとのポリゴン列を受け取る Vector Sink の契約と、メモリ上の実装を提供する。
なぜ: 具体的なファイル形式（GeoJSON / Shapefile / MBTiles など）への書き出しをコアから切り離すため。
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from contourf.core.errors import ConfigurationError
from contourf.core.geometry import Polygon


@runtime_checkable
class VectorSink(Protocol):
    """レベルごとのポリゴン列を受け取る出力先。"""

    def write_level(self, level: float, polygons: Sequence[Polygon]) -> None: ...


@dataclass(slots=True)
class MemorySink:
    """`write_level()` の呼び出しをそのまま記録する sink（テスト・後段処理用）。"""

    levels: list[tuple[float, list[Polygon]]] = field(default_factory=list)

    def write_level(self, level: float, polygons: Sequence[Polygon]) -> None:
        self.levels.append((float(level), list(polygons)))

    def polygons_at(self, level: float) -> list[Polygon]:
        """`level` に書かれたポリゴンを（複数回あれば連結して）返す。"""

        out: list[Polygon] = []
        for lv, polygons in self.levels:
            if lv == float(level):
                out.extend(polygons)
        return out


def polygon_feature(polygon: Polygon, level: float) -> dict[str, Any]:
    """ポリゴン 1 つを geo-interface 形式の Feature mapping にして返す。"""

    return {
        "type": "Feature",
        "geometry": polygon.__geo_interface__,
        "properties": {"level": float(level)},
    }


def level_features(level: float, polygons: Sequence[Polygon]) -> list[dict[str, Any]]:
    return [polygon_feature(p, level) for p in polygons]


def export_contours(
    contour_set: Sequence[Sequence[Polygon]],
    levels: Sequence[float],
    sink: VectorSink,
    *,
    skip_empty: bool = False,
) -> int:
    """レベル結果列を入力順に sink へ渡し、書き出したレベル数を返す。

    Parameters
    ----------
    contour_set : Sequence[Sequence[Polygon]]
        `contour_levels()` の戻り値。
    levels : Sequence[float]
        `contour_set` と同じ順序のレベル列。
    sink : VectorSink
        出力先。
    skip_empty : bool, default False
        True のとき、ポリゴンが空のレベルは sink に渡さない。
    """

    if len(contour_set) != len(levels):
        raise ConfigurationError(
            "contour_set と levels の長さが一致しません"
            f": contour_set={len(contour_set)}, levels={len(levels)}"
        )
    written = 0
    for level, polygons in zip(levels, contour_set):
        if skip_empty and not polygons:
            continue
        sink.write_level(float(level), list(polygons))
        written += 1
    return written


__all__ = [
    "MemorySink",
    "VectorSink",
    "export_contours",
    "level_features",
    "polygon_feature",
]
