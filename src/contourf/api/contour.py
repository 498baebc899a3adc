"""
どこで: `src/contourf/api/contour.py`。
何を: グリッド（またはラスタソース）から等値ポリゴンを作る公開エントリポイント。
なぜ: 入力の読み込み・出力の書き出しをコアの外側の協調オブジェクトに任せ、導線を 1 本にまとめるため。
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

import numpy as np

from contourf.core.grid import SampleGrid
from contourf.core.scheduler import ContourSet, contour_levels, validate_levels
from contourf.core.transform import AffineTransform
from contourf.export.sink import VectorSink, export_contours


@runtime_checkable
class RasterSource(Protocol):
    """等値線抽出に必要な「グリッド」と「変換」を提供する入力元。

    no-data は極端な値としてグリッドに含めるか、ソース側で処理する（コアはマスクを解釈しない）。
    """

    @property
    def geotransform(self) -> Sequence[float]: ...

    def read_grid(self) -> SampleGrid: ...


@dataclass(frozen=True, slots=True)
class ArrayRasterSource:
    """行優先の配列（`rows[row][col]`）をラスタとして扱うメモリ上のソース。"""

    rows: Any
    geotransform: tuple[float, float, float, float, float, float] = (0.0, 1.0, 0.0, 0.0, 0.0, 1.0)

    def read_grid(self) -> SampleGrid:
        return SampleGrid.from_rows(np.asarray(self.rows, dtype=np.float64))


def contour(
    grid: SampleGrid | Any,
    levels: Sequence[float] | np.ndarray,
    geotransform: AffineTransform | Sequence[float] | None = None,
    *,
    executor: str | None = None,
    max_workers: int | None = None,
    epsilon: float | None = None,
) -> ContourSet:
    """グリッドの等値ポリゴンをレベルごとに返す。

    Parameters
    ----------
    grid : SampleGrid or array-like
        `[col][row]` のサンプルグリッド。
    levels : Sequence[float]
        等値レベル列。
    geotransform : AffineTransform or Sequence[float] or None
        GDAL 順の変換。None は恒等変換（`(0, 1, 0, 0, 0, 1)`）。

    Returns
    -------
    list[list[Polygon]]
        `levels` と同じ順序のレベル結果列。
    """

    transform = AffineTransform.identity() if geotransform is None else geotransform
    return contour_levels(
        grid,
        levels,
        transform,
        executor=executor,
        max_workers=max_workers,
        epsilon=epsilon,
    )


def contour_raster(
    source: RasterSource,
    levels: Sequence[float] | np.ndarray,
    sink: VectorSink,
    *,
    skip_empty: bool = False,
    executor: str | None = None,
    max_workers: int | None = None,
    epsilon: float | None = None,
) -> ContourSet:
    """ソースを読み、等値ポリゴンを計算して sink に書き、計算結果も返す。

    レベルと変換は読み込み前に検証するため、不正な入力ではソースを読まない。
    """

    level_list = validate_levels(levels)
    transform = AffineTransform.from_gdal(source.geotransform)
    grid = source.read_grid()
    result = contour_levels(
        grid,
        level_list,
        transform,
        executor=executor,
        max_workers=max_workers,
        epsilon=epsilon,
    )
    export_contours(result, level_list, sink, skip_empty=skip_empty)
    return result


__all__ = ["ArrayRasterSource", "RasterSource", "contour", "contour_raster"]
