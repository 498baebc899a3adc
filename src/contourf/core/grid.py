# どこで: `src/contourf/core/grid.py`。
# 何を: サンプルグリッドと、番兵値で 1 セル分囲んだパディング済みグリッドを提供する。
# なぜ: ラスタ端で途切れる等値線を、必ず閉じたリングとして復元できるようにするため。

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np

from contourf.core.errors import ConfigurationError

PAD_VALUE = -float(np.finfo(np.float64).max)
"""パディングに使う番兵値。実サンプルのどれよりも十分に小さい。"""


def _as_readonly_grid(values: Any, *, context: str) -> np.ndarray:
    """2 次元 float64 配列へ正規化し、書き込み不可のコピーを返す。"""

    try:
        arr = np.array(values, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{context}: 数値の 2 次元配列である必要がある") from exc
    if arr.ndim != 2:
        raise ConfigurationError(
            f"{context}: 2 次元配列である必要がある: shape={arr.shape}"
        )
    if arr.shape[0] < 1 or arr.shape[1] < 1:
        raise ConfigurationError(f"{context}: 空のグリッドは扱えない: shape={arr.shape}")
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True, slots=True)
class SampleGrid:
    """等値線抽出の入力となる 2 次元サンプル列。

    Parameters
    ----------
    values : np.ndarray
        float64 型 shape `(col_size, row_size)` の配列。`values[col, row]` で参照する。

    Notes
    -----
    不変性を契約とし、配列は writeable=False のコピーとして保持する。
    ラスタバンドのような行優先データ（`rows[row][col]`）は `from_rows()` で転置して渡す。
    """

    values: np.ndarray

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", _as_readonly_grid(self.values, context="SampleGrid"))

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[float]] | np.ndarray) -> SampleGrid:
        """行優先（`rows[row][col]`）のラスタデータからグリッドを作る。"""

        arr = _as_readonly_grid(rows, context="SampleGrid.from_rows")
        return cls(np.ascontiguousarray(arr.T))

    @property
    def col_size(self) -> int:
        return int(self.values.shape[0])

    @property
    def row_size(self) -> int:
        return int(self.values.shape[1])

    def value(self, col: int, row: int) -> float:
        """`(col, row)` のサンプル値を返す（範囲外は IndexError）。"""

        c = int(col)
        r = int(row)
        if not (0 <= c < self.col_size and 0 <= r < self.row_size):
            raise IndexError(
                f"グリッド範囲外です: (col, row)=({c}, {r}), size=({self.col_size}, {self.row_size})"
            )
        return float(self.values[c, r])

    def value_range(self) -> tuple[float, float]:
        """サンプル値の `(min, max)` を返す（NaN は無視する）。"""

        return float(np.nanmin(self.values)), float(np.nanmax(self.values))


@dataclass(frozen=True, slots=True)
class PaddedGrid:
    """外周 1 セルを `PAD_VALUE` で囲んだグリッド。

    Notes
    -----
    - shape は `(col_size + 2, row_size + 2)`。
    - パディング座標 `p` は元グリッドの位置 `p - 1` に対応する。
    - 内部の `-inf` と NaN は `PAD_VALUE`、`+inf` は `-PAD_VALUE` に置き換える。
    - `table` は `values.tolist()` の結果で、セル走査時の Python float 参照に使う。
      値は配列と同一のビット列なので、補間結果の一致性は崩れない。
    """

    source: SampleGrid
    values: np.ndarray
    table: tuple[tuple[float, ...], ...]
    sample_range: tuple[float, float]

    @classmethod
    def from_grid(cls, grid: SampleGrid) -> PaddedGrid:
        """`SampleGrid` の四辺を番兵値で囲んだグリッドを作る。"""

        padded = np.full(
            (grid.col_size + 2, grid.row_size + 2), PAD_VALUE, dtype=np.float64
        )
        # 補間に非有限値を持ち込まない。NaN は no-data としてラスタ外と同じ扱いにする。
        interior = np.nan_to_num(
            grid.values, nan=PAD_VALUE, posinf=-PAD_VALUE, neginf=PAD_VALUE
        )
        padded[1:-1, 1:-1] = interior
        padded.setflags(write=False)
        table = tuple(tuple(col) for col in padded.tolist())
        sample_range = (float(interior.min()), float(interior.max()))
        return cls(source=grid, values=padded, table=table, sample_range=sample_range)

    def crosses(self, level: float) -> bool:
        """元グリッドの内部で `level` をまたぐなら True。

        レベル未満のサンプルが 1 つも無い、または全サンプルがレベル未満の場合は False。
        前者では番兵との境界（ラスタの外枠）にしか線が出ず、後者では線が出ない。
        どちらもラスタ内部に等値線が無いので、そのレベルの結果は空とする。
        """

        lo, hi = self.sample_range
        return lo < level <= hi

    @property
    def col_size(self) -> int:
        return int(self.values.shape[0])

    @property
    def row_size(self) -> int:
        return int(self.values.shape[1])

    @property
    def cell_count(self) -> int:
        return (self.col_size - 1) * (self.row_size - 1)

    def value(self, col: int, row: int) -> float:
        """パディング座標 `(col, row)` の値を返す（範囲外は IndexError）。"""

        c = int(col)
        r = int(row)
        if not (0 <= c < self.col_size and 0 <= r < self.row_size):
            raise IndexError(
                f"パディング済みグリッド範囲外です: (col, row)=({c}, {r}), "
                f"size=({self.col_size}, {self.row_size})"
            )
        return self.table[c][r]


__all__ = ["PAD_VALUE", "PaddedGrid", "SampleGrid"]
