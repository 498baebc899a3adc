# どこで: `src/contourf/core/transform.py`。
# 何を: グリッド位置 (x, y) を出力座標 (X, Y) へ写すアフィン変換（GDAL geotransform 順）。
# なぜ: 点の同一性（ビット一致）を保つため、座標変換の式を 1 箇所に固定するため。

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

from contourf.core.errors import ConfigurationError

Point = tuple[float, float]


@dataclass(frozen=True, slots=True)
class AffineTransform:
    """GDAL 順 `(c, a, b, f, d, e)` のアフィン変換。

    `X = c + a*(x+0.5) + b*(y+0.5)`, `Y = f + d*(x+0.5) + e*(y+0.5)`。
    0.5 のオフセットでサンプルをセル中心に置く。
    """

    c: float
    a: float
    b: float
    f: float
    d: float
    e: float

    @classmethod
    def from_gdal(cls, coefficients: Sequence[float]) -> AffineTransform:
        """6 要素の geotransform から変換を作る。

        Raises
        ------
        ConfigurationError
            要素数が 6 でない、非有限値を含む、または線形部が特異な場合。
        """

        try:
            values = [float(v) for v in coefficients]
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(
                f"geotransform は数値列である必要がある: got={coefficients!r}"
            ) from exc
        if len(values) != 6:
            raise ConfigurationError(
                "geotransform は GDAL 順 (c,a,b,f,d,e) の 6 要素である必要がある"
                f": got={len(values)} 要素"
            )
        if not all(math.isfinite(v) for v in values):
            raise ConfigurationError(f"geotransform は有限値である必要がある: got={values!r}")
        out = cls(*values)
        if out.determinant == 0.0:
            raise ConfigurationError(f"geotransform の線形部が特異です: got={values!r}")
        return out

    @classmethod
    def identity(cls) -> AffineTransform:
        return cls(0.0, 1.0, 0.0, 0.0, 0.0, 1.0)

    @property
    def determinant(self) -> float:
        return self.a * self.e - self.b * self.d

    @property
    def flips_orientation(self) -> bool:
        """変換で向き（回転方向）が反転するなら True。"""

        return self.determinant < 0.0

    def apply(self, x: float, y: float) -> Point:
        # 共有される点は必ずこの式を通す。等価でも別の式に書き換えない。
        return (
            self.c + self.a * (x + 0.5) + self.b * (y + 0.5),
            self.f + self.d * (x + 0.5) + self.e * (y + 0.5),
        )


__all__ = ["AffineTransform", "Point"]
