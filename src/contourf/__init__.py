"""contourf: ラスタグリッドから塗りつぶし等値線（穴あきポリゴン）を作る。

公開 API は `contour()` と `contour_raster()`。
"""

from __future__ import annotations

from contourf.api.contour import ArrayRasterSource, RasterSource, contour, contour_raster
from contourf.core.errors import (
    AlgorithmInvariantViolation,
    ConfigurationError,
    ContourError,
    LevelContourError,
)
from contourf.core.geometry import LinearRing, Polygon
from contourf.core.grid import SampleGrid
from contourf.core.runtime_config import set_config_path
from contourf.core.transform import AffineTransform
from contourf.export.sink import MemorySink, VectorSink

__all__ = [
    "AffineTransform",
    "AlgorithmInvariantViolation",
    "ArrayRasterSource",
    "ConfigurationError",
    "ContourError",
    "LevelContourError",
    "LinearRing",
    "MemorySink",
    "Polygon",
    "RasterSource",
    "SampleGrid",
    "VectorSink",
    "contour",
    "contour_raster",
    "set_config_path",
]
