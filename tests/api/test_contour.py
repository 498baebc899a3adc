"""公開 API（contour / contour_raster）のテスト群。"""

from __future__ import annotations

import numpy as np
import pytest

import contourf
from contourf import (
    ArrayRasterSource,
    ConfigurationError,
    MemorySink,
    RasterSource,
    SampleGrid,
    contour,
    contour_raster,
)
from contourf.core.runtime_config import set_config_path


@pytest.fixture(autouse=True)
def _reset_runtime_config() -> None:
    set_config_path(None)
    yield
    set_config_path(None)


class _ExplodingSource:
    geotransform = (0.0, 1.0, 0.0, 0.0, 0.0, 1.0)

    def read_grid(self) -> SampleGrid:
        raise AssertionError("read_grid は呼ばれないはず")


def _rows_with_peak() -> list[list[float]]:
    # 行優先（rows[row][col]）。ピークは col=3, row=1
    return [
        [0.0, 0.0, 0.0, 0.0, 0.0],
        [0.0, 0.0, 0.0, 10.0, 0.0],
        [0.0, 0.0, 0.0, 0.0, 0.0],
    ]


def test_contour_defaults_to_identity_transform() -> None:
    grid = SampleGrid([[0.0, 0.0, 0.0], [0.0, 10.0, 0.0], [0.0, 0.0, 0.0]])
    result = contour(grid, [5.0], executor="serial")

    assert len(result) == 1
    assert set(result[0][0].exterior.points) == {(1.0, 1.5), (1.5, 1.0), (2.0, 1.5), (1.5, 2.0)}


def test_contour_accepts_plain_arrays() -> None:
    grid = np.zeros((4, 4))
    grid[1:3, 1:3] = 4.0
    result = contour(grid, np.array([2.0, 8.0]), (0.0, 1.0, 0.0, 0.0, 0.0, 1.0), executor="thread")

    assert len(result[0]) == 1
    assert result[1] == []


def test_contour_raster_writes_every_level_in_order() -> None:
    source = ArrayRasterSource(_rows_with_peak(), geotransform=(10.0, 1.0, 0.0, 20.0, 0.0, -1.0))
    sink = MemorySink()

    result = contour_raster(source, [5.0, 50.0, 1.0], sink, executor="serial")

    assert [lv for lv, _ in sink.levels] == [5.0, 50.0, 1.0]
    assert [len(polys) for _, polys in sink.levels] == [1, 0, 1]
    assert [len(r) for r in result] == [1, 0, 1]
    # ピーク（col=3, row=1）の上下左右の中点
    assert set(sink.polygons_at(5.0)[0].exterior.points) == {
        (13.0, 18.5),
        (14.0, 18.5),
        (13.5, 19.0),
        (13.5, 18.0),
    }


def test_contour_raster_can_skip_empty_levels() -> None:
    sink = MemorySink()
    contour_raster(ArrayRasterSource(_rows_with_peak()), [50.0, 5.0], sink, skip_empty=True)

    assert [lv for lv, _ in sink.levels] == [5.0]


def test_contour_raster_validates_before_reading_source() -> None:
    source = _ExplodingSource()
    assert isinstance(source, RasterSource)

    with pytest.raises(ConfigurationError):
        contour_raster(source, [], MemorySink())
    with pytest.raises(ConfigurationError):
        contour_raster(source, [float("nan")], MemorySink())


def test_contour_raster_rejects_bad_geotransform_before_reading() -> None:
    source = _ExplodingSource()
    source.geotransform = (0.0, 1.0, 0.0)  # type: ignore[misc]
    with pytest.raises(ConfigurationError):
        contour_raster(source, [1.0], MemorySink())


def test_package_exports_public_api() -> None:
    for name in contourf.__all__:
        assert hasattr(contourf, name)
