"""
どこで: `src/contourf/core/scheduler.py`。
何を: 等値レベルごとのパイプライン（線分生成 → リング復元 → ポリゴン化）を並列に実行し、入力順に集める。
なぜ: レベル同士は独立で、共有するのは読み取り専用のグリッドと変換だけなので、ロックなしで並列化できるため。

メインフロー
------------
1. 入力（グリッド / レベル列 / 変換）を検証する。不正なら計算前に `ConfigurationError`。
2. パディング済みグリッドを 1 回だけ作る。
3. レベル 1 つにつき 1 タスクを投入する（thread / process / serial）。
4. 結果は完了順ではなく、レベルの入力順（future のリスト順）で集める。

設計上のポイント
----------------
- 各タスクは自分専用の `AdjacencyMap` / リング列 / ポリゴン列だけを書き換える。
- 1 レベルでも失敗したら残りをキャンセルし、全体を失敗させる（部分結果は返さない）。
- `process` は `"spawn"` コンテキストを使う。worker は initializer で受け取った
  グリッドと変換をモジュールグローバルに保持し、レベルだけを受け取って計算する。
"""

from __future__ import annotations

import logging
import math
import multiprocessing as mp
import os
from collections.abc import Callable, Sequence
from concurrent.futures import Executor, Future, ProcessPoolExecutor, ThreadPoolExecutor
from typing import Any

import numpy as np

from contourf.core.cells import DEFAULT_EPSILON, build_adjacency_map
from contourf.core.errors import ConfigurationError, ContourError, LevelContourError
from contourf.core.geometry import Polygon
from contourf.core.grid import PaddedGrid, SampleGrid
from contourf.core.polygons import assemble_polygons
from contourf.core.rings import trace_rings
from contourf.core.runtime_config import (
    runtime_config,
    validate_epsilon,
    validate_executor,
    validate_max_workers,
)
from contourf.core.transform import AffineTransform

logger = logging.getLogger(__name__)

LevelResult = list[Polygon]
ContourSet = list[LevelResult]


def contour_level(
    padded: PaddedGrid,
    level: float,
    transform: AffineTransform,
    *,
    epsilon: float = DEFAULT_EPSILON,
) -> LevelResult:
    """1 レベル分のポリゴン列を逐次計算して返す。"""

    level_f = float(level)
    logger.debug("等値レベルを計算します: level=%r", level_f)
    if not padded.crosses(level_f):
        logger.info("level=%r: ラスタ内に等値線がありません", level_f)
        return []

    adjacency = build_adjacency_map(padded, level_f, transform, epsilon=epsilon)
    n_segments = adjacency.inserted_count
    rings = trace_rings(adjacency, level=level_f)
    polygons = assemble_polygons(rings, level=level_f)
    logger.info(
        "level=%r: segments=%d rings=%d polygons=%d",
        level_f,
        n_segments,
        len(rings),
        len(polygons),
    )
    return polygons


def validate_levels(levels: Sequence[float] | np.ndarray | None) -> list[float]:
    """レベル列を float の list に正規化する（空・非有限値は ConfigurationError）。"""

    if levels is None:
        raise ConfigurationError("levels は空でない数値列である必要がある: got=None")
    try:
        out = [float(v) for v in np.asarray(levels, dtype=np.float64).reshape(-1)]
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"levels は数値列である必要がある: got={levels!r}") from exc
    if not out:
        raise ConfigurationError("levels は空でない数値列である必要がある")
    bad = [v for v in out if not math.isfinite(v)]
    if bad:
        raise ConfigurationError(f"levels は有限値である必要がある: got={bad!r}")
    return out


# --- process executor 用の worker 状態 ---
# worker プロセス内でのみ設定される（メインプロセスでは常に None）。
_WORKER_STATE: tuple[PaddedGrid, AffineTransform, float] | None = None


def _init_worker(padded: PaddedGrid, transform: AffineTransform, epsilon: float) -> None:
    global _WORKER_STATE
    _WORKER_STATE = (padded, transform, float(epsilon))


def _contour_level_in_worker(level: float) -> LevelResult:
    state = _WORKER_STATE
    if state is None:
        raise RuntimeError("worker が初期化されていません")
    padded, transform, epsilon = state
    return contour_level(padded, level, transform, epsilon=epsilon)


def _run_serial(
    padded: PaddedGrid,
    levels: list[float],
    transform: AffineTransform,
    epsilon: float,
) -> ContourSet:
    out: ContourSet = []
    for index, level in enumerate(levels):
        try:
            out.append(contour_level(padded, level, transform, epsilon=epsilon))
        except ContourError:
            raise
        except Exception as exc:
            raise LevelContourError(level=level, index=index) from exc
    return out


def _collect_in_order(futures: list[Future[LevelResult]], levels: list[float]) -> ContourSet:
    """future をレベルの入力順に待ち、失敗があれば残りをキャンセルして送出する。"""

    out: ContourSet = []
    try:
        for index, fut in enumerate(futures):
            try:
                out.append(fut.result())
            except ContourError:
                raise
            except Exception as exc:
                raise LevelContourError(level=levels[index], index=index) from exc
    except BaseException:
        for fut in futures:
            fut.cancel()
        raise
    return out


def _make_executor(
    mode: str,
    max_workers: int | None,
    padded: PaddedGrid,
    transform: AffineTransform,
    epsilon: float,
) -> tuple[Executor, Callable[[float], Any]]:
    if mode == "process":
        pool = ProcessPoolExecutor(
            max_workers=max_workers,
            mp_context=mp.get_context("spawn"),
            initializer=_init_worker,
            initargs=(padded, transform, float(epsilon)),
        )
        return pool, _contour_level_in_worker

    pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="contourf-level")

    def _task(level: float) -> LevelResult:
        return contour_level(padded, level, transform, epsilon=epsilon)

    return pool, _task


def contour_levels(
    grid: SampleGrid | Any,
    levels: Sequence[float] | np.ndarray,
    transform: AffineTransform | Sequence[float],
    *,
    executor: str | None = None,
    max_workers: int | None = None,
    epsilon: float | None = None,
) -> ContourSet:
    """複数レベルの等値ポリゴンを計算し、レベルの入力順に並べて返す。

    Parameters
    ----------
    grid : SampleGrid or array-like
        `[col][row]` のサンプルグリッド。
    levels : Sequence[float]
        等値レベル列（重複・未ソート可）。
    transform : AffineTransform or Sequence[float]
        グリッド位置から出力座標への変換（GDAL 順の 6 要素でもよい）。
    executor : str or None
        `"thread"` / `"process"` / `"serial"`。None なら `config.yaml` の値。
    max_workers : int or None
        worker 数の上限。None なら `config.yaml` の値（null なら CPU 数）。
        レベル数でも頭打ちにし、結果が 1 になれば serial で実行する。
    epsilon : float or None
        交点スナップの閾値。None なら `config.yaml` の値。

    Returns
    -------
    list[list[Polygon]]
        `levels` と同じ長さ・同じ順序のレベル結果列。

    Raises
    ------
    ConfigurationError
        入力が不正な場合（計算開始前）。
    AlgorithmInvariantViolation
        いずれかのレベルでリング復元の不整合を検出した場合。
    LevelContourError
        いずれかのレベルが予期しない例外で失敗した場合。
    """

    level_list = validate_levels(levels)
    if not isinstance(transform, AffineTransform):
        transform = AffineTransform.from_gdal(transform)
    if not isinstance(grid, SampleGrid):
        grid = SampleGrid(grid)

    if executor is None or epsilon is None or max_workers is None:
        cfg = runtime_config()
        executor = cfg.executor if executor is None else executor
        epsilon = cfg.epsilon if epsilon is None else epsilon
        max_workers = cfg.max_workers if max_workers is None else max_workers
    mode = validate_executor(executor, key="executor")
    eps = validate_epsilon(epsilon, key="epsilon")
    workers = validate_max_workers(max_workers, key="max_workers")

    padded = PaddedGrid.from_grid(grid)
    # worker はレベル数より多く起動しない（spawn の起動コストが無駄になる）。
    workers = min(workers if workers is not None else (os.cpu_count() or 1), len(level_list))
    if workers == 1:
        mode = "serial"

    logger.debug(
        "contour_levels: grid=%dx%d levels=%d executor=%s max_workers=%r",
        grid.col_size,
        grid.row_size,
        len(level_list),
        mode,
        workers,
    )

    if mode == "serial":
        return _run_serial(padded, level_list, transform, eps)

    pool, task = _make_executor(mode, workers, padded, transform, eps)
    with pool:
        futures = [pool.submit(task, level) for level in level_list]
        return _collect_in_order(futures, level_list)


__all__ = [
    "ContourSet",
    "LevelResult",
    "contour_level",
    "contour_levels",
    "validate_levels",
]
