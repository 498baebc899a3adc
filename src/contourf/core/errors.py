# どこで: `src/contourf/core/errors.py`。
# 何を: 等値線ポリゴン化で送出する例外の階層を定義する。
# なぜ: 「入力/設定の不正」と「アルゴリズム内部の不整合」を呼び出し側で区別できるようにするため。

from __future__ import annotations


class ContourError(Exception):
    """contourf が送出する例外の基底クラス。"""


class ConfigurationError(ContourError, ValueError):
    """入力・設定の不正（計算開始前に検出する）。

    Notes
    -----
    アフィン変換の係数数、空のレベル列、空グリッド、`config.yaml` の不正値などを表す。
    送出時点では部分的な状態を何も作っていない。
    """


class AlgorithmInvariantViolation(ContourError, RuntimeError):
    """リング復元中に、縮退ケースでは説明できない不整合を検出した。

    Parameters
    ----------
    message : str
        不整合の内容。
    level : float or None
        対象の等値レベル。
    cell : tuple[int, int] or None
        不整合に関係するセル座標 `(col, row)`（元グリッドのインデックス空間）。
    """

    def __init__(
        self,
        message: str,
        *,
        level: float | None = None,
        cell: tuple[int, int] | None = None,
    ) -> None:
        self.message = str(message)
        self.level = level
        self.cell = cell
        detail = self.message
        if level is not None:
            detail += f": level={level!r}"
        if cell is not None:
            detail += f", cell={cell!r}"
        super().__init__(detail)

    def __reduce__(self):
        # process executor 経由で返るときも level/cell を保つ。
        return (_rebuild_invariant_violation, (self.message, self.level, self.cell))


def _rebuild_invariant_violation(
    message: str, level: float | None, cell: tuple[int, int] | None
) -> AlgorithmInvariantViolation:
    return AlgorithmInvariantViolation(message, level=level, cell=cell)


class LevelContourError(ContourError, RuntimeError):
    """あるレベルのタスクが予期しない例外で失敗した。

    元の例外は `__cause__` に連結される。
    """

    def __init__(self, *, level: float, index: int) -> None:
        self.level = level
        self.index = index
        super().__init__(f"等値レベルの計算に失敗しました: level={level!r}, index={index}")


__all__ = [
    "AlgorithmInvariantViolation",
    "ConfigurationError",
    "ContourError",
    "LevelContourError",
]
