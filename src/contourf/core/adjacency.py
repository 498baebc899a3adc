# どこで: `src/contourf/core/adjacency.py`。
# 何を: 有向線分を端点キーで引ける「消費型」の隣接マップ（segment arena + 2 つの点索引）。
# なぜ: 順不同の線分集合から、二乗探索なしでリングを復元するため。

"""端点キーで線分を取り出して消費する隣接マップ。

データ構造
----------
- `_segments`: 線分の arena（list）。取り出した線分の枠は None にする。
- `_by_start`: start 点 → 生存中の segment-id リスト（昇順）
- `_by_end`: end 点 → 生存中の segment-id リスト（昇順）

取り出し操作はいずれも「生存中で最小の id」を返して両索引から取り除く。
同じ点に複数の線分が集まる縮退ケース（等値レベルちょうどの格子点）でも、
結果は決定的になる。

点の一致は float のビット一致で判定する（許容誤差なし）。
"""

from __future__ import annotations

from dataclasses import dataclass

from contourf.core.errors import AlgorithmInvariantViolation
from contourf.core.transform import Point

Cell = tuple[int, int]


@dataclass(frozen=True, slots=True)
class Segment:
    """向き付き線分。`cell` は線分を生成したセル（不明なら None）。"""

    start: Point
    end: Point
    cell: Cell | None = None


class AdjacencyMap:
    """線分を挿入し、端点で引き当てながら消費するマップ。"""

    def __init__(self) -> None:
        self._segments: list[Segment | None] = []
        self._by_start: dict[Point, list[int]] = {}
        self._by_end: dict[Point, list[int]] = {}
        # take_any() の走査開始位置。これより前の枠はすべて消費済み。
        self._cursor = 0
        self._live = 0

    def insert(self, start: Point, end: Point, cell: Cell | None = None) -> int | None:
        """線分を追加して segment-id を返す。長さ 0 の線分は無視して None を返す。"""

        if start == end:
            return None
        sid = len(self._segments)
        self._segments.append(Segment(start, end, cell))
        self._by_start.setdefault(start, []).append(sid)
        self._by_end.setdefault(end, []).append(sid)
        self._live += 1
        return sid

    @property
    def inserted_count(self) -> int:
        """これまでに受理した（長さ 0 でない）線分の総数。"""

        return len(self._segments)

    def __len__(self) -> int:
        return self._live

    def __bool__(self) -> bool:
        return self._live > 0

    def __contains__(self, point: object) -> bool:
        return point in self._by_start

    def take_any(self) -> Segment | None:
        """生存中の線分を 1 本取り出す（最小 id）。空なら None。"""

        segments = self._segments
        i = self._cursor
        n = len(segments)
        while i < n and segments[i] is None:
            i += 1
        self._cursor = i
        if i >= n:
            return None
        return self._remove(i)

    def take_starting_at(self, point: Point) -> Segment | None:
        """`start == point` の線分を 1 本取り出す。無ければ None。"""

        ids = self._by_start.get(point)
        if not ids:
            return None
        return self._remove(ids[0])

    def take_ending_at(self, point: Point) -> Segment | None:
        """`end == point` の線分を 1 本取り出す。無ければ None。"""

        ids = self._by_end.get(point)
        if not ids:
            return None
        return self._remove(ids[0])

    def _remove(self, sid: int) -> Segment:
        segment = self._segments[sid]
        if segment is None:
            raise AlgorithmInvariantViolation(
                f"索引が消費済みの線分を参照しています: segment_id={sid}"
            )
        self._segments[sid] = None
        self._live -= 1
        self._unindex(self._by_start, segment, segment.start, sid)
        self._unindex(self._by_end, segment, segment.end, sid)
        return segment

    @staticmethod
    def _unindex(index: dict[Point, list[int]], segment: Segment, point: Point, sid: int) -> None:
        ids = index.get(point)
        if ids is None or sid not in ids:
            raise AlgorithmInvariantViolation(
                f"線分の端点が索引にありません: segment_id={sid}, point={point!r}",
                cell=segment.cell,
            )
        # 同一キーの線分は通常 1 本、縮退ケースでも数本。
        ids.remove(sid)
        if not ids:
            del index[point]


__all__ = ["AdjacencyMap", "Cell", "Segment"]
