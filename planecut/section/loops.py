"""
Сборка сваренных отрезков в упорядоченные контуры (loops).

Алгоритм (трассировка по смежности):
  1. Индекс «точка → отрезки»: каждый отрезок попадает в списки обоих концов,
     порядок в списке — порядок отрезков (порядок инцидентности).
  2. Пока есть неиспользованные отрезки: первый неиспользованный — затравка,
     его концы образуют начальную цепочку из двух точек.
  3. Трассировка вперёд от хвоста цепочки: неиспользованный отрезок,
     инцидентный хвосту, продолжает цепочку его другим концом.
  4. Трассировка назад от исходной головы затравки — симметрично,
     точки добавляются в начало.
  5. Цепочка замкнута, если первая и последняя точки совпадают и точек
     больше двух; повторная замыкающая точка не хранится.
  6. Цепочки короче трёх точек отбрасываются.
  7. (Необязательно) промежуточные точки на прямых участках удаляются:
     диагонали триангуляции плоских граней дают лишние вершины.

Каждый отрезок расходуется ровно один раз (затравкой или трассировкой).

В точке ветвления (сходятся три и более неиспользованных отрезков) выбор
продолжения задаёт BranchPolicy:
  - FIRST — первый неиспользованный в порядке инцидентности;
  - SHARPEST_TURN — отрезок с наибольшим углом поворота относительно
    входящего направления (контуры, касающиеся друг друга в одной точке,
    не перекрещиваются).
"""

import logging
from collections import defaultdict, deque
from dataclasses import dataclass
from enum import Enum
from typing import Deque, Dict, List, Optional, Union

import numpy as np

from planecut.config import COLLINEAR_EPS, WELD_TOLERANCE
from planecut.section.types import Loop
from planecut.section.welding import WeldedSegments

logger = logging.getLogger(__name__)

# Минимальное число точек контура
MIN_LOOP_POINTS = 3


class BranchPolicy(Enum):
    """Выбор продолжения в точке ветвления."""
    FIRST = "first"
    SHARPEST_TURN = "sharpest_turn"

    @classmethod
    def coerce(cls, value: Union['BranchPolicy', str]) -> 'BranchPolicy':
        """Принять член перечисления или его строковое значение."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            names = ", ".join(p.value for p in cls)
            raise ValueError(f"Неизвестная политика ветвления {value!r}; допустимо: {names}") from None


@dataclass(frozen=True)
class Chain:
    """Результат трассировки до фильтрации по длине.

    Attributes:
        point_ids: индексы канонических точек в порядке обхода
            (для замкнутой цепочки без повторной замыкающей точки).
        segment_ids: индексы израсходованных отрезков.
        is_closed: цепочка вернулась в начальную точку.
    """
    point_ids: List[int]
    segment_ids: List[int]
    is_closed: bool


class _Tracer:
    """Состояние трассировки одного набора сваренных отрезков."""

    def __init__(self, welded: WeldedSegments, policy: BranchPolicy) -> None:
        self.points = welded.points
        self.segments = welded.segments
        self.policy = policy
        self.used = np.zeros(len(welded.segments), dtype=bool)
        self.incident: Dict[int, List[int]] = defaultdict(list)
        for seg_id, (a, b) in enumerate(self.segments):
            self.incident[int(a)].append(seg_id)
            self.incident[int(b)].append(seg_id)

    def _other_end(self, seg_id: int, point_id: int) -> int:
        a, b = self.segments[seg_id]
        return int(b) if int(a) == point_id else int(a)

    def _next_segment(self, point_id: int, prev_id: int) -> Optional[int]:
        """Выбрать неиспользованный отрезок, продолжающий цепочку из point_id."""
        candidates = [s for s in self.incident[point_id] if not self.used[s]]
        if not candidates:
            return None
        if len(candidates) == 1 or self.policy is BranchPolicy.FIRST:
            return candidates[0]
        return self._sharpest_turn(point_id, prev_id, candidates)

    def _sharpest_turn(self, point_id: int, prev_id: int, candidates: List[int]) -> int:
        """Кандидат с минимальным косинусом угла между входом и выходом."""
        here = self.points[point_id]
        incoming = here - self.points[prev_id]
        incoming = incoming / np.linalg.norm(incoming)

        best = candidates[0]
        best_cos = np.inf
        for seg_id in candidates:
            outgoing = self.points[self._other_end(seg_id, point_id)] - here
            cos_turn = float(np.dot(incoming, outgoing / np.linalg.norm(outgoing)))
            if cos_turn < best_cos:
                best_cos = cos_turn
                best = seg_id
        return best

    def _extend(self, chain: Deque[int], seg_ids: List[int], forward: bool) -> None:
        """Трассировать от хвоста (forward) или от головы цепочки."""
        while True:
            if forward:
                current, previous = chain[-1], chain[-2]
            else:
                current, previous = chain[0], chain[1]
            seg_id = self._next_segment(current, previous)
            if seg_id is None:
                return
            self.used[seg_id] = True
            seg_ids.append(seg_id)
            nxt = self._other_end(seg_id, current)
            if forward:
                chain.append(nxt)
            else:
                chain.appendleft(nxt)

    def trace(self) -> List[Chain]:
        chains: List[Chain] = []
        for seed in range(len(self.segments)):
            if self.used[seed]:
                continue
            self.used[seed] = True
            head, tail = (int(i) for i in self.segments[seed])
            chain: Deque[int] = deque([head, tail])
            seg_ids = [seed]

            self._extend(chain, seg_ids, forward=True)
            self._extend(chain, seg_ids, forward=False)

            is_closed = len(chain) > 2 and chain[0] == chain[-1]
            if is_closed:
                chain.pop()
            chains.append(Chain(point_ids=list(chain), segment_ids=seg_ids, is_closed=is_closed))
        return chains


def trace_chains(
    welded: WeldedSegments,
    branch_policy: Union[BranchPolicy, str] = BranchPolicy.FIRST,
) -> List[Chain]:
    """Трассировать все цепочки, включая короткие (без фильтрации).

    Args:
        welded: сваренные отрезки.
        branch_policy: политика выбора в точках ветвления.

    Returns:
        Список цепочек; объединение их segment_ids — все отрезки ровно по разу.
    """
    if len(welded) == 0:
        return []
    return _Tracer(welded, BranchPolicy.coerce(branch_policy)).trace()


def _on_chord(
    prev: np.ndarray,
    nxt: np.ndarray,
    inner: np.ndarray,
    tolerance: float,
    collinear_eps: float,
) -> bool:
    """Все точки inner (K, 3) лежат на отрезке prev–nxt строго между концами."""
    chord = nxt - prev
    length_sq = float(np.dot(chord, chord))
    if length_sq < tolerance * tolerance:
        return False
    t = (inner - prev) @ chord / length_sq
    if np.any(t <= 0.0) or np.any(t >= 1.0):
        return False
    deviation = np.linalg.norm(inner - (prev + t[:, None] * chord), axis=1)
    return bool(np.all(deviation < min(tolerance, collinear_eps * np.sqrt(length_sq))))


def merge_collinear_points(
    points: np.ndarray,
    is_closed: bool,
    tolerance: float = WELD_TOLERANCE,
    collinear_eps: float = COLLINEAR_EPS,
) -> np.ndarray:
    """Удалить промежуточные точки, лежащие на прямой между соседями.

    Такие точки появляются там, где плоскость пересекает диагональ
    триангуляции плоской грани. Точка удаляется, только если она и все
    ранее удалённые точки между её соседями лежат на новой хорде: не дальше
    tolerance и не дальше collinear_eps · длина хорды. Поэтому мелкие
    дуги не прореживаются. Концы разомкнутого контура сохраняются;
    контур не сокращается меньше чем до MIN_LOOP_POINTS точек.
    """
    n = len(points)

    def between(prev: int, nxt: int) -> np.ndarray:
        # Исходные индексы строго между prev и nxt по ходу контура
        return points[(prev + np.arange(1, (nxt - prev) % n)) % n]

    keep = list(range(n))
    changed = True
    while changed and len(keep) > MIN_LOOP_POINTS:
        changed = False
        i = 0 if is_closed else 1
        while len(keep) > MIN_LOOP_POINTS:
            if is_closed:
                if i >= len(keep):
                    break
                prev, nxt = keep[i - 1], keep[(i + 1) % len(keep)]
            else:
                if i >= len(keep) - 1:
                    break
                prev, nxt = keep[i - 1], keep[i + 1]
            if _on_chord(points[prev], points[nxt], between(prev, nxt), tolerance, collinear_eps):
                del keep[i]
                changed = True
            else:
                i += 1
    return points[keep]


def assemble_loops(
    welded: WeldedSegments,
    branch_policy: Union[BranchPolicy, str] = BranchPolicy.FIRST,
    merge_collinear: bool = False,
    tolerance: float = WELD_TOLERANCE,
) -> List[Loop]:
    """Собрать контуры из сваренных отрезков.

    Args:
        welded: сваренные отрезки (см. weld_segments).
        branch_policy: политика выбора в точках ветвления.
        merge_collinear: удалить промежуточные точки на прямых участках.
        tolerance: допуск коллинеарности (расстояние до прямой).

    Returns:
        Контуры из трёх и более точек, замкнутые и разомкнутые.
        Порядок контуров не определён.
    """
    chains = trace_chains(welded, branch_policy)
    loops: List[Loop] = []
    n_dropped = 0
    for chain in chains:
        if len(chain.point_ids) < MIN_LOOP_POINTS:
            n_dropped += 1
            continue
        points = welded.points[chain.point_ids].copy()
        if merge_collinear:
            points = merge_collinear_points(points, chain.is_closed, tolerance)
        loops.append(Loop(points=points, is_closed=chain.is_closed))

    logger.debug(
        "Сборка контуров: %d отрезков → %d цепочек, %d контуров (%d замкнутых), отброшено %d.",
        len(welded), len(chains), len(loops),
        sum(1 for lp in loops if lp.is_closed), n_dropped,
    )
    return loops

