"""
Сварка концов отрезков (дедупликация точек).

Соседние треугольники вычисляют общую точку пересечения независимо, и
результаты отличаются на погрешность округления. Сварка заменяет каждый
конец отрезка каноническим представителем: первой ранее зарегистрированной
уникальной точкой на расстоянии < tolerance, иначе сама точка
регистрируется как новая уникальная. Эквивалентность применяется через
таблицу канонических точек, а не попарно, поэтому уникальные точки всегда
удалены друг от друга не меньше чем на tolerance.

После сварки отбрасываются:
  - вырожденные отрезки (оба конца — одна каноническая точка);
  - повторы одного и того же неориентированного отрезка (ребро сетки,
    лежащее в плоскости, дают оба смежных треугольника).

Две реализации дают одинаковый результат:
  - линейный просмотр таблицы (O(n²)) — для малых сечений;
  - KD-дерево scipy по всем сырым точкам — для плотных сеток.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Sequence, Set, Tuple

import numpy as np
from numpy.typing import NDArray
from scipy.spatial import cKDTree as KDTree

from planecut.config import SPATIAL_INDEX_THRESHOLD, WELD_TOLERANCE
from planecut.section.types import Segment

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class WeldedSegments:
    """Результат сварки.

    Attributes:
        points: канонические точки (K, 3) в порядке регистрации.
        segments: пары индексов канонических точек (S, 2), int64;
            порядок — порядок исходных отрезков, концы различны.
    """
    points: NDArray[np.float64]
    segments: NDArray[np.int64]

    def __len__(self) -> int:
        return len(self.segments)

    @property
    def n_points(self) -> int:
        return len(self.points)

    def to_segments(self) -> List[Segment]:
        """Обратно в список Segment (копии канонических точек)."""
        return [
            Segment(start=self.points[a].copy(), end=self.points[b].copy())
            for a, b in self.segments
        ]


def _canonical_ids_scan(raw: NDArray[np.float64], tolerance: float) -> Tuple[NDArray[np.int64], List[int]]:
    """Эталонная сварка: линейный просмотр уникальных точек."""
    unique: List[int] = []
    ids = np.empty(len(raw), dtype=np.int64)
    for i, p in enumerate(raw):
        for uid, ridx in enumerate(unique):
            if np.linalg.norm(raw[ridx] - p) < tolerance:
                ids[i] = uid
                break
        else:
            ids[i] = len(unique)
            unique.append(i)
    return ids, unique


def _canonical_ids_kdtree(raw: NDArray[np.float64], tolerance: float) -> Tuple[NDArray[np.int64], List[int]]:
    """Сварка через KD-дерево.

    Точки обходятся в исходном порядке; ещё не назначенная точка становится
    новой уникальной и забирает все не назначенные точки в радиусе tolerance.
    Это совпадает с линейным просмотром: каждая точка достаётся самой ранней
    уникальной точке, находящейся от неё ближе tolerance.
    """
    tree = KDTree(raw)
    ids = np.full(len(raw), -1, dtype=np.int64)
    unique: List[int] = []
    for i in range(len(raw)):
        if ids[i] >= 0:
            continue
        uid = len(unique)
        unique.append(i)
        ids[i] = uid
        for j in tree.query_ball_point(raw[i], tolerance):
            if ids[j] < 0 and np.linalg.norm(raw[j] - raw[i]) < tolerance:
                ids[j] = uid
    return ids, unique


def weld_points(
    raw_points: NDArray[np.float64],
    tolerance: float = WELD_TOLERANCE,
    spatial_index_threshold: int = SPATIAL_INDEX_THRESHOLD,
) -> Tuple[NDArray[np.float64], NDArray[np.int64]]:
    """Сварить набор точек.

    Args:
        raw_points: точки (N, 3) в порядке обработки.
        tolerance: расстояние совпадения (строго меньше).
        spatial_index_threshold: начиная с этого N используется KD-дерево.

    Returns:
        (unique_points (K, 3), ids (N,)) — ids[i] индекс канонической точки.
    """
    raw = np.asarray(raw_points, dtype=np.float64).reshape(-1, 3)
    if len(raw) == 0:
        return np.zeros((0, 3), dtype=np.float64), np.zeros(0, dtype=np.int64)

    if len(raw) >= spatial_index_threshold:
        ids, unique = _canonical_ids_kdtree(raw, tolerance)
    else:
        ids, unique = _canonical_ids_scan(raw, tolerance)
    return raw[unique].copy(), ids


def weld_segments(
    segments: Sequence[Segment],
    tolerance: float = WELD_TOLERANCE,
    spatial_index_threshold: int = SPATIAL_INDEX_THRESHOLD,
) -> WeldedSegments:
    """Сварить концы отрезков и удалить вырожденные/повторные отрезки.

    Args:
        segments: сырые отрезки пересечения.
        tolerance: расстояние совпадения точек.
        spatial_index_threshold: порог переключения на KD-дерево
            (по числу концов отрезков).

    Returns:
        WeldedSegments; len(result) <= len(segments).
    """
    if not segments:
        return WeldedSegments(
            points=np.zeros((0, 3), dtype=np.float64),
            segments=np.zeros((0, 2), dtype=np.int64),
        )

    raw = np.empty((2 * len(segments), 3), dtype=np.float64)
    raw[0::2] = [s.start for s in segments]
    raw[1::2] = [s.end for s in segments]

    points, ids = weld_points(raw, tolerance, spatial_index_threshold)
    pairs = ids.reshape(-1, 2)

    kept: List[Tuple[int, int]] = []
    seen: Set[Tuple[int, int]] = set()
    n_degenerate = 0
    n_duplicate = 0
    for a, b in pairs:
        a, b = int(a), int(b)
        if a == b:
            n_degenerate += 1
            continue
        key = (a, b) if a < b else (b, a)
        if key in seen:
            n_duplicate += 1
            continue
        seen.add(key)
        kept.append((a, b))

    # Точки, на которые не ссылается ни один оставшийся отрезок, не нужны
    used = sorted({i for pair in kept for i in pair})
    remap: Dict[int, int] = {old: new for new, old in enumerate(used)}
    seg_arr = np.array([(remap[a], remap[b]) for a, b in kept], dtype=np.int64).reshape(-1, 2)

    logger.debug(
        "Сварка: %d отрезков → %d (вырожденных %d, повторов %d), %d уникальных точек.",
        len(segments), len(seg_arr), n_degenerate, n_duplicate, len(used),
    )
    return WeldedSegments(points=points[used], segments=seg_arr)
