"""
Пересечение треугольников с плоскостью.

Для каждого треугольника вычисляются знаковые расстояния вершин до плоскости;
по рёбрам 1-2, 2-3, 3-1 собирается не более двух точек пересечения:
  - ребро пересекает плоскость, если расстояния концов строго разного знака
    (точка — линейная интерполяция t = d_a / (d_a - d_b));
  - иначе, если первая вершина ребра лежит в плоскости (|d| < eps), она сама
    считается точкой пересечения, пока собрано меньше двух точек.
Ровно две точки дают отрезок; 0, 1 или 3 — ничего. Треугольники, лежащие
в плоскости целиком, отбрасываются.

Этап «треугольник → отрезок» не имеет общего состояния, поэтому допускает
параллельную обработку порциями (ThreadPoolExecutor).
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

import numpy as np
from numpy.typing import ArrayLike, NDArray

from planecut.config import ON_PLANE_EPS, PARALLEL_EPS, TRIANGLE_CHUNK_SIZE
from planecut.geometry.vectors import as_point
from planecut.section.types import Plane, Segment

logger = logging.getLogger(__name__)

# Порядок обхода рёбер треугольника: (начало, конец)
_EDGES = ((0, 1), (1, 2), (2, 0))


def line_intersects_plane(
    line_start: ArrayLike,
    line_end: ArrayLike,
    plane_point: ArrayLike,
    plane_normal: ArrayLike,
    parallel_eps: float = PARALLEL_EPS,
) -> Optional[NDArray[np.float64]]:
    """Точка пересечения отрезка с плоскостью.

    Args:
        line_start, line_end: концы отрезка.
        plane_point: точка плоскости.
        plane_normal: нормаль плоскости (нормировка не требуется).
        parallel_eps: порог |direction · normal| для параллельности.

    Returns:
        Точка пересечения, или None если отрезок параллелен плоскости
        либо пересечение лежит вне отрезка (t ∉ [0, 1]).
    """
    start = as_point(line_start)
    direction = as_point(line_end) - start
    normal = as_point(plane_normal)

    denominator = float(np.dot(direction, normal))
    if abs(denominator) < parallel_eps:
        return None

    t = float(np.dot(as_point(plane_point) - start, normal)) / denominator
    if t < 0.0 or t > 1.0:
        return None
    return start + direction * t


def snap_distances(distances: NDArray[np.float64], on_plane_eps: float) -> NDArray[np.float64]:
    """Обнулить расстояния вершин, лежащих в плоскости (|d| < eps).

    Остаточный знак такой вершины иначе дал бы лишнее «пересечение» на
    соседнем ребре рядом с самой вершиной.
    """
    return np.where(np.abs(distances) < on_plane_eps, 0.0, distances)


def _triangle_segment_from_distances(
    triangle: NDArray[np.float64],
    distances: NDArray[np.float64],
    on_plane_eps: float,
) -> Optional[Segment]:
    """Отрезок пересечения по заранее вычисленным расстояниям вершин."""
    distances = snap_distances(distances, on_plane_eps)
    if np.all(distances == 0.0):
        # Треугольник в плоскости: три точки на плоскости, отрезка нет
        return None

    points: List[NDArray[np.float64]] = []

    for a, b in _EDGES:
        d_a = float(distances[a])
        d_b = float(distances[b])
        if d_a * d_b < 0.0:
            t = d_a / (d_a - d_b)
            points.append(triangle[a] + (triangle[b] - triangle[a]) * t)
        elif d_a == 0.0 and len(points) < 2:
            points.append(triangle[a].copy())

    if len(points) != 2:
        return None
    return Segment(start=points[0], end=points[1])


def intersect_triangle(
    triangle: ArrayLike,
    plane: Plane,
    on_plane_eps: float = ON_PLANE_EPS,
) -> Optional[Segment]:
    """Пересечь один треугольник с плоскостью.

    Args:
        triangle: вершины треугольника (3, 3), порядок как в сетке.
        plane: плоскость сечения (нормаль единичная).
        on_plane_eps: порог |d|, ниже которого вершина лежит в плоскости.

    Returns:
        Segment или None, если треугольник не даёт отрезка.
    """
    tri = np.asarray(triangle, dtype=np.float64).reshape(3, 3)
    distances = plane.signed_distances(tri)
    return _triangle_segment_from_distances(tri, distances, on_plane_eps)


def _intersect_chunk(
    triangles: NDArray[np.float64],
    distances: NDArray[np.float64],
    on_plane_eps: float,
) -> List[Segment]:
    """Обработать порцию треугольников (вызывается в пуле потоков)."""
    segments = []
    for tri, dist in zip(triangles, distances):
        seg = _triangle_segment_from_distances(tri, dist, on_plane_eps)
        if seg is not None:
            segments.append(seg)
    return segments


def collect_segments(
    triangles: NDArray[np.float64],
    plane: Plane,
    on_plane_eps: float = ON_PLANE_EPS,
    workers: Optional[int] = None,
    chunk_size: int = TRIANGLE_CHUNK_SIZE,
) -> List[Segment]:
    """Собрать отрезки пересечения всех треугольников сетки.

    Расстояния считаются векторно для всей сетки; дальше обрабатываются
    только треугольники, у которых есть вершины по обе стороны плоскости
    или в ней самой — прочие заведомо не дают отрезка.

    Args:
        triangles: треугольники (M, 3, 3).
        plane: плоскость сечения.
        on_plane_eps: порог принадлежности вершины плоскости.
        workers: число потоков; None или 1 — последовательно.
        chunk_size: размер порции для пула потоков.

    Returns:
        Отрезки в порядке треугольников сетки.
    """
    if len(triangles) == 0:
        return []

    distances = snap_distances(plane.signed_distances(triangles), on_plane_eps)
    d_min = distances.min(axis=1)
    d_max = distances.max(axis=1)
    touching = (distances == 0.0).any(axis=1)
    candidates = np.flatnonzero(((d_min < 0.0) & (d_max > 0.0)) | touching)

    tris = triangles[candidates]
    dists = distances[candidates]

    if not workers or workers <= 1 or len(candidates) <= chunk_size:
        segments = _intersect_chunk(tris, dists, on_plane_eps)
    else:
        bounds = range(0, len(candidates), chunk_size)
        with ThreadPoolExecutor(max_workers=workers) as executor:
            parts = list(executor.map(
                lambda s: _intersect_chunk(tris[s:s + chunk_size],
                                           dists[s:s + chunk_size],
                                           on_plane_eps),
                bounds,
            ))
        segments = [seg for part in parts for seg in part]

    logger.debug(
        "Пересечение: %d треугольников, %d кандидатов, %d отрезков.",
        len(triangles), len(candidates), len(segments),
    )
    return segments
