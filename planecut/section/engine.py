"""
Сечение произвольной триангулированной сетки плоскостью.

Пайплайн:
  сетка + плоскость → пересечение треугольников → сырые отрезки
  → сварка концов → сваренные отрезки → сборка контуров → SectionResult.

Функция чистая: буферы вызывающей стороны не изменяются, результат
пересчитывается целиком при каждом вызове.
"""

import logging
from typing import Optional, Union

from numpy.typing import ArrayLike

from planecut.config import (
    ON_PLANE_EPS,
    SPATIAL_INDEX_THRESHOLD,
    WELD_TOLERANCE,
)
from planecut.geometry.triangle_source import MeshBuffers
from planecut.logging_config import log_timing
from planecut.section.intersector import collect_segments
from planecut.section.loops import BranchPolicy, assemble_loops
from planecut.section.types import Plane, PolygonCurve, SectionResult
from planecut.section.welding import weld_segments

logger = logging.getLogger(__name__)


def intersect_mesh(
    vertex_positions: ArrayLike,
    triangle_indices: Optional[ArrayLike] = None,
    plane_point: ArrayLike = (0.0, 0.0, 0.0),
    plane_normal: ArrayLike = (0.0, 1.0, 0.0),
    weld_tolerance: float = WELD_TOLERANCE,
    on_plane_eps: float = ON_PLANE_EPS,
    branch_policy: Union[BranchPolicy, str] = BranchPolicy.FIRST,
    spatial_index_threshold: int = SPATIAL_INDEX_THRESHOLD,
    workers: Optional[int] = None,
    merge_collinear: bool = True,
) -> SectionResult:
    """Вычислить линию пересечения сетки с плоскостью.

    Args:
        vertex_positions: плоский буфер координат (x0, y0, z0, ...) или (N, 3).
        triangle_indices: индексы треугольников; None — вершины уже
            сгруппированы тройками.
        plane_point: точка плоскости.
        plane_normal: нормаль плоскости (нормализуется внутри).
        weld_tolerance: расстояние сварки концов отрезков.
        on_plane_eps: порог принадлежности вершины плоскости.
        branch_policy: выбор продолжения в точках ветвления контура.
        spatial_index_threshold: порог переключения сварки на KD-дерево.
        workers: число потоков для этапа пересечения треугольников.
        merge_collinear: удалить вершины контура, лежащие на прямой между
            соседями (с допуском weld_tolerance).

    Returns:
        SectionResult с тегом polygon. Сетка без пересечений или нулевая
        нормаль дают пустой результат.

    Raises:
        MeshBufferError: структурно некорректные буферы.
    """
    mesh = MeshBuffers.from_buffers(vertex_positions, triangle_indices)
    policy = BranchPolicy.coerce(branch_policy)

    try:
        plane = Plane.from_point_normal(plane_point, plane_normal)
    except ValueError:
        logger.warning("Нулевая нормаль плоскости %s — сечение пустое.", plane_normal)
        return SectionResult.empty()

    with log_timing(logger, "Сечение сетки", n_triangles=mesh.n_triangles) as info:
        segments = collect_segments(
            mesh.triangle_array(), plane, on_plane_eps=on_plane_eps, workers=workers,
        )
        welded = weld_segments(segments, weld_tolerance, spatial_index_threshold)
        loops = assemble_loops(welded, policy, merge_collinear, weld_tolerance)
        info.update(n_segments=len(segments), n_welded=len(welded), n_loops=len(loops))

    return SectionResult(loops=loops, curve=PolygonCurve())
