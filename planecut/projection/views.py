"""
Проецирование контуров сечения на четыре ортогональных вида.

Все виды получены из одного фронтального кадра (right=+X, up=+Y,
depth=+Z) поворотом на четверть оборота, поэтому выполняются правила
проекционной связи чертежа:
  - front и top имеют общую горизонтальную ось (одинаковый размах по X);
  - front, side_a и side_b имеют общую вертикальную ось (размах по Y).

Матрица вида: столбцы [right, up, depth]; 2D-проекция точки — первые
две координаты p @ M.

    front  : (x, y)
    top    : (x, -z)    поворот кадра вокруг X на -90°
    side_a : (-z, y)    поворот кадра вокруг Y на +90°
    side_b : (z, y)     поворот кадра вокруг Y на -90°
"""

import logging
from enum import Enum
from typing import Dict, List, Tuple, Union

import numpy as np
from numpy.typing import ArrayLike, NDArray

from planecut.geometry.vectors import as_points
from planecut.section.types import Loop, SectionResult

logger = logging.getLogger(__name__)


class OrthoView(Enum):
    """Ортогональные виды сечения."""
    FRONT = "front"
    TOP = "top"
    SIDE_A = "side_a"
    SIDE_B = "side_b"

    @classmethod
    def coerce(cls, value: Union['OrthoView', str]) -> 'OrthoView':
        """Член перечисления по значению или псевдониму (V/H/W/R, sideA/sideB)."""
        if isinstance(value, cls):
            return value
        key = str(value).strip()
        if key in _ALIASES:
            return _ALIASES[key]
        try:
            return cls(key.lower())
        except ValueError:
            names = ", ".join([v.value for v in cls] + sorted(_ALIASES))
            raise ValueError(f"Неизвестный вид {value!r}; допустимо: {names}") from None


_ALIASES: Dict[str, OrthoView] = {
    "V": OrthoView.FRONT,
    "H": OrthoView.TOP,
    "W": OrthoView.SIDE_A,
    "R": OrthoView.SIDE_B,
    "sideA": OrthoView.SIDE_A,
    "sideB": OrthoView.SIDE_B,
}


def _quarter_turn(axis: ArrayLike, quarters: int) -> NDArray[np.float64]:
    """Матрица поворота на quarters·90° вокруг оси (формула Родрига).

    Для четвертей оборота вокруг координатных осей элементы матрицы
    целые, поэтому результат округляется до точных 0/±1.
    """
    x, y, z = np.asarray(axis, dtype=np.float64) / np.linalg.norm(axis)
    angle = quarters * np.pi / 2
    c, s = np.cos(angle), np.sin(angle)
    t = 1 - c
    matrix = np.array([
        [t*x*x + c,   t*x*y - s*z, t*x*z + s*y],
        [t*x*y + s*z, t*y*y + c,   t*y*z - s*x],
        [t*x*z - s*y, t*y*z + s*x, t*z*z + c],
    ])
    return np.rint(matrix) + 0.0


_FRONT_FRAME = np.eye(3)

VIEW_MATRICES: Dict[OrthoView, NDArray[np.float64]] = {
    OrthoView.FRONT: _FRONT_FRAME,
    OrthoView.TOP: _quarter_turn((1, 0, 0), -1) @ _FRONT_FRAME,
    OrthoView.SIDE_A: _quarter_turn((0, 1, 0), 1) @ _FRONT_FRAME,
    OrthoView.SIDE_B: _quarter_turn((0, 1, 0), -1) @ _FRONT_FRAME,
}


def project_points(points_3d: ArrayLike, view: Union[OrthoView, str]) -> NDArray[np.float64]:
    """Спроецировать точки (N, 3) на вид. Возвращает массив (N, 2)."""
    matrix = VIEW_MATRICES[OrthoView.coerce(view)]
    pts = as_points(points_3d)
    return (pts @ matrix)[:, :2]


def project_loop_to_view(
    points_3d: ArrayLike,
    view: Union[OrthoView, str],
) -> List[Tuple[float, float]]:
    """Спроецировать точки контура на вид.

    Args:
        points_3d: точки контура (N, 3) или Loop.
        view: вид (OrthoView или имя).

    Returns:
        Список пар (u, v) той же длины и в том же порядке.
    """
    if isinstance(points_3d, Loop):
        points_3d = points_3d.points
    return [(float(u), float(v)) for u, v in project_points(points_3d, view)]


def project_section(
    result: SectionResult,
    view: Union[OrthoView, str],
) -> List[NDArray[np.float64]]:
    """Проекции всех контуров результата, по массиву (N_i, 2) на контур."""
    return [project_points(loop.points, view) for loop in result.loops]


def projection_extents(points_2d: ArrayLike) -> Tuple[float, float]:
    """Размах (ширина, высота) набора 2D-точек; (0, 0) для пустого набора."""
    pts = np.asarray(points_2d, dtype=np.float64).reshape(-1, 2)
    if len(pts) == 0:
        return 0.0, 0.0
    span = pts.max(axis=0) - pts.min(axis=0)
    return float(span[0]), float(span[1])
