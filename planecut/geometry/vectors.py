"""
Векторные операции над точками в 3D (numpy).

Содержит:
- нормализацию векторов с контролем вырождения
- локальный базис (u, v) плоскости и проекцию точек в него
- центр масс набора точек и угловую сортировку вокруг него
"""

from typing import Optional, Sequence, Tuple

import numpy as np
from numpy.typing import ArrayLike, NDArray

# Вектор короче порога считается нулевым
ZERO_LENGTH = 1e-12


def as_point(p: ArrayLike) -> NDArray[np.float64]:
    """Скопировать точку/вектор в массив float64 формы (3,)."""
    arr = np.array(p, dtype=np.float64).reshape(-1)
    if arr.shape != (3,):
        raise ValueError(f"Ожидалась 3D-точка, получена форма {arr.shape}")
    return arr


def as_points(points: ArrayLike) -> NDArray[np.float64]:
    """Скопировать набор точек в массив float64 формы (N, 3)."""
    arr = np.array(points, dtype=np.float64)
    if arr.size == 0:
        return np.zeros((0, 3), dtype=np.float64)
    return arr.reshape(-1, 3)


def normalize(v: ArrayLike) -> Optional[NDArray[np.float64]]:
    """Единичный вектор того же направления, или None для нулевого вектора."""
    arr = as_point(v)
    length = float(np.linalg.norm(arr))
    if length < ZERO_LENGTH:
        return None
    return arr / length


def plane_basis(normal: ArrayLike) -> Tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Построить ортонормированный базис (u, v) плоскости с данной нормалью.

    u = normalize(up × n), v = normalize(n × u), где up = +Y,
    либо +X, если нормаль почти параллельна +Y.

    Args:
        normal: нормаль плоскости (нормализуется).

    Returns:
        (u_axis, v_axis) — единичные векторы, лежащие в плоскости.
    """
    n = normalize(normal)
    if n is None:
        raise ValueError("Нормаль плоскости имеет нулевую длину")
    up = np.array([0.0, 1.0, 0.0])
    if abs(float(np.dot(n, up))) > 0.99:
        up = np.array([1.0, 0.0, 0.0])
    u_axis = np.cross(up, n)
    u_axis /= np.linalg.norm(u_axis)
    v_axis = np.cross(n, u_axis)
    v_axis /= np.linalg.norm(v_axis)
    return u_axis, v_axis


def project_to_plane_uv(
    point: ArrayLike,
    plane_point: ArrayLike,
    plane_normal: ArrayLike,
) -> Tuple[float, float]:
    """Координаты (u, v) точки в локальной системе плоскости.

    Начало координат — plane_point, оси — plane_basis(plane_normal).
    """
    u_axis, v_axis = plane_basis(plane_normal)
    rel = as_point(point) - as_point(plane_point)
    return float(np.dot(rel, u_axis)), float(np.dot(rel, v_axis))


def centroid(points: ArrayLike) -> NDArray[np.float64]:
    """Среднее арифметическое точек (N, 3)."""
    pts = as_points(points)
    if len(pts) == 0:
        raise ValueError("Центр масс пустого набора точек не определён")
    return pts.mean(axis=0)


def sort_points_around_centroid(
    points: Sequence[ArrayLike],
    plane_normal: ArrayLike,
) -> NDArray[np.float64]:
    """Упорядочить точки по полярному углу вокруг их центра масс.

    Угол atan2(v, u) берётся в базисе plane_basis(plane_normal), поэтому
    при взгляде против нормали обход идёт против часовой стрелки.
    Наборы из менее чем трёх точек возвращаются без изменений.
    """
    pts = as_points(points)
    if len(pts) < 3:
        return pts
    u_axis, v_axis = plane_basis(plane_normal)
    rel = pts - pts.mean(axis=0)
    angles = np.arctan2(rel @ v_axis, rel @ u_axis)
    return pts[np.argsort(angles, kind="stable")]
