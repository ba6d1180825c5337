"""
Доступ к треугольникам сетки из плоских буферов.

Сетка приходит от внешнего приложения как плоский буфер координат вершин
(x0, y0, z0, x1, ...) и необязательный буфер индексов треугольников.
Без индексов буфер координат уже сгруппирован тройками вершин.

Модуль только читает буферы: входные данные вызывающей стороны
никогда не изменяются.
"""

import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

import numpy as np
from numpy.typing import ArrayLike, NDArray

logger = logging.getLogger(__name__)

Edge3D = Tuple[NDArray[np.float64], NDArray[np.float64]]


class MeshBufferError(ValueError):
    """Структурно некорректный буфер вершин или индексов."""


@dataclass(frozen=True)
class MeshBuffers:
    """Нормализованное представление сетки.

    Attributes:
        positions: координаты вершин (N, 3), float64 (копия входного буфера).
        indices: индексы треугольников (M, 3), int64, или None для
            неиндексированной сетки.
    """
    positions: NDArray[np.float64]
    indices: Optional[NDArray[np.int64]] = None

    @classmethod
    def from_buffers(
        cls,
        vertex_positions: ArrayLike,
        triangle_indices: Optional[ArrayLike] = None,
    ) -> 'MeshBuffers':
        """Проверить и скопировать буферы сетки.

        Принимает как плоские буферы, так и массивы формы (N, 3)/(M, 3).

        Raises:
            MeshBufferError: длина буфера не кратна 3, индексы вне диапазона,
                либо неиндексированная сетка не делится на тройки вершин.
        """
        flat = np.array(vertex_positions, dtype=np.float64).reshape(-1)
        if flat.size % 3 != 0:
            raise MeshBufferError(
                f"Длина буфера координат ({flat.size}) не кратна 3"
            )
        positions = flat.reshape(-1, 3)

        if triangle_indices is None:
            if len(positions) % 3 != 0:
                raise MeshBufferError(
                    f"Неиндексированная сетка: число вершин ({len(positions)}) не кратно 3"
                )
            return cls(positions=positions, indices=None)

        flat_idx = np.array(triangle_indices).reshape(-1)
        if flat_idx.size % 3 != 0:
            raise MeshBufferError(
                f"Длина буфера индексов ({flat_idx.size}) не кратна 3"
            )
        if flat_idx.size and not np.issubdtype(flat_idx.dtype, np.integer):
            if not np.all(np.equal(np.mod(flat_idx, 1), 0)):
                raise MeshBufferError("Буфер индексов содержит нецелые значения")
        indices = flat_idx.astype(np.int64).reshape(-1, 3)
        if indices.size and (indices.min() < 0 or indices.max() >= len(positions)):
            raise MeshBufferError(
                f"Индексы вне диапазона [0, {len(positions)}): "
                f"min={int(indices.min())}, max={int(indices.max())}"
            )
        return cls(positions=positions, indices=indices)

    @property
    def n_triangles(self) -> int:
        """Число треугольников."""
        if self.indices is None:
            return len(self.positions) // 3
        return len(self.indices)

    def triangle_array(self) -> NDArray[np.float64]:
        """Все треугольники одним массивом (M, 3, 3)."""
        if self.indices is None:
            return self.positions.reshape(-1, 3, 3)
        return self.positions[self.indices]


def triangle_array(
    vertex_positions: ArrayLike,
    triangle_indices: Optional[ArrayLike] = None,
) -> NDArray[np.float64]:
    """Треугольники сетки массивом (M, 3, 3) (см. MeshBuffers.from_buffers)."""
    return MeshBuffers.from_buffers(vertex_positions, triangle_indices).triangle_array()


def iter_triangles(
    vertex_positions: ArrayLike,
    triangle_indices: Optional[ArrayLike] = None,
) -> Iterator[NDArray[np.float64]]:
    """Перебрать треугольники сетки по одному, массивами (3, 3), в порядке буфера."""
    yield from triangle_array(vertex_positions, triangle_indices)


def extract_edges(
    vertex_positions: ArrayLike,
    triangle_indices: Optional[ArrayLike] = None,
    decimals: int = 6,
) -> List[Edge3D]:
    """Уникальные неориентированные рёбра сетки.

    Рёбра сравниваются по координатам концов, округлённым до `decimals`
    знаков, поэтому совпадающие рёбра соседних треугольников неиндексированной
    сетки также объединяются. Порядок — порядок первого появления.

    Returns:
        Список пар (точка_A, точка_B), точки — копии.
    """
    triangles = triangle_array(vertex_positions, triangle_indices)
    seen = set()
    edges: List[Edge3D] = []

    for tri in triangles:
        for i in range(3):
            a, b = tri[i], tri[(i + 1) % 3]
            key_a = tuple(np.round(a, decimals).tolist())
            key_b = tuple(np.round(b, decimals).tolist())
            key = (key_a, key_b) if key_a < key_b else (key_b, key_a)
            if key in seen:
                continue
            seen.add(key)
            edges.append((a.copy(), b.copy()))

    logger.debug("Извлечено %d уникальных рёбер из %d треугольников.",
                 len(edges), len(triangles))
    return edges
