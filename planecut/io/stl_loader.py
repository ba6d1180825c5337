"""
Загрузка STL-файлов в буферы сетки для сечения.

Поддерживает:
- Бинарный формат STL (автодетекция по размеру файла)
- ASCII формат STL (автодетекция по ключевым словам)

Чтение выполняет numpy-stl; модуль лишь объединяет совпадающие вершины
и возвращает пару (positions, indices), которую принимает intersect_mesh().
"""

import logging
import os
import struct
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union

import numpy as np
from numpy.typing import NDArray
from stl import mesh

logger = logging.getLogger(__name__)

PathLike = Union[str, 'os.PathLike[str]']

# Бинарный STL: заголовок 80 байт + uint32 числа граней, 50 байт на грань
_BINARY_HEADER_SIZE = 80
_BINARY_FACET_SIZE = 50

# Точность объединения вершин (знаков после запятой)
VERTEX_DECIMALS = 6


class STLFormat(Enum):
    """STL file format type."""
    BINARY = "binary"
    ASCII = "ascii"
    UNKNOWN = "unknown"


@dataclass
class STLInfo:
    """Metadata about a loaded STL file."""
    filepath: str
    format: STLFormat
    file_size_bytes: int
    n_triangles: int
    n_unique_vertices: int
    solid_name: Optional[str] = None

    @property
    def file_size_kb(self) -> float:
        return self.file_size_bytes / 1024


class STLLoadError(Exception):
    """Ошибка при загрузке или разборе STL-файла."""


def _solid_name(text: str) -> Optional[str]:
    """Имя после ключевого слова solid в первой строке (или None)."""
    first_line = text.strip().split('\n', 1)[0].strip()
    if not first_line.lower().startswith('solid'):
        return None
    return first_line[5:].strip() or None


def detect_stl_format(filepath: PathLike) -> Tuple[STLFormat, Optional[str]]:
    """Определить формат STL-файла.

    Файл считается бинарным, если его размер в точности равен
    84 + 50·N, где N — число граней из заголовка. Иначе файл, начинающийся
    с «solid» и содержащий «facet»/«endsolid», считается ASCII.

    Returns:
        (формат, имя solid или None)

    Raises:
        STLLoadError: файл не найден или не читается.
    """
    try:
        with open(filepath, 'rb') as f:
            head = f.read(1024)
        file_size = os.path.getsize(filepath)
    except FileNotFoundError:
        raise STLLoadError(f"Файл не найден: {str(filepath)!r}") from None
    except OSError as exc:
        raise STLLoadError(f"Не удалось прочитать {str(filepath)!r}: {exc}") from exc

    if len(head) >= _BINARY_HEADER_SIZE + 4:
        (n_facets,) = struct.unpack('<I', head[_BINARY_HEADER_SIZE:_BINARY_HEADER_SIZE + 4])
        if file_size == _BINARY_HEADER_SIZE + 4 + n_facets * _BINARY_FACET_SIZE:
            header = head[:_BINARY_HEADER_SIZE].split(b'\x00', 1)[0]
            return STLFormat.BINARY, _solid_name(header.decode('ascii', errors='ignore'))

    try:
        text = head.decode('ascii')
    except UnicodeDecodeError:
        return STLFormat.UNKNOWN, None

    lowered = text.lower()
    if lowered.lstrip().startswith('solid') and ('facet' in lowered or 'endsolid' in lowered):
        return STLFormat.ASCII, _solid_name(text)
    return STLFormat.UNKNOWN, None


def weld_stl_vertices(
    vectors: NDArray[np.float64],
    decimals: int = VERTEX_DECIMALS,
) -> Tuple[NDArray[np.float64], NDArray[np.int32]]:
    """Объединить вершины треугольников (M, 3, 3) по округлённым координатам.

    Порядок уникальных вершин — порядок первого появления в файле.

    Returns:
        vertices (N, 3) float64, faces (M, 3) int32
    """
    rounded = np.round(np.asarray(vectors, dtype=np.float64).reshape(-1, 3), decimals)
    unique, first_seen, inverse = np.unique(
        rounded, axis=0, return_index=True, return_inverse=True,
    )
    order = np.argsort(first_seen)
    rank = np.empty_like(order)
    rank[order] = np.arange(len(order))
    vertices = unique[order]
    faces = rank[inverse.reshape(-1)].reshape(-1, 3).astype(np.int32)
    return vertices, faces


def load_stl(filepath: PathLike) -> Tuple[NDArray[np.float64], NDArray[np.int32]]:
    """Загрузить STL-файл как индексированную сетку.

    Args:
        filepath: путь к STL-файлу (бинарный или ASCII).

    Returns:
        positions: (N, 3) float64 — уникальные вершины.
        indices:   (M, 3) int32 — индексы вершин каждого треугольника.

    Raises:
        STLLoadError: файл не найден, повреждён или не содержит треугольников.
    """
    stl_format, solid_name = detect_stl_format(filepath)
    file_size = os.path.getsize(filepath)
    logger.info("Загрузка STL: %s (формат: %s, размер: %.1f KB)",
                filepath, stl_format.value, file_size / 1024)
    if solid_name:
        logger.debug("Solid name: %s", solid_name)
    if file_size == 0:
        raise STLLoadError(f"STL-файл {str(filepath)!r} пуст.")

    try:
        stl_mesh = mesh.Mesh.from_file(str(filepath))
    except (OSError, RuntimeError, ValueError, AssertionError, struct.error) as exc:
        raise STLLoadError(f"Не удалось прочитать STL-файл {str(filepath)!r}: {exc}") from exc

    if len(stl_mesh.vectors) == 0:
        raise STLLoadError(f"STL-файл {str(filepath)!r} не содержит треугольников.")

    positions, indices = weld_stl_vertices(stl_mesh.vectors)
    logger.info("Загружено: %d уникальных вершин, %d граней.", len(positions), len(indices))
    return positions, indices


def load_stl_with_info(
    filepath: PathLike,
) -> Tuple[NDArray[np.float64], NDArray[np.int32], STLInfo]:
    """Load an STL file and also return its metadata (see load_stl)."""
    stl_format, solid_name = detect_stl_format(filepath)
    positions, indices = load_stl(filepath)
    info = STLInfo(
        filepath=str(filepath),
        format=stl_format,
        file_size_bytes=os.path.getsize(filepath),
        n_triangles=len(indices),
        n_unique_vertices=len(positions),
        solid_name=solid_name,
    )
    return positions, indices, info
