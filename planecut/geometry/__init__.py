"""Геометрические утилиты: векторы и доступ к треугольникам сетки."""

from planecut.geometry.triangle_source import (
    MeshBufferError,
    MeshBuffers,
    extract_edges,
    iter_triangles,
    triangle_array,
)
from planecut.geometry.vectors import (
    centroid,
    normalize,
    plane_basis,
    project_to_plane_uv,
    sort_points_around_centroid,
)

__all__ = [
    "MeshBufferError",
    "MeshBuffers",
    "extract_edges",
    "iter_triangles",
    "triangle_array",
    "centroid",
    "normalize",
    "plane_basis",
    "project_to_plane_uv",
    "sort_points_around_centroid",
]
