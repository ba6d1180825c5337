"""
Pytest configuration and fixtures for the planecut test suite.

Provides:
- Mesh fixtures as (positions, indices) buffers: box, two separated boxes,
  tessellated cylinder, octahedron
- STL file fixtures written with numpy-stl into tmp_path
- Assertion helpers for section results
- Logger and working-directory isolation
"""

import logging
from pathlib import Path
from typing import Tuple

import numpy as np
import pytest
from stl import mesh as stl_mesh

from planecut.logging_config import PACKAGE_LOGGER
from planecut.section.types import SectionResult

MeshData = Tuple[np.ndarray, np.ndarray]


# ============================================================================
# Mesh builders
# ============================================================================

def make_box(center=(0.0, 0.0, 0.0), size=(2.0, 2.0, 2.0)) -> MeshData:
    """Axis-aligned box, 8 vertices and 12 triangles (two per face)."""
    c = np.asarray(center, dtype=np.float64)
    h = np.asarray(size, dtype=np.float64) / 2
    corners = np.array([
        [-1, -1, -1], [+1, -1, -1], [+1, +1, -1], [-1, +1, -1],  # z = -h
        [-1, -1, +1], [+1, -1, +1], [+1, +1, +1], [-1, +1, +1],  # z = +h
    ], dtype=np.float64)
    positions = c + corners * h
    indices = np.array([
        # z = -h / z = +h
        [0, 2, 1], [0, 3, 2],
        [4, 5, 6], [4, 6, 7],
        # y = -h / y = +h
        [0, 1, 5], [0, 5, 4],
        [3, 7, 6], [3, 6, 2],
        # x = -h / x = +h
        [0, 4, 7], [0, 7, 3],
        [1, 2, 6], [1, 6, 5],
    ], dtype=np.int64)
    return positions, indices


def merge_meshes(*meshes: MeshData) -> MeshData:
    """Concatenate indexed meshes into one buffer pair."""
    positions, indices, offset = [], [], 0
    for pos, idx in meshes:
        positions.append(pos)
        indices.append(idx + offset)
        offset += len(pos)
    return np.vstack(positions), np.vstack(indices)


def make_cylinder(radius: float = 1.0, height: float = 2.0, segments: int = 32) -> MeshData:
    """Closed cylinder around the Y axis, centred at the origin."""
    angles = np.linspace(0, 2 * np.pi, segments, endpoint=False)
    ring = np.column_stack([radius * np.cos(angles), np.zeros(segments), radius * np.sin(angles)])
    bottom = ring + [0.0, -height / 2, 0.0]
    top = ring + [0.0, height / 2, 0.0]
    positions = np.vstack([bottom, top, [[0.0, -height / 2, 0.0], [0.0, height / 2, 0.0]]])
    c_bottom, c_top = 2 * segments, 2 * segments + 1

    faces = []
    for i in range(segments):
        j = (i + 1) % segments
        faces.append([i, j, segments + j])
        faces.append([i, segments + j, segments + i])
        faces.append([c_bottom, j, i])
        faces.append([c_top, segments + i, segments + j])
    return positions, np.array(faces, dtype=np.int64)


def make_octahedron(radius: float = 1.0) -> MeshData:
    """Regular octahedron with vertices on the coordinate axes."""
    positions = radius * np.array([
        [1, 0, 0], [-1, 0, 0],
        [0, 1, 0], [0, -1, 0],
        [0, 0, 1], [0, 0, -1],
    ], dtype=np.float64)
    indices = np.array([
        [0, 2, 4], [4, 2, 1], [1, 2, 5], [5, 2, 0],
        [0, 4, 3], [4, 1, 3], [1, 5, 3], [5, 0, 3],
    ], dtype=np.int64)
    return positions, indices


def write_stl(path: Path, positions: np.ndarray, indices: np.ndarray, binary: bool = True) -> Path:
    """Write an indexed mesh to STL (binary via numpy-stl, or ASCII by hand)."""
    triangles = positions[indices]
    if binary:
        m = stl_mesh.Mesh(np.zeros(len(triangles), dtype=stl_mesh.Mesh.dtype))
        m.vectors[:] = triangles
        m.save(str(path))
        return path

    with open(path, 'w') as f:
        f.write("solid test_part\n")
        for tri in triangles:
            normal = np.cross(tri[1] - tri[0], tri[2] - tri[0])
            normal = normal / (np.linalg.norm(normal) or 1.0)
            f.write(f"  facet normal {normal[0]} {normal[1]} {normal[2]}\n")
            f.write("    outer loop\n")
            for v in tri:
                f.write(f"      vertex {v[0]} {v[1]} {v[2]}\n")
            f.write("    endloop\n")
            f.write("  endfacet\n")
        f.write("endsolid test_part\n")
    return path


# ============================================================================
# Mesh fixtures
# ============================================================================

@pytest.fixture
def box_mesh() -> MeshData:
    """2x2x2 box centred at the origin."""
    return make_box()


@pytest.fixture
def two_boxes_mesh() -> MeshData:
    """Two 2x2x2 boxes centred at x = -3 and x = +3."""
    return merge_meshes(make_box(center=(-3, 0, 0)), make_box(center=(3, 0, 0)))


@pytest.fixture
def cylinder_mesh() -> MeshData:
    """Cylinder r=1, h=2, axis Y, 32 sides."""
    return make_cylinder()


@pytest.fixture
def octahedron_mesh() -> MeshData:
    """Octahedron whose equator vertices lie exactly on y = 0."""
    return make_octahedron()


# ============================================================================
# STL file fixtures
# ============================================================================

@pytest.fixture
def box_stl_path(tmp_path: Path) -> Path:
    """Binary STL of the 2x2x2 box."""
    return write_stl(tmp_path / "box.stl", *make_box())


@pytest.fixture
def ascii_box_stl_path(tmp_path: Path) -> Path:
    """ASCII STL of the 2x2x2 box."""
    return write_stl(tmp_path / "ascii_box.stl", *make_box(), binary=False)


@pytest.fixture
def cylinder_stl_path(tmp_path: Path) -> Path:
    """Binary STL of the tessellated cylinder."""
    return write_stl(tmp_path / "cylinder.stl", *make_cylinder())


@pytest.fixture
def empty_stl_path(tmp_path: Path) -> Path:
    """Binary STL with zero triangles."""
    path = tmp_path / "empty.stl"
    m = stl_mesh.Mesh(np.zeros(0, dtype=stl_mesh.Mesh.dtype))
    m.save(str(path))
    return path


# ============================================================================
# Assertion helpers
# ============================================================================

def assert_valid_result(result: SectionResult) -> None:
    """Structural invariants every SectionResult must satisfy."""
    for loop in result.loops:
        assert loop.points.ndim == 2
        assert loop.points.shape[1] == 3
        assert loop.points.dtype == np.float64
        assert len(loop) >= 3
        assert not np.any(np.isnan(loop.points))
    assert result.points_3d.shape == (sum(len(lp) for lp in result.loops), 3)


def assert_on_plane(points: np.ndarray, plane_point, plane_normal, tol: float = 1e-9) -> None:
    """All points lie on the plane."""
    n = np.asarray(plane_normal, dtype=np.float64)
    n = n / np.linalg.norm(n)
    d = (np.asarray(points) - np.asarray(plane_point, dtype=np.float64)) @ n
    assert np.all(np.abs(d) < tol), f"max distance {np.abs(d).max()}"


def same_point_set(a: np.ndarray, b: np.ndarray, tol: float = 1e-9) -> bool:
    """Order-independent comparison of two (N, 3) point sets."""
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    if a.shape != b.shape:
        return False
    used = np.zeros(len(b), dtype=bool)
    for p in a:
        dist = np.linalg.norm(b - p, axis=1)
        dist[used] = np.inf
        j = int(np.argmin(dist))
        if dist[j] > tol:
            return False
        used[j] = True
    return True


# ============================================================================
# Environment fixtures
# ============================================================================

@pytest.fixture
def restore_package_logger():
    """Undo setup_logging side effects on the ``planecut`` logger."""
    logger = logging.getLogger(PACKAGE_LOGGER)
    saved_level, saved_handlers, saved_propagate = logger.level, list(logger.handlers), logger.propagate
    yield logger
    for handler in logger.handlers:
        if handler not in saved_handlers:
            handler.close()
    logger.setLevel(saved_level)
    logger.handlers[:] = saved_handlers
    logger.propagate = saved_propagate


@pytest.fixture
def isolated_dirs(tmp_path, monkeypatch):
    """Empty working and home directories so no stray .planecut.json is found."""
    work = tmp_path / "work"
    home = tmp_path / "home"
    work.mkdir()
    home.mkdir()
    monkeypatch.chdir(work)
    monkeypatch.setattr(Path, "home", classmethod(lambda cls: home))
    return work, home
