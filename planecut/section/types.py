"""
Data model of a plane cut.

Provides:
- Plane: point + unit normal, signed distance function
- Segment: one triangle's crossing with the plane
- Loop: ordered polyline, closed or open (closing point not stored)
- Curve variants: PolygonCurve, CircleCurve, EllipseCurve, ConicSection
- SectionResult: all loops of one cut plus the curve tag

All structures are frozen and own their arrays; they are recomputed from
scratch on every cut.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple, Union

import numpy as np
from numpy.typing import ArrayLike, NDArray

from planecut.geometry.vectors import as_point, normalize, plane_basis

logger = logging.getLogger(__name__)


class CurveType(Enum):
    """Kind of curve produced by a cut."""
    POLYGON = "polygon"
    CIRCLE = "circle"
    ELLIPSE = "ellipse"
    PARABOLA = "parabola"
    HYPERBOLA = "hyperbola"


@dataclass(frozen=True, eq=False)
class Plane:
    """Cutting plane: a point on the plane and a unit normal.

    Attributes:
        point: Point on the plane, shape (3,)
        normal: Unit normal, shape (3,)
    """
    point: NDArray[np.float64]
    normal: NDArray[np.float64]

    @classmethod
    def from_point_normal(cls, point: ArrayLike, normal: ArrayLike) -> 'Plane':
        """Create plane, normalizing the normal.

        Raises:
            ValueError: If the normal has zero length
        """
        unit = normalize(normal)
        if unit is None:
            raise ValueError("Plane normal has zero length")
        return cls(point=as_point(point), normal=unit)

    def signed_distance(self, p: ArrayLike) -> float:
        """d(p) = (p - point) · normal."""
        return float(np.dot(as_point(p) - self.point, self.normal))

    def signed_distances(self, points: NDArray[np.float64]) -> NDArray[np.float64]:
        """Vectorized signed distance for an (..., 3) array."""
        return (points - self.point) @ self.normal

    def basis(self) -> Tuple[NDArray[np.float64], NDArray[np.float64]]:
        """In-plane orthonormal (u, v) axes."""
        return plane_basis(self.normal)


@dataclass(frozen=True, eq=False)
class Segment:
    """Ordered pair of distinct points where one triangle crosses the plane."""
    start: NDArray[np.float64]
    end: NDArray[np.float64]

    @property
    def length(self) -> float:
        return float(np.linalg.norm(self.end - self.start))

    def as_array(self) -> NDArray[np.float64]:
        """Endpoints as a (2, 3) array."""
        return np.stack([self.start, self.end])


@dataclass(frozen=True, eq=False)
class Loop:
    """One connected piece of the section curve.

    Points are in traversal order. For a closed loop the closing edge
    (last -> first) is implicit and the first point is not repeated.

    Attributes:
        points: (N, 3) array, N >= 3 for loops produced by the assembler
        is_closed: True if the last point connects back to the first
    """
    points: NDArray[np.float64]
    is_closed: bool

    def __len__(self) -> int:
        return len(self.points)

    @property
    def n_edges(self) -> int:
        """Number of polyline edges, including the implicit closing edge."""
        n = len(self.points)
        if n < 2:
            return 0
        return n if self.is_closed else n - 1

    def perimeter(self) -> float:
        """Total polyline length (closing edge included when closed)."""
        if len(self.points) < 2:
            return 0.0
        pts = self.points
        if self.is_closed:
            pts = np.vstack([pts, pts[:1]])
        return float(np.linalg.norm(np.diff(pts, axis=0), axis=1).sum())

    def signed_area(self, plane_normal: ArrayLike) -> float:
        """Shoelace area in the plane's (u, v) frame.

        Positive for counter-clockwise traversal when looking against the
        normal. Open loops are treated as if closed.
        """
        if len(self.points) < 3:
            return 0.0
        u_axis, v_axis = plane_basis(plane_normal)
        u = self.points @ u_axis
        v = self.points @ v_axis
        return 0.5 * float(np.dot(u, np.roll(v, -1)) - np.dot(np.roll(u, -1), v))


# ---------------------------------------------------------------------------
# Curve variants: exactly one is attached to every SectionResult
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PolygonCurve:
    """Mesh-derived polyline section, no analytic parameters."""
    kind: CurveType = field(default=CurveType.POLYGON, init=False)


@dataclass(frozen=True, eq=False)
class CircleCurve:
    """Exact circle: center + two in-plane unit axes + radius."""
    center: NDArray[np.float64]
    u_axis: NDArray[np.float64]
    v_axis: NDArray[np.float64]
    radius: float
    kind: CurveType = field(default=CurveType.CIRCLE, init=False)

    @property
    def major_axis(self) -> NDArray[np.float64]:
        return self.u_axis

    @property
    def minor_axis(self) -> NDArray[np.float64]:
        return self.v_axis

    @property
    def major_radius(self) -> float:
        return self.radius

    @property
    def minor_radius(self) -> float:
        return self.radius


@dataclass(frozen=True, eq=False)
class EllipseCurve:
    """Exact ellipse: center, unit axis directions and semi-axis lengths."""
    center: NDArray[np.float64]
    major_axis: NDArray[np.float64]
    minor_axis: NDArray[np.float64]
    major_radius: float
    minor_radius: float
    kind: CurveType = field(default=CurveType.ELLIPSE, init=False)


@dataclass(frozen=True)
class ConicSection:
    """Classification-only conic (cone cut): curve kind without points."""
    kind: CurveType

    def __post_init__(self):
        if self.kind is CurveType.POLYGON:
            raise ValueError("ConicSection cannot be a polygon")


Curve = Union[PolygonCurve, CircleCurve, EllipseCurve, ConicSection]


@dataclass(frozen=True, eq=False)
class SectionResult:
    """All loops of one plane cut.

    Attributes:
        loops: Loops in no particular order
        curve: Curve variant (polygon for mesh cuts)
        closed_hint: Closure flag for loop-less conic classifications;
            ignored whenever loops are present
    """
    loops: List[Loop] = field(default_factory=list)
    curve: Curve = field(default_factory=PolygonCurve)
    closed_hint: Optional[bool] = None

    @classmethod
    def empty(cls) -> 'SectionResult':
        """Zero loops, polygon tag."""
        return cls()

    @property
    def curve_type(self) -> CurveType:
        return self.curve.kind

    @property
    def loop_count(self) -> int:
        return len(self.loops)

    @property
    def is_empty(self) -> bool:
        return not self.loops

    @property
    def is_closed(self) -> bool:
        """Every loop is closed.

        A result without loops reports ``closed_hint`` instead: True for a
        circle or ellipse cone classification, False for an empty section.
        """
        if not self.loops:
            return bool(self.closed_hint)
        return all(loop.is_closed for loop in self.loops)

    @property
    def points_3d(self) -> NDArray[np.float64]:
        """All loop points concatenated in loop order, (N, 3)."""
        if not self.loops:
            return np.zeros((0, 3), dtype=np.float64)
        return np.vstack([loop.points for loop in self.loops])

    @property
    def needs_mesh_fallback(self) -> bool:
        """Analytic solver could not resolve the cut: use intersect_mesh()."""
        return self.curve_type is CurveType.POLYGON and not self.loops
