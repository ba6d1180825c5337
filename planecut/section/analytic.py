"""
Analytic sections of solids of revolution.

Cylinder (full solution):
    θ = arccos(|axis · normal|) is the angle between the plane normal and the axis.
    - θ ≈ 0   (|axis·normal| > CIRCLE_COS_THRESHOLD): circle of the cylinder
      radius centred where the plane meets the axis.
    - θ ≈ 90° (|axis·normal| < PARALLEL_COS_THRESHOLD): the plane contains the
      axis direction and cuts two straight rulings; not resolved here, an
      empty polygon result tells the caller to use intersect_mesh().
    - otherwise: ellipse, minor radius r, major radius r / sin(θ), centred at
      the caller's plane point, major axis normalize(n × a), minor axis
      normalize(n × major).

Cone (classification only):
    α = atan(radius / height) is the half angle, β = arcsin(|axis · normal|) the
    angle between plane and axis. β ≈ 90° circle, β > α ellipse, β ≈ α
    parabola, β < α hyperbola. No points are generated.

Both solvers bypass mesh traversal entirely.
"""

import logging
import math
from typing import Tuple

import numpy as np
from numpy.typing import ArrayLike, NDArray

from planecut.config import (
    CIRCLE_COS_THRESHOLD,
    CIRCLE_SEGMENTS,
    CONE_ANGLE_TOLERANCE,
    PARALLEL_COS_THRESHOLD,
)
from planecut.geometry.vectors import as_point, normalize
from planecut.section.types import (
    CircleCurve,
    ConicSection,
    CurveType,
    EllipseCurve,
    Loop,
    SectionResult,
)

logger = logging.getLogger(__name__)

DEFAULT_AXIS = (0.0, 1.0, 0.0)


def _axis_perpendiculars(axis: NDArray[np.float64]) -> Tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Two unit vectors orthogonal to the axis and to each other."""
    helper = np.array([1.0, 0.0, 0.0])
    if abs(float(np.dot(axis, helper))) > 0.99:
        helper = np.array([0.0, 0.0, 1.0])
    u_axis = np.cross(axis, helper)
    u_axis /= np.linalg.norm(u_axis)
    v_axis = np.cross(axis, u_axis)
    v_axis /= np.linalg.norm(v_axis)
    return u_axis, v_axis


def sample_ellipse(
    center: ArrayLike,
    major_axis: ArrayLike,
    minor_axis: ArrayLike,
    major_radius: float,
    minor_radius: float,
    segments: int = CIRCLE_SEGMENTS,
) -> NDArray[np.float64]:
    """Points center + cos φ·R·major + sin φ·r·minor for φ over a full turn.

    The end point φ = 2π is not repeated.

    Returns:
        (segments, 3) array
    """
    phi = np.arange(segments) * (2.0 * np.pi / segments)
    return (
        as_point(center)
        + np.outer(np.cos(phi) * major_radius, as_point(major_axis))
        + np.outer(np.sin(phi) * minor_radius, as_point(minor_axis))
    )


def solve_cylinder_section(
    radius: float,
    height: float,
    axis: ArrayLike = DEFAULT_AXIS,
    plane_point: ArrayLike = (0.0, 0.0, 0.0),
    plane_normal: ArrayLike = (0.0, 1.0, 0.0),
    origin: ArrayLike = (0.0, 0.0, 0.0),
    segments: int = CIRCLE_SEGMENTS,
    circle_cos_threshold: float = CIRCLE_COS_THRESHOLD,
    parallel_cos_threshold: float = PARALLEL_COS_THRESHOLD,
) -> SectionResult:
    """Exact section of a right circular cylinder by a plane.

    Args:
        radius: Cylinder radius
        height: Cylinder height, centred on ``origin`` along the axis; a
            perpendicular cut outside the cylinder gives an empty result
        axis: Axis direction (normalized internally)
        plane_point: Point on the cutting plane
        plane_normal: Plane normal (normalized internally)
        origin: Centre of the cylinder on its axis
        segments: Number of points generated on the curve
        circle_cos_threshold: |axis·normal| above which the cut is a circle
        parallel_cos_threshold: |axis·normal| below which the plane is
            considered parallel to the axis

    Returns:
        SectionResult tagged circle or ellipse with one closed loop, or an
        empty polygon result (``needs_mesh_fallback``) for the parallel case
        and degenerate input.
    """
    a = normalize(axis)
    n = normalize(plane_normal)
    if a is None or n is None or radius <= 0.0:
        logger.warning(
            "Degenerate cylinder cut (radius=%s, axis=%s, normal=%s), returning empty result",
            radius, axis, plane_normal,
        )
        return SectionResult.empty()

    p0 = as_point(plane_point)
    c0 = as_point(origin)
    signed_cos = float(np.dot(a, n))
    cos_angle = abs(signed_cos)

    if cos_angle > circle_cos_threshold:
        s = float(np.dot(p0 - c0, n)) / signed_cos
        if abs(s) > height / 2.0 + 1e-9:
            logger.debug("Cutting plane misses the cylinder (axial offset %.6g)", s)
            return SectionResult.empty()
        center = c0 + s * a
        u_axis, v_axis = _axis_perpendiculars(a)
        points = sample_ellipse(center, u_axis, v_axis, radius, radius, segments)
        curve = CircleCurve(center=center, u_axis=u_axis, v_axis=v_axis, radius=float(radius))
        logger.debug("Cylinder section: circle r=%.6g", radius)
        return SectionResult(loops=[Loop(points=points, is_closed=True)], curve=curve)

    if cos_angle < parallel_cos_threshold:
        logger.debug("Plane parallel to cylinder axis, mesh fallback required")
        return SectionResult.empty()

    sin_angle = math.sqrt(1.0 - cos_angle * cos_angle)
    major_radius = float(radius) / sin_angle
    minor_radius = float(radius)

    major_axis = np.cross(n, a)
    major_axis /= np.linalg.norm(major_axis)
    minor_axis = np.cross(n, major_axis)
    minor_axis /= np.linalg.norm(minor_axis)

    points = sample_ellipse(p0, major_axis, minor_axis, major_radius, minor_radius, segments)
    curve = EllipseCurve(
        center=p0.copy(),
        major_axis=major_axis,
        minor_axis=minor_axis,
        major_radius=major_radius,
        minor_radius=minor_radius,
    )
    logger.debug("Cylinder section: ellipse R=%.6g r=%.6g", major_radius, minor_radius)
    return SectionResult(loops=[Loop(points=points, is_closed=True)], curve=curve)


def cone_section_type(
    radius: float,
    height: float,
    axis: ArrayLike,
    plane_normal: ArrayLike,
    angle_tolerance: float = CONE_ANGLE_TOLERANCE,
) -> CurveType:
    """Conic type of a cone/plane cut (see module docstring)."""
    a = normalize(axis)
    n = normalize(plane_normal)
    if a is None or n is None:
        raise ValueError("Cone axis and plane normal must be non-zero")

    half_angle = math.atan2(radius, height)
    cos_angle = min(1.0, abs(float(np.dot(a, n))))
    plane_axis_angle = math.asin(cos_angle)

    if abs(plane_axis_angle - math.pi / 2) < angle_tolerance:
        return CurveType.CIRCLE
    if plane_axis_angle > half_angle + angle_tolerance:
        return CurveType.ELLIPSE
    if abs(plane_axis_angle - half_angle) < angle_tolerance:
        return CurveType.PARABOLA
    return CurveType.HYPERBOLA


def classify_cone_section(
    radius: float,
    height: float,
    axis: ArrayLike = DEFAULT_AXIS,
    plane_normal: ArrayLike = (0.0, 1.0, 0.0),
    angle_tolerance: float = CONE_ANGLE_TOLERANCE,
) -> SectionResult:
    """Classification-only cone section.

    Returns:
        SectionResult with no loops and a ConicSection curve; circle and
        ellipse are reported closed, parabola and hyperbola open. Degenerate
        input gives an empty polygon result.
    """
    try:
        kind = cone_section_type(radius, height, axis, plane_normal, angle_tolerance)
    except ValueError as e:
        logger.warning("Degenerate cone cut: %s", e)
        return SectionResult.empty()

    closed = kind in (CurveType.CIRCLE, CurveType.ELLIPSE)
    logger.debug("Cone section classified as %s", kind.value)
    return SectionResult(loops=[], curve=ConicSection(kind=kind), closed_hint=closed)
