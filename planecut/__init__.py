"""
planecut — сечение триангулированных сеток и тел вращения плоскостью.

Публичный API:
    intersect_mesh          — контуры сечения сетки плоскостью
    solve_cylinder_section  — точное сечение цилиндра (окружность/эллипс)
    classify_cone_section   — тип конического сечения
    project_loop_to_view    — проекция контура на ортогональный вид
"""

from planecut.logging_config import (
    setup_logging,
    get_logger,
    configure_default_logging,
    log_timing,
    timed,
    LogContext,
)
from planecut.geometry.triangle_source import MeshBufferError
from planecut.section.types import (
    CircleCurve,
    ConicSection,
    CurveType,
    EllipseCurve,
    Loop,
    Plane,
    PolygonCurve,
    Segment,
    SectionResult,
)
from planecut.section.loops import BranchPolicy
from planecut.section.engine import intersect_mesh
from planecut.section.analytic import classify_cone_section, solve_cylinder_section
from planecut.projection.views import OrthoView, project_loop_to_view

__all__ = [
    "intersect_mesh",
    "solve_cylinder_section",
    "classify_cone_section",
    "project_loop_to_view",
    "OrthoView",
    "BranchPolicy",
    "MeshBufferError",
    "CircleCurve",
    "ConicSection",
    "CurveType",
    "EllipseCurve",
    "Loop",
    "Plane",
    "PolygonCurve",
    "Segment",
    "SectionResult",
    "setup_logging",
    "get_logger",
    "configure_default_logging",
    "log_timing",
    "timed",
    "LogContext",
]
