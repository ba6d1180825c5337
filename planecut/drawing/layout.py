"""
Компоновка видов сечения на листе (метод первого угла).

    side_a | front | side_b
           |  top  |

Вид сверху располагается под фронтальным, боковые виды — слева и справа
от него. Так как front/top имеют общий размах по X, а front/side_a/side_b —
общий размах по Y, столбец и строка выравниваются без подгонки.

Координаты листа: миллиметры, ось Y направлена вверх (как в DXF);
SVG-экспорт отражает ось при выводе.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
from numpy.typing import NDArray

from planecut.projection.views import OrthoView, project_points
from planecut.section.types import SectionResult

logger = logging.getLogger(__name__)

# Расстояние между видами (мм)
VIEW_SPACING_MM = 10.0

DEFAULT_VIEWS = (OrthoView.FRONT, OrthoView.TOP, OrthoView.SIDE_A, OrthoView.SIDE_B)


@dataclass
class PlacedView:
    """Вид на листе.

    Attributes:
        view: ортогональный вид.
        polylines: 2D-контуры в координатах листа (мм), по массиву (N, 2).
        closed: флаги замкнутости, по одному на контур.
        origin: левый нижний угол габарита вида на листе.
        size: (ширина, высота) габарита вида на листе.
    """
    view: OrthoView
    polylines: List[NDArray[np.float64]] = field(default_factory=list)
    closed: List[bool] = field(default_factory=list)
    origin: Tuple[float, float] = (0.0, 0.0)
    size: Tuple[float, float] = (0.0, 0.0)


@dataclass
class SheetLayout:
    """Результат компоновки: размер листа и размещённые виды."""
    width: float
    height: float
    views: Dict[OrthoView, PlacedView]


def resolve_views(views: Optional[Sequence[Union[OrthoView, str]]]) -> List[OrthoView]:
    """Список видов без повторов, в порядке перечисления; None — все четыре."""
    if views is None:
        return list(DEFAULT_VIEWS)
    resolved: List[OrthoView] = []
    for v in views:
        member = OrthoView.coerce(v)
        if member not in resolved:
            resolved.append(member)
    return resolved


def _bounds(polys: List[NDArray[np.float64]]) -> Tuple[float, float, float, float]:
    if not polys:
        return 0.0, 0.0, 0.0, 0.0
    stacked = np.vstack(polys)
    lo = stacked.min(axis=0)
    hi = stacked.max(axis=0)
    return float(lo[0]), float(lo[1]), float(hi[0]), float(hi[1])


def arrange_section_views(
    result: SectionResult,
    views: Optional[Sequence[Union[OrthoView, str]]] = None,
    scale: float = 1.0,
    margin: float = 10.0,
    spacing: float = VIEW_SPACING_MM,
) -> SheetLayout:
    """Спроецировать контуры и расположить виды на листе.

    Args:
        result: результат сечения.
        views: выводимые виды (по умолчанию все четыре).
        scale: мм на листе на единицу модели.
        margin: поле листа (мм).
        spacing: расстояние между видами (мм).

    Returns:
        SheetLayout; отсутствующие виды не занимают места.
    """
    requested = resolve_views(views)

    projected: Dict[OrthoView, List[NDArray[np.float64]]] = {}
    bounds: Dict[OrthoView, Tuple[float, float, float, float]] = {}
    for view in requested:
        polys = [project_points(loop.points, view) * scale for loop in result.loops]
        projected[view] = polys
        bounds[view] = _bounds(polys)

    def width(view: OrthoView) -> float:
        lo_u, _, hi_u, _ = bounds[view]
        return hi_u - lo_u

    def height(view: OrthoView) -> float:
        _, lo_v, _, hi_v = bounds[view]
        return hi_v - lo_v

    # Ширины столбцов и высоты строк (нулевые для отсутствующих видов)
    col_a = width(OrthoView.SIDE_A) if OrthoView.SIDE_A in bounds else None
    col_b = width(OrthoView.SIDE_B) if OrthoView.SIDE_B in bounds else None
    center = [width(v) for v in (OrthoView.FRONT, OrthoView.TOP) if v in bounds]
    col_c = max(center) if center else None
    middle = [height(v) for v in (OrthoView.FRONT, OrthoView.SIDE_A, OrthoView.SIDE_B) if v in bounds]
    row_mid = max(middle) if middle else None
    row_low = height(OrthoView.TOP) if OrthoView.TOP in bounds else None

    x = margin
    col_x: Dict[str, float] = {}
    for name, w in (("a", col_a), ("c", col_c), ("b", col_b)):
        if w is None:
            continue
        col_x[name] = x
        x += w + spacing
    sheet_w = (x - spacing if col_x else x) + margin

    y = margin
    row_y: Dict[str, float] = {}
    for name, h in (("low", row_low), ("mid", row_mid)):
        if h is None:
            continue
        row_y[name] = y
        y += h + spacing
    sheet_h = (y - spacing if row_y else y) + margin

    slots = {
        OrthoView.FRONT: ("c", "mid"),
        OrthoView.TOP: ("c", "low"),
        OrthoView.SIDE_A: ("a", "mid"),
        OrthoView.SIDE_B: ("b", "mid"),
    }

    placed: Dict[OrthoView, PlacedView] = {}
    for view in requested:
        col, row = slots[view]
        lo_u, lo_v, _, _ = bounds[view]
        dx = col_x[col] - lo_u
        dy = row_y[row] - lo_v
        shift = np.array([dx, dy])
        placed[view] = PlacedView(
            view=view,
            polylines=[poly + shift for poly in projected[view]],
            closed=[loop.is_closed for loop in result.loops],
            origin=(col_x[col], row_y[row]),
            size=(width(view), height(view)),
        )

    logger.debug("Компоновка %d видов: лист %.1f x %.1f мм", len(placed), sheet_w, sheet_h)
    return SheetLayout(width=sheet_w, height=sheet_h, views=placed)
