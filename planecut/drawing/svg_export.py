"""
SVG-вывод проекций сечения.

Каждый вид — отдельная группа <g id="view-front"> и т.п.; замкнутые
контуры выводятся как polygon, разомкнутые — как polyline.
Единицы листа — миллиметры (viewBox совпадает с размером листа).
"""

import logging
from pathlib import Path
from typing import Optional, Sequence, Union

import svgwrite

from planecut.drawing.layout import VIEW_SPACING_MM, SheetLayout, arrange_section_views
from planecut.projection.views import OrthoView
from planecut.section.types import SectionResult

logger = logging.getLogger(__name__)

SECTION_STROKE = "black"


def _to_svg_points(poly, sheet_h: float):
    """Координаты листа (Y вверх) → координаты SVG (Y вниз)."""
    return [(round(float(u), 6), round(sheet_h - float(v), 6)) for u, v in poly]


def build_section_svg(
    layout: SheetLayout,
    filename: Union[str, Path],
    stroke_width: float = 0.5,
) -> svgwrite.Drawing:
    """Построить SVG-документ по готовой компоновке (без сохранения)."""
    dwg = svgwrite.Drawing(
        str(filename),
        size=(f"{layout.width}mm", f"{layout.height}mm"),
        viewBox=f"0 0 {layout.width} {layout.height}",
        debug=False,
    )
    style = {
        'stroke': SECTION_STROKE,
        'stroke_width': stroke_width,
        'fill': 'none',
    }

    views_group = dwg.g(id="section-views")
    for view, placed in layout.views.items():
        group = dwg.g(id=f"view-{view.value}")
        group['data-view'] = view.value
        for poly, closed in zip(placed.polylines, placed.closed):
            points = _to_svg_points(poly, layout.height)
            if closed:
                element = dwg.polygon(points=points, **style)
            else:
                element = dwg.polyline(points=points, **style)
            element['style'] = "vector-effect: non-scaling-stroke;"
            group.add(element)
        views_group.add(group)
    dwg.add(views_group)
    return dwg


def render_section_svg(
    result: SectionResult,
    path: Union[str, Path],
    views: Optional[Sequence[Union[OrthoView, str]]] = None,
    scale: float = 1.0,
    stroke_width: float = 0.5,
    margin: float = 10.0,
    spacing: float = VIEW_SPACING_MM,
) -> Path:
    """Сохранить проекции сечения в SVG.

    Args:
        result: результат сечения.
        path: путь выходного файла.
        views: выводимые виды (по умолчанию front, top, side_a, side_b).
        scale: мм на листе на единицу модели.
        stroke_width: толщина линии контура (мм).
        margin: поле листа (мм).
        spacing: расстояние между видами (мм).

    Returns:
        Путь сохранённого файла.
    """
    path = Path(path)
    layout = arrange_section_views(result, views, scale=scale, margin=margin, spacing=spacing)
    dwg = build_section_svg(layout, path, stroke_width=stroke_width)
    dwg.save()
    logger.info("SVG сечения сохранён: %s (%d видов, %d контуров)",
                path, len(layout.views), result.loop_count)
    return path
