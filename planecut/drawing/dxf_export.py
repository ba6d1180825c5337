"""
DXF output of section projections.

Uses ezdxf. Each view goes on its own layer:
- SECTION_FRONT  - front view (x, y)
- SECTION_TOP    - top view (x, -z)
- SECTION_SIDE_A - side view A (-z, y)
- SECTION_SIDE_B - side view B (z, y)

Every loop becomes one LWPOLYLINE; the closed flag is taken from the loop.
Views are placed with the same first-angle layout as the SVG output
(drawing units are millimetres, Y up).

Usage:
    from planecut.drawing.dxf_export import export_section_dxf

    export_section_dxf(result, 'section.dxf', views=['front', 'top'])
"""

import logging
from pathlib import Path
from typing import Dict, Optional, Sequence, Union

import ezdxf
from ezdxf import units

from planecut.drawing.layout import VIEW_SPACING_MM, SheetLayout, arrange_section_views
from planecut.projection.views import OrthoView
from planecut.section.types import SectionResult

logger = logging.getLogger(__name__)

# Layer per view: ACI color, lineweight in 0.01 mm
SECTION_LAYERS: Dict[OrthoView, Dict] = {
    OrthoView.FRONT: {'name': 'SECTION_FRONT', 'color': 7, 'lineweight': 50},
    OrthoView.TOP: {'name': 'SECTION_TOP', 'color': 3, 'lineweight': 50},
    OrthoView.SIDE_A: {'name': 'SECTION_SIDE_A', 'color': 5, 'lineweight': 50},
    OrthoView.SIDE_B: {'name': 'SECTION_SIDE_B', 'color': 1, 'lineweight': 50},
}


def layer_name(view: Union[OrthoView, str]) -> str:
    """DXF layer name of a view."""
    return SECTION_LAYERS[OrthoView.coerce(view)]['name']


def build_section_dxf(layout: SheetLayout, dxf_version: str = 'R2010') -> 'ezdxf.document.Drawing':
    """Create a DXF document from a sheet layout (not saved).

    Args:
        layout: Arranged views
        dxf_version: DXF version (R2000, R2004, R2007, R2010, R2013, R2018)

    Returns:
        ezdxf document
    """
    doc = ezdxf.new(dxf_version, units=units.MM)
    msp = doc.modelspace()

    for view, placed in layout.views.items():
        props = SECTION_LAYERS[view]
        if props['name'] not in doc.layers:
            doc.layers.add(
                props['name'],
                color=props['color'],
                lineweight=props['lineweight'],
            )
        for poly, closed in zip(placed.polylines, placed.closed):
            if len(poly) < 2:
                continue
            points = [(float(u), float(v)) for u, v in poly]
            msp.add_lwpolyline(points, close=closed, dxfattribs={'layer': props['name']})

    return doc


def export_section_dxf(
    result: SectionResult,
    path: Union[str, Path],
    views: Optional[Sequence[Union[OrthoView, str]]] = None,
    scale: float = 1.0,
    margin: float = 10.0,
    spacing: float = VIEW_SPACING_MM,
    dxf_version: str = 'R2010',
) -> Path:
    """Save section projections to a DXF file.

    Args:
        result: Section result
        path: Output file path
        views: Views to draw (default: front, top, side_a, side_b)
        scale: Sheet millimetres per model unit
        margin: Sheet margin (mm)
        spacing: Gap between views (mm)
        dxf_version: DXF version string

    Returns:
        Path of the saved file
    """
    path = Path(path)
    layout = arrange_section_views(result, views, scale=scale, margin=margin, spacing=spacing)
    doc = build_section_dxf(layout, dxf_version=dxf_version)
    doc.saveas(str(path))
    logger.info("DXF saved: %s (%d views, %d loops)", path, len(layout.views), result.loop_count)
    return path
