"""
Tests for the drawing layer: view layout, SVG and DXF export.

Tests:
- First-angle placement keeps projection lines aligned
- SVG groups per view, polygon/polyline per loop
- DXF layers per view, LWPOLYLINE closed flag
"""

import xml.etree.ElementTree as ET

import ezdxf
import numpy as np
import pytest

from planecut import intersect_mesh
from planecut.drawing.dxf_export import SECTION_LAYERS, build_section_dxf, export_section_dxf, layer_name
from planecut.drawing.layout import arrange_section_views, resolve_views
from planecut.drawing.svg_export import build_section_svg, render_section_svg
from planecut.projection.views import OrthoView
from planecut.section.types import Loop, SectionResult

SVG_NS = "{http://www.w3.org/2000/svg}"

OBLIQUE = dict(plane_point=(0, 0.1, 0), plane_normal=(0.3, 1.0, 0.4))


@pytest.fixture
def box_result(box_mesh):
    return intersect_mesh(*box_mesh, **OBLIQUE)


@pytest.fixture
def open_result():
    points = np.array([[0, 0, 0], [1, 0, 0], [1, 1, 1]], dtype=float)
    return SectionResult(loops=[Loop(points=points, is_closed=False)])


def _svg_groups(path):
    root = ET.parse(path).getroot()
    return {g.get("id"): g for g in root.iter(f"{SVG_NS}g")}


class TestResolveViews:
    """Tests for resolve_views."""

    def test_default_all_four(self):
        assert resolve_views(None) == [
            OrthoView.FRONT, OrthoView.TOP, OrthoView.SIDE_A, OrthoView.SIDE_B,
        ]

    def test_aliases_and_duplicates(self):
        assert resolve_views(["V", "front", "H"]) == [OrthoView.FRONT, OrthoView.TOP]

    def test_unknown_raises(self):
        with pytest.raises(ValueError):
            resolve_views(["iso"])


class TestLayout:
    """Tests for arrange_section_views."""

    def test_top_below_front(self, box_result):
        layout = arrange_section_views(box_result)
        front = layout.views[OrthoView.FRONT]
        top = layout.views[OrthoView.TOP]
        assert top.origin[0] == pytest.approx(front.origin[0])
        assert top.origin[1] < front.origin[1]

    def test_sides_on_front_row(self, box_result):
        layout = arrange_section_views(box_result)
        front = layout.views[OrthoView.FRONT]
        side_a = layout.views[OrthoView.SIDE_A]
        side_b = layout.views[OrthoView.SIDE_B]
        assert side_a.origin[1] == pytest.approx(front.origin[1])
        assert side_b.origin[1] == pytest.approx(front.origin[1])
        assert side_a.origin[0] < front.origin[0] < side_b.origin[0]

    def test_projection_lines_aligned(self, box_result):
        """Front/top share sheet x; front/sides share sheet y."""
        layout = arrange_section_views(box_result, scale=2.0)
        front = layout.views[OrthoView.FRONT].polylines[0]
        top = layout.views[OrthoView.TOP].polylines[0]
        side_a = layout.views[OrthoView.SIDE_A].polylines[0]
        assert np.allclose(front[:, 0], top[:, 0])
        assert np.allclose(front[:, 1], side_a[:, 1])

    def test_views_inside_sheet(self, box_result):
        layout = arrange_section_views(box_result, margin=5.0)
        for placed in layout.views.values():
            for poly in placed.polylines:
                assert poly[:, 0].min() >= 5.0 - 1e-9
                assert poly[:, 1].min() >= 5.0 - 1e-9
                assert poly[:, 0].max() <= layout.width - 5.0 + 1e-9
                assert poly[:, 1].max() <= layout.height - 5.0 + 1e-9

    def test_subset_takes_no_extra_space(self, box_mesh):
        result = intersect_mesh(*box_mesh)
        layout = arrange_section_views(result, views=["top"], margin=10.0)
        assert set(layout.views) == {OrthoView.TOP}
        assert layout.width == pytest.approx(22.0)
        assert layout.height == pytest.approx(22.0)

    def test_closed_flags_follow_loops(self, open_result):
        layout = arrange_section_views(open_result)
        assert layout.views[OrthoView.FRONT].closed == [False]

    def test_empty_result(self):
        layout = arrange_section_views(SectionResult.empty())
        assert all(not placed.polylines for placed in layout.views.values())
        assert layout.width > 0 and layout.height > 0


class TestSVGExport:
    """Tests for SVG rendering."""

    def test_file_written(self, box_result, tmp_path):
        path = render_section_svg(box_result, tmp_path / "cut.svg")
        assert path.exists()
        assert path.stat().st_size > 0

    def test_group_per_view(self, box_result, tmp_path):
        path = render_section_svg(box_result, tmp_path / "cut.svg")
        groups = _svg_groups(path)
        assert "section-views" in groups
        for view in ("front", "top", "side_a", "side_b"):
            group = groups[f"view-{view}"]
            assert group.get("data-view") == view
            assert len(group.findall(f"{SVG_NS}polygon")) == 1

    def test_views_subset(self, box_result, tmp_path):
        path = render_section_svg(box_result, tmp_path / "cut.svg", views=["front", "H"])
        ids = set(_svg_groups(path))
        assert {"view-front", "view-top"} <= ids
        assert "view-side_a" not in ids

    def test_open_loop_is_polyline(self, open_result, tmp_path):
        path = render_section_svg(open_result, tmp_path / "open.svg", views=["front"])
        group = _svg_groups(path)["view-front"]
        assert len(group.findall(f"{SVG_NS}polyline")) == 1
        assert not group.findall(f"{SVG_NS}polygon")

    def test_two_loops_two_polygons(self, two_boxes_mesh, tmp_path):
        result = intersect_mesh(*two_boxes_mesh)
        path = render_section_svg(result, tmp_path / "two.svg", views=["top"])
        group = _svg_groups(path)["view-top"]
        assert len(group.findall(f"{SVG_NS}polygon")) == 2

    def test_y_axis_flipped(self, box_mesh, tmp_path):
        """Top view sits below the front view on the SVG page (larger y)."""
        result = intersect_mesh(*box_mesh, **OBLIQUE)
        layout = arrange_section_views(result)
        dwg = build_section_svg(layout, tmp_path / "unused.svg")
        path = tmp_path / "flip.svg"
        dwg.saveas(str(path))
        groups = _svg_groups(path)

        def mean_y(group_id):
            pts = groups[group_id].find(f"{SVG_NS}polygon").get("points").split()
            return np.mean([float(p.split(",")[1]) for p in pts])

        assert mean_y("view-top") > mean_y("view-front")

    def test_size_in_millimetres(self, box_result, tmp_path):
        path = render_section_svg(box_result, tmp_path / "cut.svg")
        root = ET.parse(path).getroot()
        assert root.get("width").endswith("mm")
        assert root.get("viewBox").startswith("0 0 ")


class TestDXFExport:
    """Tests for DXF rendering."""

    def test_readable_document(self, box_result, tmp_path):
        path = export_section_dxf(box_result, tmp_path / "cut.dxf")
        doc = ezdxf.readfile(str(path))
        assert len(doc.modelspace().query("LWPOLYLINE")) == 4

    def test_layers_per_view(self, box_result, tmp_path):
        path = export_section_dxf(box_result, tmp_path / "cut.dxf")
        doc = ezdxf.readfile(str(path))
        for props in SECTION_LAYERS.values():
            assert props["name"] in doc.layers
        layers = {e.dxf.layer for e in doc.modelspace().query("LWPOLYLINE")}
        assert layers == {"SECTION_FRONT", "SECTION_TOP", "SECTION_SIDE_A", "SECTION_SIDE_B"}

    def test_closed_flag(self, box_result, open_result, tmp_path):
        closed_doc = ezdxf.readfile(str(export_section_dxf(box_result, tmp_path / "c.dxf")))
        open_doc = ezdxf.readfile(str(export_section_dxf(open_result, tmp_path / "o.dxf")))
        assert all(e.closed for e in closed_doc.modelspace().query("LWPOLYLINE"))
        assert not any(e.closed for e in open_doc.modelspace().query("LWPOLYLINE"))

    def test_views_subset(self, box_result, tmp_path):
        path = export_section_dxf(box_result, tmp_path / "cut.dxf", views=["side_b"])
        doc = ezdxf.readfile(str(path))
        layers = {e.dxf.layer for e in doc.modelspace().query("LWPOLYLINE")}
        assert layers == {"SECTION_SIDE_B"}

    def test_vertex_count(self, box_result):
        doc = build_section_dxf(arrange_section_views(box_result, views=["top"]))
        (polyline,) = doc.modelspace().query("LWPOLYLINE")
        assert len(polyline) == len(box_result.loops[0])

    def test_layer_name_accepts_alias(self):
        assert layer_name("W") == "SECTION_SIDE_A"
