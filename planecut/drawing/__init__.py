"""SVG/DXF output of section projections."""
