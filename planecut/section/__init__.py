"""
Section modules.

Modules:
    types: Plane, Segment, Loop, curve variants, SectionResult
    intersector: plane/triangle intersection
    welding: endpoint welding of raw segments
    loops: loop assembly
    analytic: cylinder and cone sections
    engine: intersect_mesh pipeline
"""
