"""Pipeline module: the host side of the shading model.

Components:
    shading_pass: ShadingPass, which runs surface preparation and per-light
        evaluation over a pixel grid, and the shade_point() convenience
    geometry: Analytic sphere buffers and look-at view rotations

The shading functions themselves handle one point and one light; this module
supplies their inputs and sums the results across lights.
"""

from .geometry import SphereSurface, look_at_rotation, sphere_surface
from .shading_pass import (
    DEFAULT_VIEW_DIRECTION,
    PointShade,
    ShadingPass,
    shade_point,
)

__all__ = [
    "ShadingPass",
    "PointShade",
    "shade_point",
    "DEFAULT_VIEW_DIRECTION",
    "SphereSurface",
    "sphere_surface",
    "look_at_rotation",
]
