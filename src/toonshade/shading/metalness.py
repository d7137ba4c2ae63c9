"""Matcap-style artificial metalness.

Instead of sampling an environment, the metallic look is faked from the
screen-space orientation of the normal. The normal is rotated into view
space, its x/y components are halved, and the remaining length drives a
falling smoothstep:

    scaled = (n_view.x * 0.5, n_view.y * 0.5, n_view.z)
    metal_factor = smoothstep(0.3, 0.0, saturate(1 - |scaled|))

A normal facing the camera has |scaled| = 1, so metal_factor = 1. Toward the
silhouette |scaled| shrinks to 0.5 and metal_factor falls to 0 once
1 - |scaled| reaches 0.3. The albedo is then darkened by blending toward
base * metal_factor:

    albedo = saturate(lerp(base, base * metal_factor, metallic))

The blend only modulates brightness; it never adds reflective color.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.toonshade.shading.metalness import matcap_metal_factor
    >>> # Use within a Taichi kernel:
    >>> # m = matcap_metal_factor(normal, view_rotation)
"""

import taichi as ti
import taichi.math as tm

from src.toonshade.core.vector import (
    lerp,
    saturate,
    smoothstep,
    transform_direction,
)

vec3 = tm.vec3
mat3 = tm.mat3

# Scale applied to the x/y components of the view-space normal
VIEW_NORMAL_XY_SCALE = 0.5

# smoothstep edges: metal_factor is 1 at edge1 and 0 at edge0
METAL_EDGE_START = 0.3
METAL_EDGE_END = 0.0


@ti.func
def view_space_normal(normal: vec3, view_rotation: mat3) -> vec3:
    """Rotate a surface normal into view space.

    Args:
        normal: Unit surface normal.
        view_rotation: Upper-left 3x3 of the world-to-view matrix.

    Returns:
        The view-space normal.
    """
    return transform_direction(view_rotation, normal)


@ti.func
def scale_view_normal(view_normal: vec3) -> vec3:
    """Halve the x/y components of a view-space normal."""
    return vec3(
        view_normal.x * VIEW_NORMAL_XY_SCALE,
        view_normal.y * VIEW_NORMAL_XY_SCALE,
        view_normal.z,
    )


@ti.func
def matcap_metal_factor(normal: vec3, view_rotation: mat3) -> ti.f32:
    """Compute the matcap-style metal factor for a normal.

    Args:
        normal: Unit surface normal.
        view_rotation: Upper-left 3x3 of the world-to-view matrix.

    Returns:
        A factor in [0, 1]: 1 facing the camera, 0 toward the silhouette.
    """
    scaled = scale_view_normal(view_space_normal(normal, view_rotation))
    edge_distance = saturate(1.0 - tm.length(scaled))
    return smoothstep(METAL_EDGE_START, METAL_EDGE_END, edge_distance)


@ti.func
def metallic_albedo(base: vec3, metal_factor: ti.f32, metallic: ti.f32) -> vec3:
    """Blend the base color toward its matcap-darkened variant.

    Args:
        base: Base color (RGB).
        metal_factor: Matcap factor from matcap_metal_factor.
        metallic: Blend weight in [0, 1]. 0 returns base unchanged.

    Returns:
        saturate(lerp(base, base * metal_factor, metallic)).
    """
    return saturate(lerp(base, base * metal_factor, saturate(metallic)))
