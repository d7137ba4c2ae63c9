"""Half-Lambert diffuse term.

Half-Lambert remaps the light cosine before squaring, so a surface turned
away from the light still receives a soft falloff instead of going fully
black:

    HalfLambert = (N.L * 0.5 + 0.5)^2

With N.L clamped to [0, 1] the term ranges over [0.25, 1].
"""

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3


@ti.func
def n_dot_l(normal: vec3, light_direction: vec3) -> ti.f32:
    """Clamped cosine between the normal and the light direction.

    Args:
        normal: Unit surface normal.
        light_direction: Unit vector toward the light.

    Returns:
        max(0, N.L), additionally capped at 1.
    """
    return tm.clamp(tm.dot(normal, light_direction), 0.0, 1.0)


@ti.func
def half_lambert(cos_l: ti.f32) -> ti.f32:
    """Half-Lambert diffuse factor.

    Args:
        cos_l: Clamped N.L.

    Returns:
        (cos_l * 0.5 + 0.5)^2.
    """
    wrapped = cos_l * 0.5 + 0.5
    return wrapped * wrapped
