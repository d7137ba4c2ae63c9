"""Wrap-lighting subsurface approximation.

Light transmission through thin organic material is faked by wrapping the
lit region around the terminator:

    diffuse_wrap = 1 - (N.L * w + (1 - w))^2
    subsurface = diffuse_wrap * strength * tint

With w = 0 there is no wrap; w = 1 maximizes the wrap-around. The term is
added independently of the diffuse term.
"""

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3


@ti.func
def diffuse_wrap(cos_l: ti.f32, wrap_value: ti.f32) -> ti.f32:
    """Wrap factor for the subsurface term.

    Args:
        cos_l: Cosine between the normal and the light direction, in [-1, 1].
        wrap_value: Wrap amount in [0, 1].

    Returns:
        1 - (cos_l * w + (1 - w))^2, in [0, 1] for in-range inputs.
    """
    w = tm.clamp(wrap_value, 0.0, 1.0)
    c = tm.clamp(cos_l, -1.0, 1.0)
    wrapped = c * w + (1.0 - w)
    return 1.0 - wrapped * wrapped


@ti.func
def subsurface_contribution(
    cos_l: ti.f32,
    wrap_value: ti.f32,
    strength: ti.f32,
    tint: vec3,
) -> vec3:
    """Colored subsurface contribution.

    Args:
        cos_l: Cosine between the normal and the light direction.
        wrap_value: Wrap amount in [0, 1].
        strength: Subsurface strength in [0, 1].
        tint: Subsurface color (RGB).

    Returns:
        diffuse_wrap * strength * tint.
    """
    return diffuse_wrap(cos_l, wrap_value) * tm.clamp(strength, 0.0, 1.0) * tint
