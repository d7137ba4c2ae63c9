"""Fabric sheen approximation."""

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3


@ti.func
def sheen_term(n_dot_h: ti.f32, intensity: ti.f32, color: vec3) -> vec3:
    """Grazing-angle brightening approximating microfiber scattering.

        sheen = (1 - N.H)^5 * intensity * color

    N.H is saturated first, so the result is zero when the normal faces the
    half-vector and grows monotonically toward the silhouette.

    Args:
        n_dot_h: Cosine between the normal and the half-vector.
        intensity: Sheen strength in [0, 1].
        color: Sheen color (RGB).

    Returns:
        The sheen color contribution.
    """
    grazing = 1.0 - tm.clamp(n_dot_h, 0.0, 1.0)
    grazing2 = grazing * grazing
    return grazing2 * grazing2 * grazing * tm.clamp(intensity, 0.0, 1.0) * color
