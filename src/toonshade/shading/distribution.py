"""Beckmann normal distribution function.

The Beckmann distribution models the statistical spread of microfacet
orientations and is the only specular highlight shape used by the shading
model (no Fresnel or geometry term is applied):

    D = 1 / (pi * r^4 * cos^4(h)) * exp((cos^2(h) - 1) / (r^2 * cos^2(h)))

where r is the roughness and cos(h) = N . H. Larger roughness broadens and
flattens the highlight; smaller roughness sharpens it.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.toonshade.shading.distribution import beckmann_distribution
    >>> # Use within a Taichi kernel:
    >>> # d = beckmann_distribution(roughness, n_dot_h)
"""

import taichi as ti
import taichi.math as tm

from src.toonshade.material.parameters import MIN_ROUGHNESS

# Smallest N.H used in the denominator
MIN_N_DOT_H = 1e-4

# Lower bound of the distribution value
NDF_FLOOR = 1e-6


@ti.func
def beckmann_distribution(roughness: ti.f32, n_dot_h: ti.f32) -> ti.f32:
    """Evaluate the Beckmann NDF.

    Roughness and N.H are clamped away from zero before dividing, and the
    result is floored at NDF_FLOOR, so the output is finite and positive for
    every input, including the boundary values 0 and 1.

    Args:
        roughness: Surface roughness in (0, 1].
        n_dot_h: Cosine between the normal and the half-vector, in [0, 1].

    Returns:
        The distribution value, at least NDF_FLOOR.
    """
    r = tm.clamp(roughness, MIN_ROUGHNESS, 1.0)
    cos_h = tm.clamp(n_dot_h, MIN_N_DOT_H, 1.0)

    r2 = r * r
    cos2 = cos_h * cos_h

    exponent = (cos2 - 1.0) / (r2 * cos2)
    d = ti.exp(exponent) / (tm.pi * r2 * r2 * cos2 * cos2)
    return ti.max(NDF_FLOOR, d)
