"""Vector and scalar helpers shared by the shading functions.

Shading languages provide `saturate`, `smoothstep` and `lerp` as built-ins and
expose the view matrix as implicit global state. This module re-expresses them
as plain Taichi functions so every input of a shading function is an explicit
argument. All functions are designed to be called from within Taichi kernels.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.toonshade.core.vector import half_vector, saturate
    >>> # Use within a Taichi kernel:
    >>> # h = half_vector(light_dir, view_dir)
    >>> # n_dot_h = saturate(dot(normal, h))
"""

import taichi as ti
import taichi.math as tm

# Type aliases for vectors and matrices using Taichi's math module
vec3 = tm.vec3
vec4 = tm.vec4
mat3 = tm.mat3

# Vectors shorter than this are treated as zero-length
NORMALIZE_EPSILON = 1e-8


@ti.func
def saturate(x):
    """Clamp a scalar or vector to the [0, 1] range.

    Args:
        x: The value to clamp.

    Returns:
        x clamped component-wise to [0, 1].
    """
    return tm.clamp(x, 0.0, 1.0)


@ti.func
def lerp(a, b, t):
    """Linearly interpolate between a and b.

    Args:
        a: Value returned at t = 0.
        b: Value returned at t = 1.
        t: Interpolation weight (not clamped).

    Returns:
        a + (b - a) * t.
    """
    return a + (b - a) * t


@ti.func
def smoothstep(edge0: ti.f32, edge1: ti.f32, x: ti.f32) -> ti.f32:
    """Hermite interpolation between two edges.

    Follows the shading-language definition, so edge0 may be greater than
    edge1, which produces a falling curve:
        t = saturate((x - edge0) / (edge1 - edge0))
        result = t * t * (3 - 2t)

    Args:
        edge0: Input value mapped to 0.
        edge1: Input value mapped to 1. Must differ from edge0.
        x: The input value.

    Returns:
        The smoothly interpolated value in [0, 1].
    """
    t = saturate((x - edge0) / (edge1 - edge0))
    return t * t * (3.0 - 2.0 * t)


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    """Compute the dot product of two vectors."""
    return tm.dot(a, b)


@ti.func
def length(v: vec3) -> ti.f32:
    """Compute the Euclidean length of a vector."""
    return tm.length(v)


@ti.func
def safe_normalize(v: vec3) -> vec3:
    """Normalize a vector, returning zero for zero-length input.

    Unlike `tm.normalize`, this never divides by zero, so degenerate inputs
    (such as the sum of two opposite directions) cannot produce NaN.

    Args:
        v: The input vector.

    Returns:
        A unit vector in the direction of v, or the zero vector.
    """
    result = vec3(0.0, 0.0, 0.0)
    len_v = tm.length(v)
    if len_v > NORMALIZE_EPSILON:
        result = v / len_v
    return result


@ti.func
def half_vector(light_direction: vec3, view_direction: vec3) -> vec3:
    """Compute the normalized half-vector between light and view directions.

    Both directions point away from the surface (toward the light and toward
    the camera). When they are exactly opposite, the half-vector is undefined
    and the zero vector is returned.

    Args:
        light_direction: Unit vector toward the light.
        view_direction: Unit vector toward the camera.

    Returns:
        normalize(light_direction + view_direction), or zero if degenerate.
    """
    return safe_normalize(light_direction + view_direction)


@ti.func
def transform_direction(m: mat3, v: vec3) -> vec3:
    """Transform a direction by a 3x3 matrix (no translation).

    Args:
        m: Rotation (or general linear) matrix, row-major.
        v: Direction to transform.

    Returns:
        The product m * v.
    """
    return m @ v
