"""Core math module.

This module contains the scalar and vector helpers used by every shading
function:

Components:
    vector: Vector aliases, saturate/smoothstep/lerp, safe normalization,
        half-vector and direction transforms

All functions are Taichi functions and must be called from Taichi scope.
"""

from .vector import (
    NORMALIZE_EPSILON,
    dot,
    half_vector,
    length,
    lerp,
    mat3,
    safe_normalize,
    saturate,
    smoothstep,
    transform_direction,
    vec3,
    vec4,
)

__all__ = [
    "vec3",
    "vec4",
    "mat3",
    "NORMALIZE_EPSILON",
    "saturate",
    "lerp",
    "smoothstep",
    "dot",
    "length",
    "safe_normalize",
    "half_vector",
    "transform_direction",
]
