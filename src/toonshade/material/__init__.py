"""Material module.

This module holds everything that describes a surface's material:

Components:
    parameters: Host-side MaterialParameters (validation, clamping, JSON)
    uniforms: Taichi MaterialUniforms struct and unpacking
    sampler: MaterialSampler protocol with constant and image samplers

Parameters are validated once on the host; the Taichi-side shading functions
only clamp at each computation site.
"""

from .parameters import (
    MATERIAL_PACK_SIZE,
    MIN_ROUGHNESS,
    MaterialParameters,
    load_material,
    save_material,
)
from .sampler import (
    DEFAULT_CHANNEL_COLORS,
    ConstantSampler,
    ImageSampler,
    MaterialChannel,
    MaterialSampler,
)
from .uniforms import MaterialUniforms, unpack_material

__all__ = [
    # Parameters
    "MaterialParameters",
    "MIN_ROUGHNESS",
    "MATERIAL_PACK_SIZE",
    "load_material",
    "save_material",
    # Uniforms
    "MaterialUniforms",
    "unpack_material",
    # Samplers
    "MaterialChannel",
    "MaterialSampler",
    "ConstantSampler",
    "ImageSampler",
    "DEFAULT_CHANNEL_COLORS",
]
