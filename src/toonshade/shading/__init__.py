"""Shading module for the stylized per-point lighting model.

This module implements the two shading stages and their supporting math:

Components:
    distribution: Beckmann normal distribution (specular highlight shape)
    diffuse: Half-Lambert diffuse
    subsurface: Wrap-lighting fake subsurface scattering
    sheen: Fabric sheen
    metalness: Matcap-style artificial metalness and albedo blend
    surface: Surface preparation (SurfacePoint)
    composition: Lighting evaluation and composition policies

Each function handles one surface point and one light, and clamps its inputs
instead of raising, so no input in the documented ranges produces NaN or
infinity. All shading functions are Taichi functions.
"""

from .composition import (
    POLICY_DIFFUSE_ONLY,
    POLICY_FULL,
    CompositionPolicy,
    LightSample,
    ShadeResult,
    ShadeTerms,
    compose,
    evaluate_terms,
    shade_light,
)
from .diffuse import half_lambert, n_dot_l
from .distribution import MIN_N_DOT_H, NDF_FLOOR, beckmann_distribution
from .metalness import (
    matcap_metal_factor,
    metallic_albedo,
    scale_view_normal,
    view_space_normal,
)
from .sheen import sheen_term
from .subsurface import diffuse_wrap, subsurface_contribution
from .surface import SurfacePoint, prepare_surface

__all__ = [
    # Distribution
    "beckmann_distribution",
    "MIN_N_DOT_H",
    "NDF_FLOOR",
    # Diffuse
    "n_dot_l",
    "half_lambert",
    # Subsurface
    "diffuse_wrap",
    "subsurface_contribution",
    # Sheen
    "sheen_term",
    # Metalness
    "view_space_normal",
    "scale_view_normal",
    "matcap_metal_factor",
    "metallic_albedo",
    # Surface
    "SurfacePoint",
    "prepare_surface",
    # Composition
    "CompositionPolicy",
    "POLICY_DIFFUSE_ONLY",
    "POLICY_FULL",
    "LightSample",
    "ShadeTerms",
    "ShadeResult",
    "evaluate_terms",
    "compose",
    "shade_light",
]
