"""Taichi implementation of a stylized, toon-leaning surface shading model.

This package evaluates a single surface point against a single light, blending:
- Half-Lambert diffuse
- Beckmann normal-distribution specular
- Wrap-lighting fake subsurface scattering
- Fabric sheen
- Matcap-style artificial metalness

Subpackages:
    core: Portable shading math helpers (saturate, smoothstep, lerp, ...)
    material: Material parameters, Taichi uniforms and texture samplers
    shading: Per-point shading functions and composition policies
    pipeline: Reference host pass that runs the shading over a pixel grid
    preview: Image export utilities
"""

__version__ = "0.1.0"
