"""Surface preparation: derive the per-point surface record.

Surface preparation runs once per shaded point, before any light is
evaluated. It combines the material's base color with the sampled albedo,
applies the matcap-style metalness, and passes the normal, emission and alpha
through to lighting evaluation.
"""

import taichi as ti
import taichi.math as tm

from src.toonshade.core.vector import saturate
from src.toonshade.material.uniforms import MaterialUniforms
from src.toonshade.shading.metalness import matcap_metal_factor, metallic_albedo

vec3 = tm.vec3
mat3 = tm.mat3


@ti.dataclass
class SurfacePoint:
    """The prepared surface at one shaded point.

    Attributes:
        albedo: Derived diffuse color (RGB). The only field preparation computes.
        normal: Unit surface normal.
        emission: Emitted color (RGB).
        alpha: Coverage/opacity in [0, 1].
    """

    albedo: vec3
    normal: vec3
    emission: vec3
    alpha: ti.f32


@ti.func
def prepare_surface(
    material: MaterialUniforms,
    albedo_sample: vec3,
    alpha_sample: ti.f32,
    normal: vec3,
    emission_sample: vec3,
    view_rotation: mat3,
) -> SurfacePoint:
    """Build the SurfacePoint for one shaded point.

    Args:
        material: Material uniforms for the draw call.
        albedo_sample: Albedo texture color sampled at this point (RGB).
        alpha_sample: Albedo texture alpha sampled at this point.
        normal: Unit surface normal.
        emission_sample: Emission texture color sampled at this point (RGB).
        view_rotation: Upper-left 3x3 of the world-to-view matrix.

    Returns:
        The prepared surface point.
    """
    tint = material.base_color
    base = saturate(vec3(tint.x, tint.y, tint.z) * albedo_sample)
    metal_factor = matcap_metal_factor(normal, view_rotation)
    return SurfacePoint(
        albedo=metallic_albedo(base, metal_factor, material.metallic),
        normal=normal,
        emission=material.emission_color * emission_sample,
        alpha=saturate(tint.w * alpha_sample),
    )
