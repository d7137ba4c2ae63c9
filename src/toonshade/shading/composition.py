"""Lighting evaluation: combine the shading terms for one light.

Every term is computed for each (surface point, light) pair:
    diffuse    = albedo * light_color * HalfLambert(N.L)
    specular   = Beckmann(roughness, N.H) * light_color
    sheen      = (1 - N.H)^5 * sheen_intensity * sheen_color
    subsurface = diffuse_wrap(N.L, wrap_value) * subsurface * subsurface_tint

How the terms are summed is selected by a CompositionPolicy:
    DIFFUSE_ONLY: color = diffuse
    FULL:         color = (diffuse + specular + sheen) * attenuation + subsurface

The subsurface term is not attenuated under FULL, and DIFFUSE_ONLY ignores
attenuation entirely. Both behaviours are kept as-is.

Results for several lights are summed by the caller; this module handles
exactly one light per call.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.toonshade.shading.composition import shade_light, POLICY_FULL
    >>> # Use within a Taichi kernel:
    >>> # result = shade_light(material, surface, light, view_dir, light_color, POLICY_FULL)
"""

import enum

import taichi as ti
import taichi.math as tm

from src.toonshade.core.vector import dot, half_vector, saturate
from src.toonshade.material.uniforms import MaterialUniforms
from src.toonshade.shading.diffuse import half_lambert, n_dot_l
from src.toonshade.shading.distribution import beckmann_distribution
from src.toonshade.shading.sheen import sheen_term
from src.toonshade.shading.subsurface import subsurface_contribution
from src.toonshade.shading.surface import SurfacePoint

vec3 = tm.vec3

# Policy values as seen from Taichi scope
POLICY_DIFFUSE_ONLY = 0
POLICY_FULL = 1


class CompositionPolicy(enum.IntEnum):
    """How the per-light shading terms are summed."""

    DIFFUSE_ONLY = POLICY_DIFFUSE_ONLY
    FULL = POLICY_FULL

    @classmethod
    def from_name(cls, name: str) -> "CompositionPolicy":
        """Look up a policy by name, case-insensitively.

        Accepts "diffuse_only", "diffuse-only" and "full".

        Raises:
            KeyError: If the name is not a known policy.
        """
        key = name.strip().upper().replace("-", "_")
        try:
            return cls[key]
        except KeyError:
            valid = ", ".join(p.name.lower() for p in cls)
            raise KeyError(f"Unknown composition policy {name!r} (expected one of: {valid})") from None


@ti.dataclass
class LightSample:
    """One light as seen from a shaded point.

    Attributes:
        direction: Unit vector from the surface toward the light.
        attenuation: Combined shadow and distance falloff in [0, 1].
    """

    direction: vec3
    attenuation: ti.f32


@ti.dataclass
class ShadeTerms:
    """The individual lighting terms for one light, before composition."""

    diffuse: vec3
    specular: vec3
    sheen: vec3
    subsurface: vec3


@ti.dataclass
class ShadeResult:
    """Lit color for one (surface point, light) pair.

    Attributes:
        color: Lit RGB color, to be summed across lights by the caller.
        alpha: Surface alpha.
    """

    color: vec3
    alpha: ti.f32


@ti.func
def evaluate_terms(
    material: MaterialUniforms,
    surface: SurfacePoint,
    light: LightSample,
    view_direction: vec3,
    light_color: vec3,
) -> ShadeTerms:
    """Compute every shading term for one light.

    Args:
        material: Material uniforms for the draw call.
        surface: Prepared surface point.
        light: Light direction and attenuation.
        view_direction: Unit vector from the surface toward the camera.
        light_color: Light color (RGB).

    Returns:
        The unattenuated diffuse, specular, sheen and subsurface terms.
    """
    n = surface.normal
    cos_l = n_dot_l(n, light.direction)
    h = half_vector(light.direction, view_direction)
    cos_h = saturate(dot(n, h))

    return ShadeTerms(
        diffuse=surface.albedo * light_color * half_lambert(cos_l),
        specular=beckmann_distribution(material.roughness, cos_h) * light_color,
        sheen=sheen_term(cos_h, material.sheen_intensity, material.sheen_color),
        subsurface=subsurface_contribution(
            cos_l,
            material.wrap_value,
            material.subsurface,
            material.subsurface_tint,
        ),
    )


@ti.func
def compose(terms: ShadeTerms, attenuation: ti.f32, policy: ti.i32) -> vec3:
    """Sum the shading terms according to a composition policy.

    Args:
        terms: Terms from evaluate_terms.
        attenuation: Light attenuation in [0, 1].
        policy: POLICY_DIFFUSE_ONLY or POLICY_FULL.

    Returns:
        The composed RGB color.
    """
    color = terms.diffuse
    if policy == POLICY_FULL:
        lit = terms.diffuse + terms.specular + terms.sheen
        color = lit * saturate(attenuation) + terms.subsurface
    return color


@ti.func
def shade_light(
    material: MaterialUniforms,
    surface: SurfacePoint,
    light: LightSample,
    view_direction: vec3,
    light_color: vec3,
    policy: ti.i32,
) -> ShadeResult:
    """Evaluate one light at one prepared surface point.

    Args:
        material: Material uniforms for the draw call.
        surface: Prepared surface point.
        light: Light direction and attenuation.
        view_direction: Unit vector from the surface toward the camera.
        light_color: Light color (RGB).
        policy: POLICY_DIFFUSE_ONLY or POLICY_FULL.

    Returns:
        The lit color and the surface alpha.
    """
    terms = evaluate_terms(material, surface, light, view_direction, light_color)
    return ShadeResult(
        color=compose(terms, light.attenuation, policy),
        alpha=surface.alpha,
    )
