"""Taichi-side material uniforms.

MaterialUniforms mirrors MaterialParameters inside Taichi scope. Kernels
receive the parameters as the flat float array produced by
`MaterialParameters.pack()` and rebuild the struct with `unpack_material`.
"""

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3
vec4 = tm.vec4


@ti.dataclass
class MaterialUniforms:
    """Material parameters for one draw call.

    Attributes:
        base_color: Base color tint (RGBA).
        emission_color: Emission tint (RGB).
        subsurface_tint: Subsurface color (RGB).
        sheen_color: Sheen color (RGB).
        roughness: Roughness, already clamped away from zero.
        metallic: Matcap metalness blend in [0, 1].
        subsurface: Subsurface strength in [0, 1].
        wrap_value: Wrap-lighting amount in [0, 1].
        sheen_intensity: Sheen strength in [0, 1].
    """

    base_color: vec4
    emission_color: vec3
    subsurface_tint: vec3
    sheen_color: vec3
    roughness: ti.f32
    metallic: ti.f32
    subsurface: ti.f32
    wrap_value: ti.f32
    sheen_intensity: ti.f32


@ti.func
def unpack_material(packed: ti.template()) -> MaterialUniforms:
    """Rebuild MaterialUniforms from a packed 1D float field.

    Args:
        packed: Field of shape (MATERIAL_PACK_SIZE,) filled from
            MaterialParameters.pack().

    Returns:
        The material uniforms.
    """
    return MaterialUniforms(
        base_color=vec4(packed[0], packed[1], packed[2], packed[3]),
        emission_color=vec3(packed[4], packed[5], packed[6]),
        subsurface_tint=vec3(packed[7], packed[8], packed[9]),
        sheen_color=vec3(packed[10], packed[11], packed[12]),
        roughness=packed[13],
        metallic=packed[14],
        subsurface=packed[15],
        wrap_value=packed[16],
        sheen_intensity=packed[17],
    )
