"""Reference host pass that runs the shading model over a pixel grid.

The shading functions evaluate one surface point against one light. This
module plays the part of the host render pipeline around them:
- Uploads per-pixel normals and pre-sampled texture colors
- Runs surface preparation once per pixel
- Runs lighting evaluation once per pixel per light, one kernel thread per
  pixel, and sums the results across lights
- Reads back the lit RGBA image and the prepared albedo for debugging

Emission is written into the output once, during preparation, so it is not
counted again for every light.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.toonshade.material.parameters import MaterialParameters
    >>> from src.toonshade.pipeline.geometry import sphere_surface
    >>> from src.toonshade.pipeline.shading_pass import ShadingPass
    >>>
    >>> sphere = sphere_surface(128, 128)
    >>> shading = ShadingPass(128, 128, MaterialParameters(roughness=0.3))
    >>> shading.set_surface(sphere.normals, alpha=sphere.mask)
    >>> shading.prepare()
    >>> shading.add_light((0.3, 0.5, 0.8), color=(1.0, 0.95, 0.9))
    >>> image = shading.get_image_numpy()  # (128, 128, 4)
"""

import logging
from typing import NamedTuple

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from src.toonshade.material.parameters import MATERIAL_PACK_SIZE, MaterialParameters
from src.toonshade.material.sampler import MaterialChannel, MaterialSampler
from src.toonshade.material.uniforms import unpack_material
from src.toonshade.shading.composition import (
    CompositionPolicy,
    LightSample,
    shade_light,
)
from src.toonshade.shading.surface import SurfacePoint, prepare_surface

logger = logging.getLogger(__name__)

vec3 = tm.vec3

# Default view direction: orthographic camera looking down -z
DEFAULT_VIEW_DIRECTION = (0.0, 0.0, 1.0)


class PointShade(NamedTuple):
    """Result of shading a single point with shade_point()."""

    color: tuple[float, float, float]
    alpha: float
    albedo: tuple[float, float, float]


def _normalize_direction(name: str, direction: npt.ArrayLike) -> npt.NDArray[np.float32]:
    d = np.asarray(direction, dtype=np.float64)
    norm = np.linalg.norm(d)
    if not np.isfinite(norm) or norm < 1e-8:
        raise ValueError(f"{name} must be a non-zero finite vector, got {direction!r}")
    return (d / norm).astype(np.float32)


@ti.data_oriented
class ShadingPass:
    """Shades one image worth of surface points, one light at a time.

    Typical use is set_surface() -> prepare() -> add_light() for each light
    -> get_image_numpy(). Changing the material, surface or view after
    prepare() requires calling prepare() again.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
    """

    def __init__(
        self,
        width: int,
        height: int,
        material: MaterialParameters | None = None,
        policy: CompositionPolicy | str = CompositionPolicy.DIFFUSE_ONLY,
    ) -> None:
        """Allocate the per-pixel buffers.

        Args:
            width: Image width in pixels.
            height: Image height in pixels.
            material: Material for the pass. Defaults to MaterialParameters().
            policy: Composition policy, as a CompositionPolicy or its name.

        Raises:
            ValueError: If the dimensions are not positive.
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Image dimensions must be positive, got {width}x{height}")

        self._width = width
        self._height = height
        shape = (height, width)

        # Inputs
        self._material_pack = ti.field(dtype=ti.f32, shape=MATERIAL_PACK_SIZE)
        self._view_rotation = ti.Matrix.field(3, 3, dtype=ti.f32, shape=())
        self._normal = ti.Vector.field(3, dtype=ti.f32, shape=shape)
        self._albedo_sample = ti.Vector.field(3, dtype=ti.f32, shape=shape)
        self._alpha_sample = ti.field(dtype=ti.f32, shape=shape)
        self._emission_sample = ti.Vector.field(3, dtype=ti.f32, shape=shape)
        self._view_direction = ti.Vector.field(3, dtype=ti.f32, shape=shape)

        # Current light
        self._light_direction = ti.Vector.field(3, dtype=ti.f32, shape=shape)
        self._light_attenuation = ti.field(dtype=ti.f32, shape=shape)
        self._light_color = ti.Vector.field(3, dtype=ti.f32, shape=())

        # Outputs
        self._albedo = ti.Vector.field(3, dtype=ti.f32, shape=shape)
        self._alpha = ti.field(dtype=ti.f32, shape=shape)
        self._color = ti.Vector.field(3, dtype=ti.f32, shape=shape)

        self._prepared = False
        self._light_count = 0
        self._material = MaterialParameters()
        self._policy = CompositionPolicy.DIFFUSE_ONLY

        self.material = material if material is not None else MaterialParameters()
        self.policy = policy
        self.set_surface(np.broadcast_to(np.float32([0.0, 0.0, 1.0]), shape + (3,)))
        self.set_view()

        logger.debug("Allocated %dx%d shading pass", width, height)

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def width(self) -> int:
        """Get the image width."""
        return self._width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self._height

    @property
    def light_count(self) -> int:
        """Number of lights accumulated since the last prepare()."""
        return self._light_count

    @property
    def prepared(self) -> bool:
        """Whether surface preparation is current."""
        return self._prepared

    @property
    def material(self) -> MaterialParameters:
        return self._material

    @material.setter
    def material(self, material: MaterialParameters) -> None:
        self._material = material
        self._material_pack.from_numpy(material.pack())
        self._prepared = False

    @property
    def policy(self) -> CompositionPolicy:
        return self._policy

    @policy.setter
    def policy(self, policy: CompositionPolicy | str) -> None:
        if isinstance(policy, str):
            policy = CompositionPolicy.from_name(policy)
        self._policy = CompositionPolicy(policy)

    # -------------------------------------------------------------------------
    # Input upload
    # -------------------------------------------------------------------------

    def _as_buffer(
        self, name: str, value: npt.ArrayLike, channels: int
    ) -> npt.NDArray[np.float32]:
        """Broadcast a constant or validate a per-pixel array."""
        array = np.asarray(value, dtype=np.float32)
        shape = (self._height, self._width) if channels == 1 else (self._height, self._width, channels)
        constant_shape = () if channels == 1 else (channels,)

        if array.shape == constant_shape:
            array = np.broadcast_to(array, shape)
        elif array.shape != shape:
            raise ValueError(
                f"{name} must have shape {constant_shape} or {shape}, got {array.shape}"
            )
        if not np.all(np.isfinite(array)):
            raise ValueError(f"{name} must contain only finite values")
        return np.ascontiguousarray(array)

    def set_surface(
        self,
        normals: npt.ArrayLike,
        albedo_samples: npt.ArrayLike | None = None,
        alpha: npt.ArrayLike | None = None,
        emission_samples: npt.ArrayLike | None = None,
    ) -> None:
        """Upload per-pixel surface inputs.

        Args:
            normals: Unit normals, shape (H, W, 3) or a single (3,) normal.
            albedo_samples: Sampled albedo colors, (H, W, 3) or (3,).
                Defaults to white.
            alpha: Sampled alpha, (H, W) or a scalar. Defaults to 1.
            emission_samples: Sampled emission colors, (H, W, 3) or (3,).
                Defaults to white, so emission equals the material's
                emission_color.

        Raises:
            ValueError: If any buffer has the wrong shape or non-finite values.
        """
        self._normal.from_numpy(self._as_buffer("normals", normals, 3))
        self._albedo_sample.from_numpy(
            self._as_buffer("albedo_samples", (1.0, 1.0, 1.0) if albedo_samples is None else albedo_samples, 3)
        )
        self._alpha_sample.from_numpy(self._as_buffer("alpha", 1.0 if alpha is None else alpha, 1))
        self._emission_sample.from_numpy(
            self._as_buffer(
                "emission_samples", (1.0, 1.0, 1.0) if emission_samples is None else emission_samples, 3
            )
        )
        self._prepared = False

    def set_surface_from_sampler(
        self,
        sampler: MaterialSampler,
        uvs: npt.ArrayLike,
        normals: npt.ArrayLike,
        alpha: npt.ArrayLike | None = None,
    ) -> None:
        """Sample albedo and emission through a MaterialSampler, then upload.

        Args:
            sampler: The material sampler.
            uvs: Texture coordinates of shape (H, W, 2).
            normals: Unit normals of shape (H, W, 3).
            alpha: Optional per-pixel alpha of shape (H, W).

        Raises:
            ValueError: If uvs does not have shape (H, W, 2).
        """
        uvs = np.asarray(uvs, dtype=np.float32)
        if uvs.shape != (self._height, self._width, 2):
            raise ValueError(
                f"uvs must have shape {(self._height, self._width, 2)}, got {uvs.shape}"
            )
        self.set_surface(
            normals,
            albedo_samples=sampler.sample(MaterialChannel.ALBEDO, uvs),
            alpha=alpha,
            emission_samples=sampler.sample(MaterialChannel.EMISSION, uvs),
        )

    def set_view(
        self,
        view_rotation: npt.ArrayLike | None = None,
        view_directions: npt.ArrayLike | None = None,
    ) -> None:
        """Set the camera used for shading.

        Args:
            view_rotation: (3, 3) world-to-view rotation. Defaults to identity.
            view_directions: Unit vectors toward the camera, (H, W, 3) or a
                single (3,) direction. Defaults to (0, 0, 1).

        Raises:
            ValueError: If the rotation is not (3, 3) or a buffer is malformed.
        """
        rotation = np.eye(3, dtype=np.float32) if view_rotation is None else np.asarray(view_rotation, dtype=np.float32)
        if rotation.shape != (3, 3):
            raise ValueError(f"view_rotation must have shape (3, 3), got {rotation.shape}")
        self._view_rotation[None] = ti.Matrix(rotation.tolist())

        if view_directions is None:
            view_directions = DEFAULT_VIEW_DIRECTION
        if np.shape(view_directions) == (3,):
            view_directions = _normalize_direction("view_directions", view_directions)
        self._view_direction.from_numpy(self._as_buffer("view_directions", view_directions, 3))
        self._prepared = False

    # -------------------------------------------------------------------------
    # Kernels
    # -------------------------------------------------------------------------

    @ti.kernel
    def _prepare_kernel(self):
        for i, j in self._normal:
            material = unpack_material(self._material_pack)
            view_rotation = self._view_rotation[None]
            surface = prepare_surface(
                material,
                self._albedo_sample[i, j],
                self._alpha_sample[i, j],
                self._normal[i, j],
                self._emission_sample[i, j],
                view_rotation,
            )
            self._albedo[i, j] = surface.albedo
            self._alpha[i, j] = surface.alpha
            self._color[i, j] = surface.emission

    @ti.kernel
    def _shade_kernel(self, policy: ti.i32):
        for i, j in self._normal:
            material = unpack_material(self._material_pack)
            light_color = self._light_color[None]
            surface = SurfacePoint(
                albedo=self._albedo[i, j],
                normal=self._normal[i, j],
                emission=vec3(0.0, 0.0, 0.0),
                alpha=self._alpha[i, j],
            )
            light = LightSample(
                direction=self._light_direction[i, j],
                attenuation=self._light_attenuation[i, j],
            )
            result = shade_light(
                material,
                surface,
                light,
                self._view_direction[i, j],
                light_color,
                policy,
            )
            self._color[i, j] += result.color

    # -------------------------------------------------------------------------
    # Shading
    # -------------------------------------------------------------------------

    def prepare(self) -> None:
        """Run surface preparation and reset the output to emission only."""
        self._prepare_kernel()
        self._prepared = True
        self._light_count = 0
        logger.debug("Prepared surface for %dx%d pass", self._width, self._height)

    def add_light(
        self,
        direction: npt.ArrayLike,
        color: tuple[float, float, float] = (1.0, 1.0, 1.0),
        attenuation: npt.ArrayLike = 1.0,
    ) -> None:
        """Evaluate one light and add its contribution to the output.

        Args:
            direction: Direction toward the light: a (3,) vector, normalized
                here, or an (H, W, 3) array of unit vectors.
            color: Light color (RGB).
            attenuation: Shadow and distance falloff, a scalar or (H, W) array.

        Raises:
            RuntimeError: If prepare() has not been called since the last change.
            ValueError: If a buffer has the wrong shape or non-finite values.
        """
        if not self._prepared:
            raise RuntimeError("ShadingPass.prepare() must be called before add_light()")

        if np.shape(direction) == (3,):
            direction = _normalize_direction("direction", direction)
        self._light_direction.from_numpy(self._as_buffer("direction", direction, 3))
        self._light_attenuation.from_numpy(self._as_buffer("attenuation", attenuation, 1))

        light_color = np.asarray(color, dtype=np.float32)
        if light_color.shape != (3,) or not np.all(np.isfinite(light_color)):
            raise ValueError(f"color must be a finite RGB triple, got {color!r}")
        self._light_color[None] = [light_color[0], light_color[1], light_color[2]]

        self._shade_kernel(int(self._policy))
        self._light_count += 1
        logger.debug("Added light %d (%s)", self._light_count, self._policy.name)

    def reset(self) -> None:
        """Discard accumulated lighting; prepare() must be called again."""
        self._color.fill(0.0)
        self._prepared = False
        self._light_count = 0

    # -------------------------------------------------------------------------
    # Read-back
    # -------------------------------------------------------------------------

    def get_image_numpy(self) -> npt.NDArray[np.float32]:
        """Get the lit image as a NumPy array.

        Values are linear and unclamped; tone mapping is left to the caller.

        Returns:
            Array of shape (height, width, 4): summed RGB and surface alpha.
        """
        color = self._color.to_numpy().astype(np.float32)
        alpha = self._alpha.to_numpy().astype(np.float32)
        return np.concatenate([color, alpha[..., None]], axis=-1)

    def get_albedo_numpy(self) -> npt.NDArray[np.float32]:
        """Get the prepared albedo, for debugging.

        Returns:
            Array of shape (height, width, 3).

        Raises:
            RuntimeError: If prepare() has not been called.
        """
        if not self._prepared:
            raise RuntimeError("ShadingPass.prepare() must be called before reading albedo")
        return self._albedo.to_numpy().astype(np.float32)

    def __repr__(self) -> str:
        """Return a string representation of the pass state."""
        return (
            f"ShadingPass(width={self.width}, height={self.height}, "
            f"policy={self.policy.name}, lights={self.light_count})"
        )


# 1x1 pass shared by shade_point(), allocated on first use
_point_pass: ShadingPass | None = None


def _get_point_pass() -> ShadingPass:
    """Return the shared 1x1 pass, allocating its fields once."""
    global _point_pass
    if _point_pass is None:
        _point_pass = ShadingPass(1, 1)
        logger.debug("Allocated shared single-point shading pass")
    return _point_pass


def shade_point(
    material: MaterialParameters,
    normal: tuple[float, float, float],
    light_direction: tuple[float, float, float],
    view_direction: tuple[float, float, float] = DEFAULT_VIEW_DIRECTION,
    light_color: tuple[float, float, float] = (1.0, 1.0, 1.0),
    attenuation: float = 1.0,
    policy: CompositionPolicy | str = CompositionPolicy.DIFFUSE_ONLY,
    albedo_sample: tuple[float, float, float] = (1.0, 1.0, 1.0),
    view_rotation: npt.ArrayLike | None = None,
) -> PointShade:
    """Shade a single surface point against a single light.

    Runs on a 1x1 ShadingPass that is allocated once and reused, so repeated
    calls do not allocate new Taichi fields or recompile kernels. Every input
    of the pass is overwritten on each call.

    Args:
        material: Material parameters.
        normal: Unit surface normal.
        light_direction: Direction toward the light.
        view_direction: Direction toward the camera.
        light_color: Light color (RGB).
        attenuation: Light attenuation in [0, 1].
        policy: Composition policy.
        albedo_sample: Sampled albedo color (RGB).
        view_rotation: Optional (3, 3) world-to-view rotation.

    Returns:
        The lit color, alpha and prepared albedo.
    """
    shading = _get_point_pass()
    shading.material = material
    shading.policy = policy
    shading.set_surface(normal, albedo_samples=albedo_sample)
    shading.set_view(view_rotation, view_direction)
    # prepare() overwrites the output with emission, dropping earlier lights
    shading.prepare()
    shading.add_light(light_direction, color=light_color, attenuation=attenuation)

    image = shading.get_image_numpy()[0, 0]
    albedo = shading.get_albedo_numpy()[0, 0]
    return PointShade(
        color=(float(image[0]), float(image[1]), float(image[2])),
        alpha=float(image[3]),
        albedo=(float(albedo[0]), float(albedo[1]), float(albedo[2])),
    )
