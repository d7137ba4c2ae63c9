"""Unit tests for ShadingPass and shade_point.

Tests cover:
- Input validation and buffer shapes
- Preparation state (RuntimeError before prepare)
- Accumulation across lights
- Emission seeding
- Per-pixel attenuation and composition policies
- Sampling surface inputs through a MaterialSampler
- Single-point shading
"""

import math

import numpy as np
import pytest

from src.toonshade.material.parameters import MaterialParameters
from src.toonshade.material.sampler import ConstantSampler
from src.toonshade.pipeline.shading_pass import ShadingPass, shade_point
from src.toonshade.shading.composition import CompositionPolicy


def _facing_pass(width=2, height=2, material=None, policy=CompositionPolicy.DIFFUSE_ONLY):
    """Pass whose surface faces the camera everywhere, already prepared."""
    shading = ShadingPass(width, height, material, policy)
    shading.set_surface((0.0, 0.0, 1.0))
    shading.prepare()
    return shading


class TestConstruction:
    """Tests for ShadingPass construction and properties."""

    def test_defaults(self):
        """Test default dimensions, policy and state."""
        shading = ShadingPass(4, 3)
        assert shading.width == 4
        assert shading.height == 3
        assert shading.policy == CompositionPolicy.DIFFUSE_ONLY
        assert shading.material == MaterialParameters()
        assert not shading.prepared
        assert shading.light_count == 0

    def test_policy_by_name(self):
        """Test that policies can be given by name."""
        shading = ShadingPass(2, 2, policy="full")
        assert shading.policy == CompositionPolicy.FULL
        shading.policy = "Diffuse-Only"
        assert shading.policy == CompositionPolicy.DIFFUSE_ONLY

    def test_unknown_policy_name(self):
        """Test that an unknown policy name raises KeyError."""
        with pytest.raises(KeyError, match="expected one of"):
            ShadingPass(2, 2, policy="cel")

    @pytest.mark.parametrize("width,height", [(0, 4), (4, 0)])
    def test_invalid_dimensions(self, width, height):
        """Test that non-positive dimensions raise ValueError."""
        with pytest.raises(ValueError, match="positive"):
            ShadingPass(width, height)

    def test_repr(self):
        """Test the string representation."""
        shading = ShadingPass(4, 2, policy=CompositionPolicy.FULL)
        assert repr(shading) == "ShadingPass(width=4, height=2, policy=FULL, lights=0)"


class TestInputValidation:
    """Tests for buffer shape and value checks."""

    def test_wrong_normal_shape(self):
        """Test that a normal buffer of the wrong size raises ValueError."""
        shading = ShadingPass(4, 4)
        with pytest.raises(ValueError, match="normals"):
            shading.set_surface(np.zeros((2, 2, 3), dtype=np.float32))

    def test_non_finite_alpha(self):
        """Test that NaN in a buffer raises ValueError."""
        shading = ShadingPass(2, 2)
        alpha = np.ones((2, 2), dtype=np.float32)
        alpha[1, 1] = np.nan
        with pytest.raises(ValueError, match="finite"):
            shading.set_surface((0.0, 0.0, 1.0), alpha=alpha)

    def test_wrong_view_rotation_shape(self):
        """Test that a non-(3, 3) rotation raises ValueError."""
        shading = ShadingPass(2, 2)
        with pytest.raises(ValueError, match="view_rotation"):
            shading.set_view(np.eye(4))

    def test_zero_light_direction(self):
        """Test that a zero light direction raises ValueError."""
        shading = _facing_pass()
        with pytest.raises(ValueError, match="direction"):
            shading.add_light((0.0, 0.0, 0.0))

    def test_bad_light_color(self):
        """Test that a light color that is not RGB raises ValueError."""
        shading = _facing_pass()
        with pytest.raises(ValueError, match="color"):
            shading.add_light((0.0, 0.0, 1.0), color=(1.0, 1.0))

    def test_wrong_attenuation_shape(self):
        """Test that an attenuation buffer of the wrong size raises."""
        shading = _facing_pass()
        with pytest.raises(ValueError, match="attenuation"):
            shading.add_light((0.0, 0.0, 1.0), attenuation=np.ones((3, 3)))

    def test_wrong_uv_shape(self):
        """Test that UVs of the wrong size raise ValueError."""
        shading = ShadingPass(2, 2)
        with pytest.raises(ValueError, match="uvs"):
            shading.set_surface_from_sampler(
                ConstantSampler(), np.zeros((3, 3, 2)), (0.0, 0.0, 1.0)
            )


class TestPreparation:
    """Tests for prepare() state handling."""

    def test_add_light_before_prepare(self):
        """Test that add_light before prepare raises RuntimeError."""
        shading = ShadingPass(2, 2)
        with pytest.raises(RuntimeError, match="prepare"):
            shading.add_light((0.0, 0.0, 1.0))

    def test_albedo_before_prepare(self):
        """Test that reading albedo before prepare raises RuntimeError."""
        shading = ShadingPass(2, 2)
        with pytest.raises(RuntimeError, match="prepare"):
            shading.get_albedo_numpy()

    def test_changes_invalidate_preparation(self):
        """Test that material, surface and view changes require prepare()."""
        shading = _facing_pass()
        shading.material = MaterialParameters(roughness=0.2)
        assert not shading.prepared

        shading.prepare()
        shading.set_surface((0.0, 1.0, 0.0))
        assert not shading.prepared

        shading.prepare()
        shading.set_view(view_directions=(0.0, 1.0, 1.0))
        assert not shading.prepared

    def test_reset(self):
        """Test that reset clears the output and the light count."""
        shading = _facing_pass()
        shading.add_light((0.0, 0.0, 1.0))
        shading.reset()

        assert shading.light_count == 0
        assert not shading.prepared
        np.testing.assert_allclose(shading.get_image_numpy()[..., :3], 0.0)

    def test_prepared_albedo(self):
        """Test the prepared albedo for a tinted, textured material."""
        material = MaterialParameters(base_color=(0.5, 1.0, 1.0, 0.5))
        shading = ShadingPass(2, 2, material)
        shading.set_surface((0.0, 0.0, 1.0), albedo_samples=(1.0, 0.5, 0.2))
        shading.prepare()

        np.testing.assert_allclose(shading.get_albedo_numpy()[0, 0], [0.5, 0.5, 0.2], rtol=1e-6)
        assert shading.get_image_numpy()[0, 0, 3] == pytest.approx(0.5)


class TestLighting:
    """Tests for add_light() and accumulation."""

    def test_single_light_head_on(self):
        """Test N = L under DIFFUSE_ONLY gives the albedo."""
        shading = _facing_pass()
        shading.add_light((0.0, 0.0, 1.0))

        image = shading.get_image_numpy()
        assert image.shape == (2, 2, 4)
        np.testing.assert_allclose(image, 1.0, rtol=1e-6)
        assert shading.light_count == 1

    def test_light_direction_is_normalized(self):
        """Test that a (3,) light direction need not be unit length."""
        shading = _facing_pass()
        shading.add_light((0.0, 0.0, 5.0))
        np.testing.assert_allclose(shading.get_image_numpy()[..., :3], 1.0, rtol=1e-6)

    def test_lights_accumulate(self):
        """Test that contributions of several lights are summed."""
        shading = _facing_pass()
        shading.add_light((0.0, 0.0, 1.0))
        shading.add_light((0.0, 0.0, 1.0), color=(0.5, 0.25, 0.0))

        np.testing.assert_allclose(
            shading.get_image_numpy()[0, 0, :3], [1.5, 1.25, 1.0], rtol=1e-6
        )
        assert shading.light_count == 2

    def test_emission_seeded_once(self):
        """Test that emission is added once, not per light."""
        material = MaterialParameters(emission_color=(0.2, 0.1, 0.0))
        shading = _facing_pass(material=material)
        np.testing.assert_allclose(shading.get_image_numpy()[0, 0, :3], [0.2, 0.1, 0.0], rtol=1e-6)

        shading.add_light((0.0, 0.0, 1.0))
        shading.add_light((0.0, 0.0, 1.0))
        np.testing.assert_allclose(shading.get_image_numpy()[0, 0, :3], [2.2, 2.1, 2.0], rtol=1e-6)

    def test_per_pixel_attenuation(self):
        """Test that an attenuation buffer scales each pixel under FULL."""
        material = MaterialParameters(roughness=0.5)
        shading = _facing_pass(2, 1, material, CompositionPolicy.FULL)
        shading.add_light((0.0, 0.6, 0.8), attenuation=np.array([[1.0, 0.5]]))

        image = shading.get_image_numpy()
        np.testing.assert_allclose(image[0, 1, :3], image[0, 0, :3] * 0.5, rtol=1e-5)

    def test_diffuse_only_ignores_attenuation(self):
        """Test that DIFFUSE_ONLY output does not depend on attenuation."""
        shading = _facing_pass()
        shading.add_light((0.0, 0.0, 1.0), attenuation=0.0)
        np.testing.assert_allclose(shading.get_image_numpy()[..., :3], 1.0, rtol=1e-6)

    def test_full_shadowed_keeps_subsurface(self):
        """Test that a fully shadowed light still contributes subsurface."""
        material = MaterialParameters(subsurface=1.0, wrap_value=0.5)
        shading = _facing_pass(material=material, policy=CompositionPolicy.FULL)
        # Light at the terminator: diffuse_wrap(0, 0.5) = 1 - 0.5^2
        shading.add_light((1.0, 0.0, 0.0), attenuation=0.0)
        np.testing.assert_allclose(shading.get_image_numpy()[..., :3], 0.75, rtol=1e-5)

    def test_sampler_inputs(self):
        """Test that albedo and emission come from the sampler."""
        sampler = ConstantSampler(albedo=(0.5, 0.25, 1.0), emission=(1.0, 0.0, 0.0))
        material = MaterialParameters(emission_color=(0.5, 0.5, 0.5))
        shading = ShadingPass(2, 2, material)
        shading.set_surface_from_sampler(sampler, np.zeros((2, 2, 2)), (0.0, 0.0, 1.0))
        shading.prepare()

        np.testing.assert_allclose(shading.get_albedo_numpy()[1, 1], [0.5, 0.25, 1.0], rtol=1e-6)
        np.testing.assert_allclose(shading.get_image_numpy()[1, 1, :3], [0.5, 0.0, 0.0], rtol=1e-6)


class TestShadePoint:
    """Tests for shade_point()."""

    def test_head_on_diffuse_only(self):
        """Test N = L = V with the default material."""
        result = shade_point(MaterialParameters(), (0.0, 0.0, 1.0), (0.0, 0.0, 1.0))
        assert result.color == pytest.approx((1.0, 1.0, 1.0), rel=1e-6)
        assert result.alpha == pytest.approx(1.0)
        assert result.albedo == pytest.approx((1.0, 1.0, 1.0))

    def test_head_on_full_adds_specular_peak(self):
        """Test that FULL adds the Beckmann peak 1 / (pi r^4) at N = H."""
        result = shade_point(
            MaterialParameters(roughness=0.5),
            (0.0, 0.0, 1.0),
            (0.0, 0.0, 1.0),
            policy=CompositionPolicy.FULL,
        )
        expected = 1.0 + 1.0 / (math.pi * 0.5**4)
        assert result.color == pytest.approx((expected,) * 3, rel=1e-4)

    def test_metallic_darkens_grazing_albedo(self):
        """Test the matcap metalness at facing and grazing normals."""
        material = MaterialParameters(metallic=1.0)
        facing = shade_point(material, (0.0, 0.0, 1.0), (0.0, 0.0, 1.0))
        grazing = shade_point(material, (1.0, 0.0, 0.0), (1.0, 0.0, 0.0))

        assert facing.albedo == pytest.approx((1.0, 1.0, 1.0), abs=1e-6)
        assert grazing.albedo == pytest.approx((0.0, 0.0, 0.0), abs=1e-6)

    def test_view_rotation_changes_metalness(self):
        """Test that the matcap factor uses the view-space normal."""
        material = MaterialParameters(metallic=1.0)
        # Rotate world +x onto view +z
        rotation = np.array([[0.0, 0.0, -1.0], [0.0, 1.0, 0.0], [1.0, 0.0, 0.0]])
        result = shade_point(
            material,
            (1.0, 0.0, 0.0),
            (1.0, 0.0, 0.0),
            view_direction=(1.0, 0.0, 0.0),
            view_rotation=rotation,
        )
        assert result.albedo == pytest.approx((1.0, 1.0, 1.0), abs=1e-5)

    def test_repeated_calls_reuse_fields(self):
        """Test that repeated calls allocate no new Taichi field groups."""
        import taichi as ti

        prog = ti.lang.impl.get_runtime().prog
        shade_point(MaterialParameters(), (0.0, 0.0, 1.0), (0.0, 0.0, 1.0))
        tree_count = prog.get_snode_tree_size()

        for roughness in (0.2, 0.5, 0.8):
            shade_point(
                MaterialParameters(roughness=roughness),
                (0.0, 0.0, 1.0),
                (0.0, 0.0, 1.0),
                policy="full",
            )
        assert prog.get_snode_tree_size() == tree_count

    def test_repeated_calls_do_not_share_state(self):
        """Test that one call's material, light and policy do not leak into the next."""
        emissive = MaterialParameters(emission_color=(0.5, 0.5, 0.5), metallic=1.0)
        shade_point(
            emissive,
            (1.0, 0.0, 0.0),
            (1.0, 0.0, 0.0),
            light_color=(2.0, 2.0, 2.0),
            policy=CompositionPolicy.FULL,
            albedo_sample=(0.1, 0.1, 0.1),
            view_rotation=np.array([[0.0, 0.0, -1.0], [0.0, 1.0, 0.0], [1.0, 0.0, 0.0]]),
        )

        result = shade_point(MaterialParameters(), (0.0, 0.0, 1.0), (0.0, 0.0, 1.0))
        assert result.color == pytest.approx((1.0, 1.0, 1.0), rel=1e-6)
        assert result.albedo == pytest.approx((1.0, 1.0, 1.0), rel=1e-6)
        assert result.alpha == pytest.approx(1.0)
