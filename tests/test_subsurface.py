"""Unit tests for the wrap-lighting subsurface term.

Tests cover:
- diffuse_wrap extremes for wrap values 0 and 1
- The behind-the-surface case used by the shading composition
- Strength and tint scaling of the contribution
"""

import numpy as np
import pytest
import taichi as ti


def _evaluate_wrap(pairs):
    """Evaluate diffuse_wrap for (cos_l, wrap_value) pairs."""
    from src.toonshade.shading.subsurface import diffuse_wrap

    n = len(pairs)
    cos_l = ti.field(dtype=ti.f32, shape=n)
    wrap = ti.field(dtype=ti.f32, shape=n)
    results = ti.field(dtype=ti.f32, shape=n)
    cos_l.from_numpy(np.array([p[0] for p in pairs], dtype=np.float32))
    wrap.from_numpy(np.array([p[1] for p in pairs], dtype=np.float32))

    @ti.kernel
    def test_kernel():
        for i in range(n):
            results[i] = diffuse_wrap(cos_l[i], wrap[i])

    test_kernel()
    return results.to_numpy()


class TestDiffuseWrap:
    """Tests for diffuse_wrap()."""

    def test_no_wrap_fully_lit(self):
        """Test wrap = 0 at N.L = 1 gives 0."""
        results = _evaluate_wrap([(1.0, 0.0)])
        assert results[0] == pytest.approx(0.0, abs=1e-6)

    def test_full_wrap_extremum_at_back(self):
        """Test wrap = 1 reaches 0 at N.L = -1."""
        results = _evaluate_wrap([(-1.0, 1.0)])
        assert results[0] == pytest.approx(0.0, abs=1e-6)

    def test_half_wrap_at_terminator(self):
        """Test wrap = 0.5 at N.L = 0 gives 1 - 0.5^2 = 0.75."""
        results = _evaluate_wrap([(0.0, 0.5)])
        assert results[0] == pytest.approx(0.75, abs=1e-6)

    def test_full_wrap_peaks_at_terminator(self):
        """Test wrap = 1 gives 1 at N.L = 0 and 0 at N.L = 1."""
        results = _evaluate_wrap([(0.0, 1.0), (1.0, 1.0)])
        assert results[0] == pytest.approx(1.0, abs=1e-6)
        assert results[1] == pytest.approx(0.0, abs=1e-6)

    def test_range_over_valid_inputs(self):
        """Test that the wrap factor stays in [0, 1] for all valid inputs."""
        cos_values = np.linspace(-1.0, 1.0, 21)
        wrap_values = np.linspace(0.0, 1.0, 11)
        results = _evaluate_wrap([(c, w) for c in cos_values for w in wrap_values])

        assert np.all(np.isfinite(results))
        assert np.all(results >= -1e-6)
        assert np.all(results <= 1.0 + 1e-6)

    def test_out_of_range_inputs_are_clamped(self):
        """Test that out-of-range wrap values behave like the nearest bound."""
        results = _evaluate_wrap([(0.0, 2.0), (0.0, 1.0), (-3.0, 1.0), (-1.0, 1.0)])
        assert results[0] == pytest.approx(results[1])
        assert results[2] == pytest.approx(results[3])


class TestSubsurfaceContribution:
    """Tests for subsurface_contribution()."""

    def test_scaled_by_strength_and_tint(self):
        """Test contribution = wrap * strength * tint."""
        from src.toonshade.shading.subsurface import subsurface_contribution

        result = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = subsurface_contribution(
                0.0, 0.5, 0.5, ti.math.vec3(1.0, 0.5, 0.0)
            )

        test_kernel()
        r = result[None]
        assert r[0] == pytest.approx(0.375, abs=1e-6)
        assert r[1] == pytest.approx(0.1875, abs=1e-6)
        assert r[2] == pytest.approx(0.0, abs=1e-6)

    def test_zero_strength_disables_term(self):
        """Test that subsurface strength 0 gives no contribution."""
        from src.toonshade.shading.subsurface import subsurface_contribution

        result = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = subsurface_contribution(
                0.0, 1.0, 0.0, ti.math.vec3(1.0, 1.0, 1.0)
            )

        test_kernel()
        r = result[None]
        assert r[0] == 0.0 and r[1] == 0.0 and r[2] == 0.0
