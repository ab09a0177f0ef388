"""
Unit tests for walkspeed/sensors/gravity_filter.py.

Tests cover:
    - Single-sample recursion against hand-computed values
    - Convergence to zero for a constant input
    - Batch (scipy lfilter) and streaming forms agree
    - Injected state, reset, and parameter validation

Run with: pytest tests/sensors/test_gravity_filter.py -v
"""

import unittest
import numpy as np
import pytest
from numpy.testing import assert_allclose

from walkspeed.sensors.gravity_filter import (
    FilterState,
    GravityFilter,
    remove_gravity_series,
    settling_samples,
)
from walkspeed.sensors.types import AccelSample


def _sample(x: float, y: float, z: float, k: int = 0) -> AccelSample:
    return AccelSample(t_ns=k * 20_000_000, x=x, y=y, z=z)


class TestGravityFilterUpdate(unittest.TestCase):
    """Test suite for the streaming gravity filter."""

    def test_first_sample_from_zero_state(self) -> None:
        """First output is 0.8 of the input when the estimate starts at 0."""
        f = GravityFilter(alpha=0.8)
        lin = f.update(_sample(1.0, -2.0, 9.81))

        self.assertAlmostEqual(lin.x, 0.8)
        self.assertAlmostEqual(lin.y, -1.6)
        self.assertAlmostEqual(lin.z, 0.8 * 9.81)
        assert_allclose(f.state.estimate, (0.2, -0.4, 0.2 * 9.81))

    def test_second_sample_recursion(self) -> None:
        """estimate = α·estimate + (1-α)·raw on every update."""
        f = GravityFilter(alpha=0.8)
        f.update(_sample(0.0, 0.0, 10.0))
        lin = f.update(_sample(0.0, 0.0, 10.0, k=1))

        # estimate: 2.0 -> 0.8*2.0 + 2.0 = 3.6
        self.assertAlmostEqual(f.state.estimate[2], 3.6)
        self.assertAlmostEqual(lin.z, 6.4)

    def test_constant_input_converges_to_zero(self) -> None:
        """Constant input: output falls below 1% of input within ~20 samples."""
        raw = (0.5, -1.0, 9.81)
        raw_mag = np.linalg.norm(raw)
        f = GravityFilter(alpha=0.8)

        n = settling_samples(0.8, 0.01)
        self.assertLessEqual(n, 21)

        for k in range(n):
            lin = f.update(_sample(*raw, k=k))

        self.assertLess(lin.magnitude(), 0.01 * raw_mag)

    def test_output_keeps_decreasing_for_constant_input(self) -> None:
        """Residual decays monotonically as αⁿ."""
        f = GravityFilter()
        mags = [f.update(_sample(0.0, 0.0, 9.81, k=k)).magnitude() for k in range(30)]

        self.assertTrue(all(b < a for a, b in zip(mags, mags[1:])))
        self.assertAlmostEqual(mags[-1], 9.81 * 0.8**30, places=9)

    def test_injected_converged_state(self) -> None:
        """A state already holding gravity passes a gravity-only sample as ~0."""
        state = FilterState(estimate=(0.0, 0.0, 9.81))
        f = GravityFilter(state=state)
        lin = f.update(_sample(0.0, 0.0, 9.81))

        self.assertAlmostEqual(lin.magnitude(), 0.0, places=12)
        self.assertIs(f.state, state)

    def test_reset_zeroes_estimate(self) -> None:
        f = GravityFilter()
        f.update(_sample(1.0, 2.0, 3.0))
        f.reset()

        self.assertEqual(f.state.estimate, (0.0, 0.0, 0.0))

    def test_invalid_alpha(self) -> None:
        with pytest.raises(ValueError, match="alpha"):
            GravityFilter(alpha=1.0)
        with pytest.raises(ValueError, match="alpha"):
            GravityFilter(alpha=-0.1)


class TestRemoveGravitySeries(unittest.TestCase):
    """Test suite for the batch form."""

    def test_matches_streaming_filter(self) -> None:
        """lfilter recursion equals the streaming filter sample for sample."""
        rng = np.random.default_rng(7)
        accel = rng.normal(0.0, 2.0, size=(200, 3)) + np.array([0.0, 0.0, 9.81])

        batch = remove_gravity_series(accel, alpha=0.8)

        f = GravityFilter(alpha=0.8)
        stream = np.array([
            [lin.x, lin.y, lin.z]
            for lin in (f.update(_sample(*row, k=k)) for k, row in enumerate(accel))
        ])

        assert_allclose(batch, stream, rtol=1e-10, atol=1e-10)

    def test_stationary_series_settles(self) -> None:
        accel = np.tile([0.0, 0.0, 9.81], (100, 1))
        linear = remove_gravity_series(accel)

        assert_allclose(linear[-1], np.zeros(3), atol=1e-6)

    def test_empty_series(self) -> None:
        out = remove_gravity_series(np.zeros((0, 3)))
        self.assertEqual(out.shape, (0, 3))

    def test_invalid_shape(self) -> None:
        with pytest.raises(ValueError, match="must have shape"):
            remove_gravity_series(np.zeros((10, 2)))


class TestSettlingSamples(unittest.TestCase):

    def test_default_alpha_one_percent(self) -> None:
        self.assertEqual(settling_samples(0.8, 0.01), 21)
        self.assertLess(0.8**21, 0.01)
        self.assertGreaterEqual(0.8**20, 0.01)

    def test_alpha_zero_passes_nothing(self) -> None:
        self.assertEqual(settling_samples(0.0, 0.01), 1)

    def test_invalid_tolerance(self) -> None:
        with pytest.raises(ValueError, match="tolerance"):
            settling_samples(0.8, 1.5)


if __name__ == "__main__":
    unittest.main()
