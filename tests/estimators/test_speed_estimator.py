"""
Unit tests for walkspeed/estimators/speed.py.

Tests cover:
    - First step only sets the reference
    - v = L / Δt for accepted steps
    - Noise gate (Δt <= 0.2 s) and its carry-over of the timing reference
    - Overspeed alerts, disabled limits, zero stride
    - Settings read once per step
    - Stop-timeout, reset and session totals

Run with: pytest tests/estimators/test_speed_estimator.py -v
"""

import unittest
import pytest

from walkspeed.config import SettingsCell, UserSettings
from walkspeed.estimators.speed import SpeedEstimator, SpeedSessionState
from walkspeed.sensors.types import OverspeedAlert, SpeedUpdate, StepEvent


def _step(t_s: float) -> StepEvent:
    return StepEvent(t_ns=int(round(t_s * 1e9)))


def _estimator(stride: float = 0.75, limit=None) -> SpeedEstimator:
    return SpeedEstimator(SettingsCell(UserSettings(stride_length_m=stride,
                                                    speed_limit_mps=limit)))


class TestSpeedEstimator(unittest.TestCase):
    """Test suite for step-to-speed conversion."""

    def test_first_step_sets_reference_only(self) -> None:
        est = _estimator()
        outcome = est.on_step(_step(1.0))

        self.assertIsNone(outcome.update)
        self.assertIsNone(outcome.alert)
        self.assertFalse(outcome.accepted)
        self.assertFalse(outcome.noise)
        self.assertEqual(est.state.last_step_ns, 1_000_000_000)
        self.assertTrue(est.state.tracking)
        self.assertEqual(est.current_speed, 0.0)

    def test_speed_is_stride_over_interval(self) -> None:
        est = _estimator(stride=0.75)
        est.on_step(_step(0.0))
        outcome = est.on_step(_step(0.5))

        self.assertTrue(outcome.accepted)
        self.assertAlmostEqual(outcome.update.speed, 1.5)
        self.assertEqual(outcome.update.t_ns, 500_000_000)
        self.assertFalse(outcome.update.stopped)
        self.assertAlmostEqual(est.current_speed, 1.5)

    def test_noise_step_moves_reference(self) -> None:
        """Steps at 0, 0.1, 0.6 s: the 0.1 s step is noise, then 0.75/0.5."""
        est = _estimator(stride=0.75)
        est.on_step(_step(0.0))

        noisy = est.on_step(_step(0.1))
        self.assertTrue(noisy.noise)
        self.assertIsNone(noisy.update)
        self.assertEqual(est.state.last_step_ns, 100_000_000)

        outcome = est.on_step(_step(0.6))
        self.assertAlmostEqual(outcome.update.speed, 1.5)

    def test_interval_exactly_at_gate_is_noise(self) -> None:
        est = _estimator()
        est.on_step(_step(0.0))
        outcome = est.on_step(_step(0.2))

        self.assertTrue(outcome.noise)
        self.assertIsNone(outcome.update)

    def test_interval_just_above_gate_is_accepted(self) -> None:
        est = _estimator(stride=0.75)
        est.on_step(_step(0.0))
        outcome = est.on_step(_step(0.25))

        self.assertTrue(outcome.accepted)
        self.assertAlmostEqual(outcome.update.speed, 3.0)

    def test_out_of_order_step_is_noise(self) -> None:
        est = _estimator()
        est.on_step(_step(1.0))
        outcome = est.on_step(_step(0.5))

        self.assertTrue(outcome.noise)
        self.assertEqual(est.state.last_step_ns, 500_000_000)

    def test_overspeed_alert(self) -> None:
        est = _estimator(stride=0.6, limit=1.0)
        est.on_step(_step(0.0))
        outcome = est.on_step(_step(0.5))

        self.assertAlmostEqual(outcome.update.speed, 1.2)
        self.assertIsInstance(outcome.alert, OverspeedAlert)
        self.assertAlmostEqual(outcome.alert.speed, 1.2)
        self.assertEqual(outcome.alert.limit, 1.0)
        self.assertEqual(outcome.alert.t_ns, 500_000_000)

    def test_no_alert_at_or_below_limit(self) -> None:
        est = _estimator(stride=0.5, limit=1.0)
        est.on_step(_step(0.0))
        outcome = est.on_step(_step(0.5))

        self.assertAlmostEqual(outcome.update.speed, 1.0)
        self.assertIsNone(outcome.alert)

    def test_disabled_limit_never_alerts(self) -> None:
        for limit in (None, 0.0):
            est = _estimator(stride=2.0, limit=limit)
            est.on_step(_step(0.0))
            outcome = est.on_step(_step(0.3))

            self.assertGreater(outcome.update.speed, 6.0)
            self.assertIsNone(outcome.alert)

    def test_zero_stride_gives_zero_speed(self) -> None:
        est = _estimator(stride=0.0, limit=1.0)
        est.on_step(_step(0.0))
        outcome = est.on_step(_step(0.5))

        self.assertTrue(outcome.accepted)
        self.assertEqual(outcome.update.speed, 0.0)
        self.assertIsNone(outcome.alert)

    def test_settings_change_applies_to_next_step(self) -> None:
        cell = SettingsCell(UserSettings(stride_length_m=0.75))
        est = SpeedEstimator(cell)
        est.on_step(_step(0.0))
        self.assertAlmostEqual(est.on_step(_step(0.5)).update.speed, 1.5)

        cell.set_stride_length(0.9)
        cell.set_speed_limit(1.5)
        outcome = est.on_step(_step(1.0))

        self.assertAlmostEqual(outcome.update.speed, 1.8)
        self.assertIsNotNone(outcome.alert)

    def test_stop_timeout_forces_zero_and_keeps_tracking(self) -> None:
        est = _estimator()
        est.on_step(_step(0.0))
        est.on_step(_step(0.5))

        update = est.on_stop_timeout()

        self.assertEqual(update, SpeedUpdate(speed=0.0, stopped=True))
        self.assertEqual(est.current_speed, 0.0)
        self.assertTrue(est.state.tracking)

        # Next step is measured from the last step before the stop
        outcome = est.on_step(_step(3.5))
        self.assertAlmostEqual(outcome.update.speed, 0.25)

    def test_reset_returns_to_idle(self) -> None:
        est = _estimator()
        est.on_step(_step(0.0))
        est.on_step(_step(0.5))
        est.reset()

        self.assertEqual(est.state, SpeedSessionState())
        self.assertIsNone(est.on_step(_step(10.0)).update)

    def test_speed_never_negative(self) -> None:
        est = _estimator(stride=0.7)
        times = [0.0, 0.05, 0.7, 0.71, 1.4, 1.2, 2.0, 5.0]
        for t in times:
            outcome = est.on_step(_step(t))
            if outcome.update is not None:
                self.assertGreaterEqual(outcome.update.speed, 0.0)

    def test_invalid_gate(self) -> None:
        with pytest.raises(ValueError, match="min_step_interval_s"):
            SpeedEstimator(min_step_interval_s=-0.1)


class TestSessionSummary(unittest.TestCase):
    """Session totals and average speed since the first step."""

    def test_empty_session(self) -> None:
        summary = _estimator().summary()

        self.assertEqual(summary.step_count, 0)
        self.assertEqual(summary.distance_m, 0.0)
        self.assertEqual(summary.average_speed, 0.0)

    def test_first_step_only(self) -> None:
        est = _estimator()
        est.on_step(_step(2.0))
        summary = est.summary()

        self.assertEqual(summary.step_count, 1)
        self.assertEqual(summary.elapsed_s, 0.0)
        self.assertEqual(summary.average_speed, 0.0)

    def test_steady_walk(self) -> None:
        est = _estimator(stride=0.75)
        for t in (0.0, 0.5, 1.0, 1.5):
            est.on_step(_step(t))
        summary = est.summary()

        self.assertEqual(summary.step_count, 4)
        self.assertAlmostEqual(summary.distance_m, 2.25)
        self.assertAlmostEqual(summary.elapsed_s, 1.5)
        self.assertAlmostEqual(summary.average_speed, 1.5)
        self.assertAlmostEqual(summary.current_speed, 1.5)

    def test_noise_steps_are_not_counted(self) -> None:
        est = _estimator(stride=0.75)
        for t in (0.0, 0.1, 0.6):
            est.on_step(_step(t))
        summary = est.summary()

        self.assertEqual(summary.step_count, 2)
        self.assertAlmostEqual(summary.distance_m, 0.75)
        self.assertAlmostEqual(summary.average_speed, 0.75 / 0.6)


if __name__ == "__main__":
    unittest.main()
