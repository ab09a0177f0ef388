"""
Unit tests for walkspeed/estimators/scheduling.py.

Run with: pytest tests/estimators/test_scheduling.py -v
"""

import threading
import unittest
import pytest

from walkspeed.estimators.scheduling import (
    ManualScheduler,
    StopTimeout,
    ThreadingScheduler,
)


class TestManualScheduler(unittest.TestCase):
    """Test suite for the logical-clock scheduler."""

    def test_fires_at_deadline(self) -> None:
        fired = []
        sched = ManualScheduler()
        sched.schedule(2.5, lambda: fired.append(sched.now))

        self.assertEqual(sched.advance(2.4), 0)
        self.assertEqual(fired, [])
        self.assertEqual(sched.advance(0.1), 1)
        self.assertEqual(fired, [2.5])

    def test_deadline_order_and_ties(self) -> None:
        order = []
        sched = ManualScheduler(start=10.0)
        sched.schedule(2.0, lambda: order.append("b"))
        sched.schedule(1.0, lambda: order.append("a"))
        sched.schedule(2.0, lambda: order.append("c"))

        sched.advance_to(20.0)

        self.assertEqual(order, ["a", "b", "c"])
        self.assertEqual(sched.now, 20.0)

    def test_cancelled_callback_never_runs(self) -> None:
        fired = []
        sched = ManualScheduler()
        handle = sched.schedule(1.0, lambda: fired.append(1))
        handle.cancel()

        self.assertTrue(handle.cancelled)
        self.assertEqual(sched.pending, 0)
        self.assertEqual(sched.advance(5.0), 0)
        self.assertEqual(fired, [])

    def test_clock_never_moves_backwards(self) -> None:
        sched = ManualScheduler(start=5.0)
        sched.advance_to(3.0)
        self.assertEqual(sched.now, 5.0)

    def test_callback_can_schedule(self) -> None:
        fired = []
        sched = ManualScheduler()

        def first() -> None:
            fired.append(sched.now)
            sched.schedule(1.0, lambda: fired.append(sched.now))

        sched.schedule(1.0, first)
        sched.advance(3.0)

        self.assertEqual(fired, [1.0, 2.0])

    def test_negative_values_rejected(self) -> None:
        sched = ManualScheduler()
        with pytest.raises(ValueError, match="delay_s"):
            sched.schedule(-1.0, lambda: None)
        with pytest.raises(ValueError, match="dt"):
            sched.advance(-0.5)


class TestStopTimeout(unittest.TestCase):
    """Test suite for the re-armable inactivity timer."""

    def setUp(self) -> None:
        self.sched = ManualScheduler()
        self.timeout = StopTimeout(self.sched, timeout_s=2.5)
        self.fired = []

    def _callback(self, generation: int) -> None:
        if self.timeout.expire(generation):
            self.fired.append(self.sched.now)

    def test_fires_once_after_timeout(self) -> None:
        self.timeout.arm(self._callback)
        self.assertTrue(self.timeout.pending)

        self.sched.advance(10.0)

        self.assertEqual(self.fired, [2.5])
        self.assertFalse(self.timeout.pending)

    def test_rearm_replaces_pending_timer(self) -> None:
        self.timeout.arm(self._callback)
        self.sched.advance(2.0)
        self.timeout.arm(self._callback)
        self.sched.advance(2.0)

        self.assertEqual(self.fired, [])
        self.sched.advance(0.5)
        self.assertEqual(self.fired, [4.5])

    def test_generations_increase(self) -> None:
        g1 = self.timeout.arm(self._callback)
        g2 = self.timeout.arm(self._callback)

        self.assertGreater(g2, g1)
        self.assertFalse(self.timeout.is_current(g1))
        self.assertTrue(self.timeout.is_current(g2))

    def test_stale_generation_is_ignored(self) -> None:
        g1 = self.timeout.arm(self._callback)
        self.timeout.arm(self._callback)

        # A timer thread that already started for g1 lost the race
        self.assertFalse(self.timeout.expire(g1))
        self.assertTrue(self.timeout.pending)

    def test_cancel(self) -> None:
        generation = self.timeout.arm(self._callback)
        self.timeout.cancel()
        self.timeout.cancel()

        self.assertFalse(self.timeout.pending)
        self.assertFalse(self.timeout.is_current(generation))
        self.sched.advance(10.0)
        self.assertEqual(self.fired, [])

    def test_expire_is_single_use(self) -> None:
        generation = self.timeout.arm(self._callback)
        self.assertTrue(self.timeout.expire(generation))
        self.assertFalse(self.timeout.expire(generation))

    def test_invalid_timeout(self) -> None:
        with pytest.raises(ValueError, match="timeout_s"):
            StopTimeout(self.sched, timeout_s=0.0)


class TestThreadingScheduler(unittest.TestCase):
    """Real timers, kept short."""

    def test_callback_runs(self) -> None:
        done = threading.Event()
        ThreadingScheduler().schedule(0.01, done.set)

        self.assertTrue(done.wait(timeout=2.0))

    def test_cancel_prevents_callback(self) -> None:
        done = threading.Event()
        handle = ThreadingScheduler().schedule(0.2, done.set)
        handle.cancel()

        self.assertTrue(handle.cancelled)
        self.assertFalse(done.wait(timeout=0.4))

    def test_stop_timeout_on_real_timer(self) -> None:
        done = threading.Event()
        timeout = StopTimeout(ThreadingScheduler(), timeout_s=0.05)

        def callback(generation: int) -> None:
            if timeout.expire(generation):
                done.set()

        timeout.arm(callback)
        self.assertTrue(done.wait(timeout=2.0))
        self.assertFalse(timeout.pending)


if __name__ == "__main__":
    unittest.main()
