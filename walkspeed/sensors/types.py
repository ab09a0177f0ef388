"""
Data structures for accelerometer-based walking speed estimation.

This module defines the value types exchanged between the pipeline stages:
    - Raw accelerometer samples (streaming and batch form)
    - Gravity-removed (linear) acceleration
    - Step events emitted by the peak detector
    - Speed updates and overspeed alerts emitted by the speed estimator

Time Base Convention:
    Streaming packets carry integer monotonic nanoseconds (t_ns), matching
    what platform sensor callbacks deliver. Batch series carry float seconds
    (t), stored as np.ndarray. AccelSeries.to_samples() converts between the
    two.

Design:
    - Packets are frozen dataclasses (immutable, consumed once).
    - Per-stage mutable state lives next to the stage that owns it
      (see gravity_filter.FilterState, peak_detector.PeakDetectorState).
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional
import math

import numpy as np

NS_PER_S = 1_000_000_000


def seconds_to_ns(t_s: float) -> int:
    """Convert float seconds to integer nanoseconds (rounded)."""
    return int(round(t_s * NS_PER_S))


def ns_to_seconds(t_ns: int) -> float:
    """Convert integer nanoseconds to float seconds."""
    return t_ns / NS_PER_S


@dataclass(frozen=True)
class AccelSample:
    """
    Single timestamped tri-axial accelerometer reading.

    Attributes:
        t_ns: Monotonic timestamp in nanoseconds.
        x, y, z: Specific force along the device axes.
                 Units: m/s². Raw measurement (includes gravity).
    """

    t_ns: int
    x: float
    y: float
    z: float

    def as_array(self) -> np.ndarray:
        """Return the acceleration vector as shape (3,) array."""
        return np.array([self.x, self.y, self.z], dtype=float)

    def is_finite(self) -> bool:
        """True when all three axes are finite numbers."""
        return (
            math.isfinite(self.x)
            and math.isfinite(self.y)
            and math.isfinite(self.z)
        )


@dataclass(frozen=True)
class LinearAcceleration:
    """
    Gravity-removed acceleration produced by the gravity filter.

    Units: m/s² on each axis. Oscillates around zero while walking.
    """

    x: float
    y: float
    z: float

    def magnitude(self) -> float:
        """
        Euclidean norm of the linear acceleration vector.

        Returns:
            ||a|| = sqrt(x² + y² + z²). Units: m/s².
            Exactly 0.0 for the zero vector (never NaN).
        """
        return float(math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z))


@dataclass(frozen=True)
class StepEvent:
    """A detected footfall at monotonic time t_ns."""

    t_ns: int


@dataclass(frozen=True)
class SpeedUpdate:
    """
    Walking speed estimate emitted to the presentation layer.

    Attributes:
        speed: Estimated speed. Units: m/s. Always >= 0.
        t_ns: Timestamp of the step that produced the estimate, or None for
              updates not tied to a step (stop-timeout).
        stopped: True when the update was forced by the stop-timeout.
    """

    speed: float
    t_ns: Optional[int] = None
    stopped: bool = False


@dataclass(frozen=True)
class OverspeedAlert:
    """Raised alongside a SpeedUpdate whose speed exceeds the configured limit."""

    speed: float
    limit: float
    t_ns: Optional[int] = None


@dataclass(frozen=True)
class AccelSeries:
    """
    Time-series packet of accelerometer data for offline processing.

    Attributes:
        t: Timestamps in seconds, shape (N,). Monotonic time.
        accel: Specific force measurements, shape (N, 3).
               Units: m/s². Includes gravity.
        meta: Optional metadata dict. May include:
              - 'sample_rate_hz': float, nominal sampling rate
              - 'step_freq_hz': float, ground-truth cadence of simulated data
              - 'units': dict, e.g. {'accel': 'm/s^2'}

    Notes:
        - Sampling does not need to be uniform; the streaming pipeline
          tolerates irregular gaps.
        - frozen=True ensures immutability for safer data pipelines.
    """

    t: np.ndarray
    accel: np.ndarray
    meta: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate shape consistency and time ordering."""
        if self.t.ndim != 1:
            raise ValueError(
                f"AccelSeries.t must be 1D array, got shape {self.t.shape}"
            )

        n_samples = self.t.shape[0]

        if self.accel.shape != (n_samples, 3):
            raise ValueError(
                f"AccelSeries.accel must have shape ({n_samples}, 3), "
                f"got {self.accel.shape}"
            )

        if n_samples > 1 and np.any(np.diff(self.t) < 0):
            raise ValueError("AccelSeries.t must be non-decreasing")

    def __len__(self) -> int:
        return self.t.shape[0]

    @property
    def duration(self) -> float:
        """Time span covered by the series in seconds."""
        if len(self) < 2:
            return 0.0
        return float(self.t[-1] - self.t[0])

    def to_samples(self) -> Iterator[AccelSample]:
        """Yield streaming AccelSample packets in time order."""
        for t_s, (ax, ay, az) in zip(self.t, self.accel):
            yield AccelSample(
                t_ns=seconds_to_ns(float(t_s)),
                x=float(ax),
                y=float(ay),
                z=float(az),
            )
