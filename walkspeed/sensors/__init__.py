"""
Accelerometer processing stages for walking speed estimation.

Modules:
    types: Sample, step and speed packets; AccelSeries batch container
    gravity_filter: Exponential gravity removal (streaming and batch)
    peak_detector: Hysteresis step detector (streaming and batch)

Design principles:
    - Packets are frozen dataclasses; stage state is a separate mutable
      dataclass owned by the stage and injectable for tests
    - Batch helpers reproduce the streaming results on NumPy arrays

Example:
    >>> from walkspeed.sensors import AccelSample, GravityFilter, PeakDetector
    >>> gf, det = GravityFilter(), PeakDetector()
    >>> lin = gf.update(AccelSample(t_ns=0, x=0.0, y=0.0, z=9.81))
    >>> event = det.update(lin, t_ns=0)
"""

from walkspeed.sensors.types import (
    NS_PER_S,
    AccelSample,
    AccelSeries,
    LinearAcceleration,
    OverspeedAlert,
    SpeedUpdate,
    StepEvent,
    ns_to_seconds,
    seconds_to_ns,
)

from walkspeed.sensors.gravity_filter import (
    FilterState,
    GravityFilter,
    remove_gravity_series,
    settling_samples,
)

from walkspeed.sensors.peak_detector import (
    PeakDetector,
    PeakDetectorState,
    detect_steps_hysteresis,
)

__all__ = [
    # Data types
    "NS_PER_S",
    "AccelSample",
    "AccelSeries",
    "LinearAcceleration",
    "OverspeedAlert",
    "SpeedUpdate",
    "StepEvent",
    "ns_to_seconds",
    "seconds_to_ns",
    # Gravity filter
    "FilterState",
    "GravityFilter",
    "remove_gravity_series",
    "settling_samples",
    # Peak detector
    "PeakDetector",
    "PeakDetectorState",
    "detect_steps_hysteresis",
]
