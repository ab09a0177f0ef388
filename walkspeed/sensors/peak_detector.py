"""
Step detection by hysteresis peak detection on linear-acceleration magnitude.

For each sample:
    1. m_k = ||l_k||, the magnitude of the gravity-removed acceleration.
    2. Rising edge: m_k > threshold and not armed → armed (no event).
    3. Falling edge: m_k < m_{k-1} and armed → disarm, emit StepEvent.
    4. m_{k-1} ← m_k (always).

The detector fires on the first descending sample after a threshold
crossing, which approximates the acceleration peak of a footfall without a
full local-maximum search. Equal consecutive magnitudes never fire (strict
less-than), so a plateau does not chatter.

At most one StepEvent is produced per sample.
"""

from dataclasses import dataclass
from typing import Optional
import math

import numpy as np

from walkspeed.config import STEP_THRESHOLD_MPS2
from walkspeed.sensors.types import LinearAcceleration, StepEvent


def _validate_threshold(threshold: float) -> None:
    if not math.isfinite(threshold) or threshold <= 0:
        raise ValueError(f"threshold must be positive, got {threshold}")


@dataclass
class PeakDetectorState:
    """
    Mutable detector state.

    Attributes:
        last_magnitude: Magnitude of the previous sample (m/s²).
        peak_armed: True once the magnitude crossed the threshold and a
                    falling edge is awaited.
    """

    last_magnitude: float = 0.0
    peak_armed: bool = False

    def reset(self) -> None:
        self.last_magnitude = 0.0
        self.peak_armed = False


class PeakDetector:
    """
    Streaming hysteresis peak detector.

    Args:
        threshold: Magnitude that arms the detector. Units: m/s².
                   Default: 1.8 m/s².
        state: Optional externally owned PeakDetectorState.

    Example:
        >>> det = PeakDetector(threshold=1.8)
        >>> det.update(LinearAcceleration(0.0, 0.0, 2.5), t_ns=0) is None
        True
        >>> det.update(LinearAcceleration(0.0, 0.0, 2.0), t_ns=10_000_000)
        StepEvent(t_ns=10000000)
    """

    def __init__(
        self,
        threshold: float = STEP_THRESHOLD_MPS2,
        state: Optional[PeakDetectorState] = None,
    ) -> None:
        _validate_threshold(threshold)
        self.threshold = threshold
        self.state = state if state is not None else PeakDetectorState()

    def update(self, linear: LinearAcceleration, t_ns: int) -> Optional[StepEvent]:
        """
        Feed one linear-acceleration sample.

        Args:
            linear: Gravity-removed acceleration (m/s²).
            t_ns: Timestamp of the sample (monotonic ns).

        Returns:
            StepEvent at t_ns on a falling edge after arming, else None.
        """
        return self.update_magnitude(linear.magnitude(), t_ns)

    def update_magnitude(self, magnitude: float, t_ns: int) -> Optional[StepEvent]:
        """Same as update() for an already computed magnitude."""
        state = self.state
        event = None

        if magnitude > self.threshold and not state.peak_armed:
            state.peak_armed = True
        elif magnitude < state.last_magnitude and state.peak_armed:
            state.peak_armed = False
            event = StepEvent(t_ns=t_ns)

        state.last_magnitude = magnitude
        return event

    def reset(self) -> None:
        self.state.reset()


def detect_steps_hysteresis(
    magnitudes: np.ndarray,
    threshold: float = STEP_THRESHOLD_MPS2,
) -> np.ndarray:
    """
    Run the hysteresis detector over a magnitude series.

    Args:
        magnitudes: Linear-acceleration magnitudes. Shape: (N,). Units: m/s².
        threshold: Arming threshold. Units: m/s². Default: 1.8.

    Returns:
        Indices of samples at which a step event fires. Shape: (n_steps,).

    Example:
        >>> detect_steps_hysteresis(np.array([0.5, 2.0, 2.5, 2.2, 1.0]))
        array([3])
    """
    magnitudes = np.asarray(magnitudes, dtype=float)
    if magnitudes.ndim != 1:
        raise ValueError(f"magnitudes must be 1D, got shape {magnitudes.shape}")

    detector = PeakDetector(threshold=threshold)
    indices = [
        k
        for k, m in enumerate(magnitudes)
        if detector.update_magnitude(float(m), t_ns=k) is not None
    ]
    return np.asarray(indices, dtype=int)
