"""
Gravity removal by exponential smoothing.

A single-pole IIR low-pass filter tracks the slowly varying gravity (and
drift) component on each axis:

    g_k[i] = α · g_{k-1}[i] + (1 - α) · a_k[i]

and the linear acceleration is the residual:

    l_k[i] = a_k[i] - g_k[i]

Subtracting a low-pass estimate gives a high-pass response with O(1) state
per axis. With α = 0.8 the residual for a constant input decays as αⁿ, so the
output falls below 1% of the input after 21 samples.

Two forms are provided:
    - GravityFilter: streaming, one AccelSample at a time, explicit state.
    - remove_gravity_series: batch form over an (N, 3) array using
      scipy.signal.lfilter. Both produce identical numbers for the same
      input and a zero initial estimate.
"""

from dataclasses import dataclass
from typing import Optional, Tuple
import math

import numpy as np
from scipy import signal

from walkspeed.config import GRAVITY_FILTER_ALPHA
from walkspeed.sensors.types import AccelSample, LinearAcceleration


def _validate_alpha(alpha: float) -> None:
    if not (0.0 <= alpha < 1.0):
        raise ValueError(f"alpha must be in [0, 1), got {alpha}")


@dataclass
class FilterState:
    """Running low-frequency (gravity) estimate per axis."""

    estimate: Tuple[float, float, float] = (0.0, 0.0, 0.0)

    def reset(self) -> None:
        self.estimate = (0.0, 0.0, 0.0)


class GravityFilter:
    """
    Streaming high-pass filter that strips gravity from accelerometer samples.

    Args:
        alpha: Smoothing factor of the gravity estimate, in [0, 1).
               Larger values track gravity more slowly. Default: 0.8.
        state: Optional externally owned FilterState (useful for tests that
               inject a known gravity estimate). A fresh zero state is
               created when omitted.

    Example:
        >>> f = GravityFilter()
        >>> lin = f.update(AccelSample(t_ns=0, x=0.0, y=0.0, z=9.81))
        >>> round(lin.z, 3)  # first sample: estimate = 0.2 * 9.81
        7.848
    """

    def __init__(
        self,
        alpha: float = GRAVITY_FILTER_ALPHA,
        state: Optional[FilterState] = None,
    ) -> None:
        _validate_alpha(alpha)
        self.alpha = alpha
        self.state = state if state is not None else FilterState()

    def update(self, sample: AccelSample) -> LinearAcceleration:
        """
        Push one sample through the filter.

        Args:
            sample: Raw accelerometer reading (m/s², includes gravity).

        Returns:
            Linear (gravity-removed) acceleration for this sample.

        Side effects:
            Mutates self.state.estimate in place.
        """
        a = self.alpha
        gx, gy, gz = self.state.estimate
        gx = a * gx + (1.0 - a) * sample.x
        gy = a * gy + (1.0 - a) * sample.y
        gz = a * gz + (1.0 - a) * sample.z
        self.state.estimate = (gx, gy, gz)

        return LinearAcceleration(
            x=sample.x - gx,
            y=sample.y - gy,
            z=sample.z - gz,
        )

    def reset(self) -> None:
        """Zero the gravity estimate (session start)."""
        self.state.reset()


def remove_gravity_series(
    accel: np.ndarray,
    alpha: float = GRAVITY_FILTER_ALPHA,
) -> np.ndarray:
    """
    Batch gravity removal over an accelerometer time series.

    Runs the same recursion as GravityFilter along axis 0, starting from a
    zero gravity estimate:

        g = lfilter([1 - α], [1, -α], a)
        l = a - g

    Args:
        accel: Accelerometer series. Shape: (N, 3). Units: m/s².
        alpha: Smoothing factor in [0, 1). Default: 0.8.

    Returns:
        Linear acceleration series. Shape: (N, 3). Units: m/s².

    Raises:
        ValueError: If accel is not (N, 3) or alpha is out of range.
    """
    accel = np.asarray(accel, dtype=float)
    if accel.ndim != 2 or accel.shape[1] != 3:
        raise ValueError(f"accel must have shape (N, 3), got {accel.shape}")
    _validate_alpha(alpha)

    if accel.shape[0] == 0:
        return accel.copy()

    gravity = signal.lfilter([1.0 - alpha], [1.0, -alpha], accel, axis=0)
    return accel - gravity


def settling_samples(alpha: float = GRAVITY_FILTER_ALPHA, tolerance: float = 0.01) -> int:
    """
    Number of constant-input samples until the filter output drops below
    `tolerance` times the input magnitude.

    For a constant input c the residual after n samples is αⁿ · c, so this
    returns the smallest n with αⁿ < tolerance.

    Example:
        >>> settling_samples(0.8, 0.01)
        21
    """
    _validate_alpha(alpha)
    if not (0.0 < tolerance < 1.0):
        raise ValueError(f"tolerance must be in (0, 1), got {tolerance}")
    if alpha == 0.0:
        return 1

    n = math.floor(math.log(tolerance) / math.log(alpha)) + 1
    return int(n)
