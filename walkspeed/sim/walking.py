"""
Synthetic accelerometer data for walking.

Two generators:
    generate_walking_accel   heel-strike pulses at a fixed cadence on top of
                             gravity, with lateral sway, optional noise and
                             an optional standstill tail.
    generate_impulse_steps   single-sample impulses at given times on an
                             exact sample grid; every impulse produces exactly
                             one step event one sample later, which makes the
                             streaming pipeline's output predictable.

The device is assumed upright: gravity reads +g on z (specific force of a
stationary accelerometer in ENU).
"""

from typing import Optional, Sequence, Tuple

import numpy as np

from walkspeed.sensors.types import AccelSeries

GRAVITY = 9.81


def generate_walking_accel(
    duration_s: float = 20.0,
    step_freq_hz: float = 2.0,
    dt: float = 0.02,
    amplitude: float = 6.0,
    pulse_width_s: float = 0.06,
    sway_amplitude: float = 0.3,
    noise_std: float = 0.0,
    start_delay_s: float = 1.0,
    stop_after_s: Optional[float] = None,
    gravity: float = GRAVITY,
    rng: Optional[np.random.Generator] = None,
) -> Tuple[AccelSeries, np.ndarray]:
    """
    Generate accelerometer samples for a steady walk.

    Each step is a half-sine vertical pulse
        p(t) = A · sin(π (t - t_k) / w),   0 ≤ t - t_k ≤ w
    added to gravity on z. Lateral sway is a sinusoid on x at half the step
    frequency (one sway cycle per stride of two steps).

    Args:
        duration_s: Total length of the series. Units: s.
        step_freq_hz: Cadence. Units: Hz (steps per second).
        dt: Sample period. Units: s. Default: 0.02 (50 Hz).
        amplitude: Heel-strike pulse amplitude A. Units: m/s².
        pulse_width_s: Pulse width w. Units: s.
        sway_amplitude: Lateral sway amplitude. Units: m/s².
        noise_std: Standard deviation of white noise on each axis. Units: m/s².
        start_delay_s: Standing still before the first step. Units: s.
        stop_after_s: Time at which walking stops (None: walk until the end).
        gravity: Gravity magnitude. Units: m/s².
        rng: Random generator for the noise (default: np.random.default_rng()).

    Returns:
        Tuple of (series, step_times):
            series: AccelSeries with meta 'sample_rate_hz' and 'step_freq_hz'.
            step_times: Ground-truth pulse start times. Shape: (n_steps,).

    Example:
        >>> series, steps = generate_walking_accel(duration_s=10.0, step_freq_hz=2.0)
        >>> len(steps)  # steps at 1.0, 1.5, ..., 9.5
        18
    """
    if duration_s <= 0:
        raise ValueError(f"duration_s must be positive, got {duration_s}")
    if step_freq_hz <= 0:
        raise ValueError(f"step_freq_hz must be positive, got {step_freq_hz}")
    if dt <= 0:
        raise ValueError(f"dt must be positive, got {dt}")
    if pulse_width_s <= 0 or pulse_width_s >= 1.0 / step_freq_hz:
        raise ValueError(
            f"pulse_width_s must be in (0, step period), got {pulse_width_s}"
        )
    if noise_std < 0:
        raise ValueError(f"noise_std must be non-negative, got {noise_std}")

    if rng is None:
        rng = np.random.default_rng()

    n = int(round(duration_s / dt))
    t = np.arange(n) * dt

    walk_end = duration_s if stop_after_s is None else min(stop_after_s, duration_s)
    period = 1.0 / step_freq_hz
    step_times = np.arange(start_delay_s, walk_end - pulse_width_s, period)

    accel = np.zeros((n, 3))
    accel[:, 2] = gravity

    for t_k in step_times:
        rel = t - t_k
        inside = (rel >= 0.0) & (rel <= pulse_width_s)
        accel[inside, 2] += amplitude * np.sin(np.pi * rel[inside] / pulse_width_s)

    walking = (t >= start_delay_s) & (t < walk_end)
    accel[walking, 0] += sway_amplitude * np.sin(
        2.0 * np.pi * (step_freq_hz / 2.0) * (t[walking] - start_delay_s)
    )

    if noise_std > 0:
        accel += rng.normal(0.0, noise_std, size=accel.shape)

    meta = {
        'sample_rate_hz': 1.0 / dt,
        'step_freq_hz': step_freq_hz,
        'units': {'accel': 'm/s^2'},
    }
    return AccelSeries(t=t, accel=accel, meta=meta), step_times


def generate_impulse_steps(
    step_times_s: Sequence[float],
    duration_s: float,
    dt: float = 0.02,
    impulse: float = 10.0,
    gravity: float = GRAVITY,
) -> AccelSeries:
    """
    Gravity plus single-sample vertical impulses at the given times.

    Each impulse is placed on the nearest sample. With a converged gravity
    estimate an impulse P gives a linear magnitude of 0.8·P on its sample
    (arming the detector) and 0.16·P on the next (the falling edge), so for
    P < 11.25 m/s² each impulse yields exactly one step, one sample later.

    Args:
        step_times_s: Impulse times. Units: s.
        duration_s: Total length of the series. Units: s.
        dt: Sample period. Units: s.
        impulse: Impulse height added to gravity on z. Units: m/s².
        gravity: Gravity magnitude. Units: m/s².

    Returns:
        AccelSeries sampled at t = k·dt.
    """
    if dt <= 0:
        raise ValueError(f"dt must be positive, got {dt}")

    n = int(round(duration_s / dt))
    t = np.arange(n) * dt
    accel = np.zeros((n, 3))
    accel[:, 2] = gravity

    for t_k in step_times_s:
        k = int(round(t_k / dt))
        if not 0 <= k < n:
            raise ValueError(f"step time {t_k} is outside the series")
        accel[k, 2] += impulse

    return AccelSeries(t=t, accel=accel, meta={'sample_rate_hz': 1.0 / dt})
