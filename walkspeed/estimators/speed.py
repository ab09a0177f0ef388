"""
Speed estimation from consecutive step events.

Given two accepted footfalls separated by Δt seconds and a stride length L:

    v = L / Δt

Timing gate:
    Δt ≤ min_step_interval_s (0.2 s) is treated as noise. No speed is
    emitted, but the noisy event still becomes the timing reference for the
    next step, so one spike is never divided by a near-zero interval.

Session states:
    Idle      no step recorded yet; the first step only sets the reference.
    Tracking  at least one step recorded. The stop-timeout forces the speed
              to 0 but keeps the session in Tracking. Only reset() returns
              to Idle.

Stride length and speed limit are read from a SettingsCell once per step.

The estimator also keeps per-session totals (steps, distance, elapsed time)
used for the session average speed, distance / time since the first step.
"""

from dataclasses import dataclass
from typing import Optional

from walkspeed.config import MIN_STEP_INTERVAL_S, SettingsCell
from walkspeed.sensors.types import (
    NS_PER_S,
    OverspeedAlert,
    SpeedUpdate,
    StepEvent,
)


@dataclass
class SpeedSessionState:
    """
    Mutable per-session state owned by SpeedEstimator.

    Attributes:
        last_step_ns: Timing reference (last step seen, accepted or noise).
        current_speed: Last emitted speed (m/s). Always >= 0.
        first_step_ns: Time of the first step of the session.
        last_accepted_ns: Time of the last step that produced a speed.
        step_count: First step plus every accepted step.
        distance_m: Stride length summed over accepted steps.
    """

    last_step_ns: Optional[int] = None
    current_speed: float = 0.0
    first_step_ns: Optional[int] = None
    last_accepted_ns: Optional[int] = None
    step_count: int = 0
    distance_m: float = 0.0

    @property
    def tracking(self) -> bool:
        return self.last_step_ns is not None


@dataclass(frozen=True)
class StepOutcome:
    """
    Result of feeding one StepEvent to the estimator.

    Attributes:
        update: Speed update to publish, if any.
        alert: Overspeed alert to publish, if any.
        accepted: True when a speed was computed; the stop-timeout is
                  re-armed only for accepted steps.
        noise: True when the step was discarded by the interval gate.
    """

    update: Optional[SpeedUpdate] = None
    alert: Optional[OverspeedAlert] = None
    accepted: bool = False
    noise: bool = False


@dataclass(frozen=True)
class SessionSummary:
    """Totals for the current session."""

    step_count: int
    distance_m: float
    elapsed_s: float
    average_speed: float
    current_speed: float


class SpeedEstimator:
    """
    Converts step events into speed updates.

    Args:
        settings: Shared SettingsCell holding stride length and speed limit.
        min_step_interval_s: Noise gate on inter-step intervals. Units: s.
                             Default: 0.2.

    Example:
        >>> from walkspeed.config import SettingsCell, UserSettings
        >>> est = SpeedEstimator(SettingsCell(UserSettings(stride_length_m=0.75)))
        >>> est.on_step(StepEvent(t_ns=0)).update is None
        True
        >>> est.on_step(StepEvent(t_ns=500_000_000)).update.speed
        1.5
    """

    def __init__(
        self,
        settings: Optional[SettingsCell] = None,
        min_step_interval_s: float = MIN_STEP_INTERVAL_S,
    ) -> None:
        if min_step_interval_s < 0:
            raise ValueError(
                f"min_step_interval_s must be non-negative, got {min_step_interval_s}"
            )
        self.settings = settings if settings is not None else SettingsCell()
        self.min_step_interval_s = min_step_interval_s
        self.state = SpeedSessionState()

    @property
    def current_speed(self) -> float:
        return self.state.current_speed

    def on_step(self, event: StepEvent) -> StepOutcome:
        """
        Process one detected step.

        Returns:
            StepOutcome with a SpeedUpdate for an accepted step (plus an
            OverspeedAlert when the limit is exceeded), or an empty outcome
            for the first step of a session and for noise steps.
        """
        state = self.state
        settings = self.settings.get()

        if state.last_step_ns is None:
            state.last_step_ns = event.t_ns
            state.first_step_ns = event.t_ns
            state.step_count = 1
            return StepOutcome()

        dt = (event.t_ns - state.last_step_ns) / NS_PER_S
        state.last_step_ns = event.t_ns

        if dt <= self.min_step_interval_s:
            return StepOutcome(noise=True)

        stride = settings.stride_length_m
        speed = stride / dt if stride > 0 else 0.0

        state.current_speed = speed
        state.last_accepted_ns = event.t_ns
        state.step_count += 1
        state.distance_m += stride

        update = SpeedUpdate(speed=speed, t_ns=event.t_ns)
        alert = None
        if settings.limit_enabled and speed > settings.speed_limit_mps:
            alert = OverspeedAlert(
                speed=speed, limit=settings.speed_limit_mps, t_ns=event.t_ns
            )

        return StepOutcome(update=update, alert=alert, accepted=True)

    def on_stop_timeout(self) -> SpeedUpdate:
        """Force the speed to zero after inactivity. Stays in Tracking."""
        self.state.current_speed = 0.0
        return SpeedUpdate(speed=0.0, stopped=True)

    def reset(self) -> None:
        """Start a new session (back to Idle)."""
        self.state = SpeedSessionState()

    def average_speed(self) -> float:
        """
        Session average speed: distance over time since the first step.

        Distance counts one stride per accepted step, elapsed time runs from
        the first step to the last accepted one. Returns 0.0 until at least
        one interval has been accepted.
        """
        state = self.state
        if state.first_step_ns is None or state.last_accepted_ns is None:
            return 0.0
        elapsed = (state.last_accepted_ns - state.first_step_ns) / NS_PER_S
        if elapsed <= 0:
            return 0.0
        return state.distance_m / elapsed

    def summary(self) -> SessionSummary:
        state = self.state
        if state.first_step_ns is None or state.last_accepted_ns is None:
            elapsed = 0.0
        else:
            elapsed = (state.last_accepted_ns - state.first_step_ns) / NS_PER_S
        return SessionSummary(
            step_count=state.step_count,
            distance_m=state.distance_m,
            elapsed_s=elapsed,
            average_speed=self.average_speed(),
            current_speed=state.current_speed,
        )
