"""Speed estimation and stop-timeout scheduling."""

from walkspeed.estimators.scheduling import (
    ManualScheduler,
    Scheduler,
    StopTimeout,
    ThreadingScheduler,
    TimerHandle,
)
from walkspeed.estimators.speed import (
    SessionSummary,
    SpeedEstimator,
    SpeedSessionState,
    StepOutcome,
)

__all__ = [
    "ManualScheduler",
    "Scheduler",
    "StopTimeout",
    "ThreadingScheduler",
    "TimerHandle",
    "SessionSummary",
    "SpeedEstimator",
    "SpeedSessionState",
    "StepOutcome",
]
