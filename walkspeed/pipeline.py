"""
Walking speed pipeline: accelerometer samples in, speed updates out.

    AccelSample ─► GravityFilter ─► PeakDetector ─► SpeedEstimator ─► listeners
                                                          ▲
                                   StopTimeout ───────────┘

Each sample runs through all stages synchronously. The stop-timeout fires
from its scheduler (a timer thread in production, a logical clock in tests
and offline replay); step processing and timeout handling share one
re-entrant lock, so a timeout can never interleave with a step that should
have cancelled it.

Configuration (stride length, speed limit) is held in a SettingsCell and
may be changed from any thread; the change is visible to the next step.

Listeners:
    on_speed_update(SpeedUpdate)      every accepted step, and 0 on timeout
    on_overspeed_alert(OverspeedAlert) accepted step faster than the limit
    on_step(StepEvent)                every detected step (optional)
"""

from dataclasses import dataclass, field
from typing import Callable, List, Optional
import threading
import warnings

import numpy as np

from walkspeed.config import PipelineConfig, SettingsCell
from walkspeed.estimators.scheduling import (
    ManualScheduler,
    Scheduler,
    StopTimeout,
    ThreadingScheduler,
)
from walkspeed.estimators.speed import SessionSummary, SpeedEstimator
from walkspeed.sensors.gravity_filter import GravityFilter
from walkspeed.sensors.peak_detector import PeakDetector
from walkspeed.sensors.types import (
    AccelSample,
    AccelSeries,
    OverspeedAlert,
    SpeedUpdate,
    StepEvent,
    ns_to_seconds,
)

SpeedListener = Callable[[SpeedUpdate], None]
AlertListener = Callable[[OverspeedAlert], None]
StepListener = Callable[[StepEvent], None]


class WalkingSpeedPipeline:
    """
    Streaming step detection and speed estimation.

    Args:
        config: Tuning parameters and initial settings. Default: PipelineConfig().
        scheduler: Source of the stop-timeout timer. Default: ThreadingScheduler().
        settings: Shared SettingsCell. Created from config when omitted.
        on_speed_update: Called with every SpeedUpdate.
        on_overspeed_alert: Called with every OverspeedAlert.
        on_step: Called with every detected StepEvent.

    Usage:
        updates = []
        p = WalkingSpeedPipeline(scheduler=ManualScheduler(),
                                 on_speed_update=updates.append)
        p.start()
        for s in samples:                # AccelSample stream
            p.push_sample(s)
        p.stop()
    """

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        scheduler: Optional[Scheduler] = None,
        settings: Optional[SettingsCell] = None,
        on_speed_update: Optional[SpeedListener] = None,
        on_overspeed_alert: Optional[AlertListener] = None,
        on_step: Optional[StepListener] = None,
    ) -> None:
        self.config = config if config is not None else PipelineConfig()
        self.scheduler = scheduler if scheduler is not None else ThreadingScheduler()
        self.settings = (
            settings if settings is not None
            else SettingsCell(self.config.user_settings())
        )

        self.gravity_filter = GravityFilter(alpha=self.config.alpha)
        self.peak_detector = PeakDetector(threshold=self.config.step_threshold_mps2)
        self.estimator = SpeedEstimator(
            self.settings, min_step_interval_s=self.config.min_step_interval_s
        )
        self.stop_timeout = StopTimeout(self.scheduler, self.config.stop_timeout_s)

        self.on_speed_update = on_speed_update
        self.on_overspeed_alert = on_overspeed_alert
        self.on_step = on_step

        self._lock = threading.RLock()
        self._running = False

    # ----------------------- Lifecycle -----------------------

    def start(self) -> None:
        """Reset every stage to Idle and begin accepting samples."""
        with self._lock:
            self.stop_timeout.cancel()
            self._reset_stages()
            self._running = True

    def stop(self) -> None:
        """Cancel the stop-timeout and discard in-flight state."""
        with self._lock:
            self.stop_timeout.cancel()
            self._reset_stages()
            self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def _reset_stages(self) -> None:
        self.gravity_filter.reset()
        self.peak_detector.reset()
        self.estimator.reset()

    # ----------------------- Configuration -----------------------

    def set_stride_length(self, meters: float) -> None:
        self.settings.set_stride_length(meters)

    def set_speed_limit(self, meters_per_second: Optional[float]) -> None:
        """Set the overspeed threshold; 0 or None disables it."""
        self.settings.set_speed_limit(meters_per_second)

    def set_height_cm(self, height_cm: float) -> None:
        self.settings.set_height_cm(height_cm)

    # ----------------------- Sample path -----------------------

    def push_sample(self, sample: AccelSample) -> Optional[SpeedUpdate]:
        """
        Run one sample through the pipeline.

        Returns:
            The SpeedUpdate emitted for this sample, or None. Samples pushed
            while stopped and samples with non-finite axes are ignored.
        """
        if not sample.is_finite():
            warnings.warn(
                f"Dropping accelerometer sample with non-finite values at "
                f"t_ns={sample.t_ns}",
                UserWarning,
            )
            return None

        with self._lock:
            if not self._running:
                return None

            linear = self.gravity_filter.update(sample)
            event = self.peak_detector.update(linear, sample.t_ns)
            if event is None:
                return None
            return self._handle_step(event)

    def _handle_step(self, event: StepEvent) -> Optional[SpeedUpdate]:
        if self.on_step is not None:
            self.on_step(event)

        outcome = self.estimator.on_step(event)
        if outcome.accepted:
            self.stop_timeout.arm(self._on_timeout)

        if outcome.update is not None and self.on_speed_update is not None:
            self.on_speed_update(outcome.update)
        if outcome.alert is not None and self.on_overspeed_alert is not None:
            self.on_overspeed_alert(outcome.alert)

        return outcome.update

    def _on_timeout(self, generation: int) -> None:
        with self._lock:
            if not self._running or not self.stop_timeout.expire(generation):
                return
            update = self.estimator.on_stop_timeout()
            if self.on_speed_update is not None:
                self.on_speed_update(update)

    # ----------------------- Accessors -----------------------

    @property
    def current_speed(self) -> float:
        with self._lock:
            return self.estimator.current_speed

    def summary(self) -> SessionSummary:
        with self._lock:
            return self.estimator.summary()


@dataclass
class SpeedTrace:
    """
    Output of an offline replay.

    Attributes:
        t: Time of each speed update (s). Shape: (M,).
        speed: Speed of each update (m/s). Shape: (M,).
        stopped: True for updates forced by the stop-timeout. Shape: (M,).
        step_times: Time of every detected step (s). Shape: (K,).
        alerts: Overspeed alerts in emission order.
        summary: Session totals at the end of the replay.
    """

    t: np.ndarray
    speed: np.ndarray
    stopped: np.ndarray
    step_times: np.ndarray
    alerts: List[OverspeedAlert] = field(default_factory=list)
    summary: Optional[SessionSummary] = None

    @property
    def num_updates(self) -> int:
        return int(self.t.shape[0])


def estimate_speed_series(
    series: AccelSeries,
    config: Optional[PipelineConfig] = None,
    flush: bool = True,
) -> SpeedTrace:
    """
    Replay an accelerometer series through the streaming pipeline.

    A ManualScheduler whose clock follows the sample timestamps drives the
    stop-timeout, so timeouts fire at the simulated time they would have
    fired live, in order with the samples.

    Args:
        series: Accelerometer data (float seconds, m/s²).
        config: Pipeline configuration. Default: PipelineConfig().
        flush: If True, advance the clock past the last sample by the stop
               timeout so a trailing stop is reported.

    Returns:
        SpeedTrace with every update, step time and alert.
    """
    config = config if config is not None else PipelineConfig()
    t0 = float(series.t[0]) if len(series) else 0.0
    scheduler = ManualScheduler(start=t0)

    update_t: List[float] = []
    update_speed: List[float] = []
    update_stopped: List[bool] = []
    step_times: List[float] = []
    alerts: List[OverspeedAlert] = []

    def record_update(update: SpeedUpdate) -> None:
        # Timeout updates carry no step time; they fire at the clock's time
        t = ns_to_seconds(update.t_ns) if update.t_ns is not None else scheduler.now
        update_t.append(t)
        update_speed.append(update.speed)
        update_stopped.append(update.stopped)

    pipeline = WalkingSpeedPipeline(
        config=config,
        scheduler=scheduler,
        on_speed_update=record_update,
        on_overspeed_alert=alerts.append,
        on_step=lambda e: step_times.append(ns_to_seconds(e.t_ns)),
    )
    pipeline.start()

    for sample in series.to_samples():
        scheduler.advance_to(ns_to_seconds(sample.t_ns))
        pipeline.push_sample(sample)

    if flush:
        scheduler.advance(config.stop_timeout_s)

    summary = pipeline.summary()
    pipeline.stop()

    return SpeedTrace(
        t=np.asarray(update_t, dtype=float),
        speed=np.asarray(update_speed, dtype=float),
        stopped=np.asarray(update_stopped, dtype=bool),
        step_times=np.asarray(step_times, dtype=float),
        alerts=alerts,
        summary=summary,
    )
