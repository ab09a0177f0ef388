"""
Example: Real-time walking speed with a timer-driven stop-timeout

Feeds a synthetic walk to WalkingSpeedPipeline at its real sample rate, with
timestamps taken from the monotonic clock, while a second thread changes the
walker's height and speed limit mid-walk. The stop-timeout runs on a real
threading.Timer, so the final zero-speed update arrives on its own after the
walker stops.

Run with:
    python -m walking_speed.example_live_stream --duration 8 --stop-after 5
"""

import argparse
import threading
import time

import numpy as np

from walkspeed.config import PipelineConfig
from walkspeed.pipeline import WalkingSpeedPipeline
from walkspeed.sensors import AccelSample, OverspeedAlert, SpeedUpdate
from walkspeed.sim import generate_walking_accel

# Monotonic, process-wide time base
now_ns = time.perf_counter_ns


def print_update(update: SpeedUpdate) -> None:
    if update.stopped:
        print("[Speed] stopped -> 0.00 m/s")
    else:
        print(f"[Speed] {update.speed:.2f} m/s")


def print_alert(alert: OverspeedAlert) -> None:
    print(f"[Alert] {alert.speed:.2f} m/s exceeds limit {alert.limit:.2f} m/s")


def main():
    parser = argparse.ArgumentParser(description="Real-time walking speed example")
    parser.add_argument("--duration", type=float, default=8.0,
                        help="Length of the simulated walk in s (default: 8)")
    parser.add_argument("--stop-after", type=float, default=5.0,
                        help="Walker stops at this time in s (default: 5)")
    parser.add_argument("--dt", type=float, default=0.02,
                        help="Sample period in s (default: 0.02)")
    args = parser.parse_args()

    series, _ = generate_walking_accel(
        duration_s=args.duration, dt=args.dt, noise_std=0.05,
        stop_after_s=args.stop_after, rng=np.random.default_rng(0),
    )

    pipeline = WalkingSpeedPipeline(
        config=PipelineConfig(),
        on_speed_update=print_update,
        on_overspeed_alert=print_alert,
    )

    def user_input() -> None:
        # Settings arrive from a different thread than the samples
        time.sleep(args.stop_after / 2.0)
        print("[Settings] height 185 cm, limit 1.5 m/s")
        pipeline.set_height_cm(185.0)
        pipeline.set_speed_limit(1.5)

    settings_thread = threading.Thread(target=user_input, daemon=True)

    pipeline.start()
    settings_thread.start()
    try:
        for ax, ay, az in series.accel:
            pipeline.push_sample(AccelSample(t_ns=now_ns(), x=ax, y=ay, z=az))
            time.sleep(args.dt)
        # Leave time for the stop-timeout to fire
        time.sleep(pipeline.config.stop_timeout_s + 0.5)
    finally:
        summary = pipeline.summary()
        pipeline.stop()
        print("[Shutdown] Pipeline stopped")

    print(f"Session: {summary.step_count} steps, {summary.distance_m:.1f} m, "
          f"average {summary.average_speed:.2f} m/s")


if __name__ == "__main__":
    main()
