"""
Generate a synthetic walking-speed dataset.

Writes a walk with heel-strike pulses at a fixed cadence, followed by an
optional standstill, and records the speed the streaming pipeline reports on
it so the dataset ships with a reference run.

Output layout (data/sim/<name>/):
    time.txt          sample times (s)
    accel.txt         accelerometer (m/s^2), noisy
    accel_clean.txt   accelerometer (m/s^2), noise free
    step_times.txt    ground-truth step times (s)
    config.json       generation parameters, pipeline config, reference run
"""

import argparse
import json
import sys
import time
from pathlib import Path
from typing import Dict, Optional

import numpy as np

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from walkspeed.config import PipelineConfig, stride_length_from_height
from walkspeed.pipeline import estimate_speed_series
from walkspeed.sensors.types import AccelSeries
from walkspeed.sim import generate_walking_accel


PRESETS: Dict[str, Dict] = {
    "baseline": {"step_freq": 2.0, "noise": 0.05, "stop_after": 20.0},
    "brisk": {"step_freq": 2.4, "noise": 0.05, "stop_after": 20.0},
    "noisy": {"step_freq": 2.0, "noise": 0.3, "stop_after": 20.0},
}


def save_dataset(
    output_dir: Path,
    series: AccelSeries,
    accel_clean: np.ndarray,
    step_times: np.ndarray,
    config: Dict,
) -> None:
    """Save dataset to disk."""
    output_dir.mkdir(parents=True, exist_ok=True)

    np.savetxt(output_dir / "time.txt", series.t, fmt="%.6f", header="time (s)")
    np.savetxt(
        output_dir / "accel.txt",
        series.accel,
        fmt="%.6f",
        header="ax (m/s^2), ay (m/s^2), az (m/s^2)",
    )
    np.savetxt(
        output_dir / "accel_clean.txt",
        accel_clean,
        fmt="%.6f",
        header="ax (m/s^2), ay (m/s^2), az (m/s^2)",
    )
    np.savetxt(
        output_dir / "step_times.txt",
        step_times,
        fmt="%.6f",
        header="step occurrence times (s)",
    )

    with open(output_dir / "config.json", "w") as f:
        json.dump(config, f, indent=2)

    print(f"\n  Saved dataset to: {output_dir}")
    print(f"    Samples: {len(series)}")
    print(f"    Steps: {len(step_times)}")


def generate_dataset(
    output_dir: str,
    preset: Optional[str] = None,
    duration: float = 30.0,
    step_freq: float = 2.0,
    height_cm: float = 170.0,
    dt: float = 0.02,
    noise: float = 0.05,
    stop_after: Optional[float] = 20.0,
    speed_limit: Optional[float] = None,
    seed: int = 42,
) -> None:
    """
    Generate a walking-speed dataset.

    Args:
        output_dir: Output directory path.
        preset: Preset name (overrides cadence, noise and stop time).
        duration: Total duration (s).
        step_freq: Cadence (Hz).
        height_cm: Walker height (cm), sets the stride length.
        dt: Sample period (s).
        noise: Accelerometer noise std dev (m/s^2).
        stop_after: Time the walker stops (s); None walks to the end.
        speed_limit: Speed limit for the reference run (m/s).
        seed: Random seed.
    """
    if preset is not None:
        params = PRESETS[preset]
        step_freq = params["step_freq"]
        noise = params["noise"]
        stop_after = params["stop_after"]

    print("=" * 70)
    print("Walking Speed Dataset Generation")
    print("=" * 70)

    print("\nStep 1: Generating accelerometer signal...")
    series_clean, step_times = generate_walking_accel(
        duration_s=duration,
        step_freq_hz=step_freq,
        dt=dt,
        noise_std=0.0,
        stop_after_s=stop_after,
    )
    rng = np.random.default_rng(seed)
    accel_meas = series_clean.accel + rng.normal(0.0, noise, series_clean.accel.shape)
    series = AccelSeries(t=series_clean.t, accel=accel_meas, meta=series_clean.meta)
    print(f"  Duration: {duration:.1f} s at {1.0 / dt:.0f} Hz")
    print(f"  Cadence: {step_freq:.2f} Hz, {len(step_times)} steps")

    print("\nStep 2: Running the streaming pipeline...")
    stride = stride_length_from_height(height_cm)
    pipeline_config = PipelineConfig(stride_length_m=stride, speed_limit_mps=speed_limit)
    start = time.time()
    trace = estimate_speed_series(series, pipeline_config)
    elapsed = time.time() - start

    walking = trace.speed[~trace.stopped]
    expected_speed = stride * step_freq
    median_speed = float(np.median(walking)) if walking.size else 0.0

    print(f"  Time: {elapsed:.3f} s")
    print(f"  Detected steps: {len(trace.step_times)}/{len(step_times)}")
    print(f"  Speed updates: {trace.num_updates} ({int(trace.stopped.sum())} stop)")
    print(f"  Median speed: {median_speed:.3f} m/s (expected {expected_speed:.3f})")

    config = {
        "dataset": "walking_speed",
        "preset": preset,
        "walker": {
            "height_cm": height_cm,
            "stride_length_m": stride,
            "step_freq_hz": step_freq,
            "num_steps": int(len(step_times)),
            "stop_after_s": stop_after,
            "expected_speed_mps": expected_speed,
        },
        "dt_s": dt,
        "sample_rate_hz": 1.0 / dt,
        "num_samples": len(series),
        "sensors": {"accel_noise_std_m_s2": noise},
        "pipeline": pipeline_config.to_dict(),
        "reference_run": {
            "steps_detected": int(len(trace.step_times)),
            "speed_updates": trace.num_updates,
            "median_speed_mps": median_speed,
            "average_speed_mps": trace.summary.average_speed,
        },
        "seed": seed,
    }

    save_dataset(Path(output_dir), series, series_clean.accel, step_times, config)

    print("\n" + "=" * 70)
    print("Dataset generation complete!")
    print("=" * 70)


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Generate a synthetic walking-speed dataset",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Presets:
  baseline     2.0 Hz cadence, light noise, stops at 20 s
  brisk        2.4 Hz cadence, light noise, stops at 20 s
  noisy        2.0 Hz cadence, heavy noise (expect noise-rejected steps)

Examples:
  python scripts/generate_walking_speed_dataset.py --preset baseline
  python scripts/generate_walking_speed_dataset.py \\
      --output data/sim/my_walk --step-freq 1.8 --height 182
        """,
    )

    parser.add_argument(
        "--preset",
        type=str,
        choices=sorted(PRESETS),
        help="Use preset configuration (overrides other parameters)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="data/sim/walking_speed_baseline",
        help="Output directory (default: data/sim/walking_speed_baseline)",
    )

    walk_group = parser.add_argument_group("Walk Parameters")
    walk_group.add_argument(
        "--duration", type=float, default=30.0, help="Duration in seconds (default: 30.0)"
    )
    walk_group.add_argument(
        "--step-freq", type=float, default=2.0, help="Step frequency in Hz (default: 2.0)"
    )
    walk_group.add_argument(
        "--height", type=float, default=170.0, help="Walker height in cm (default: 170)"
    )
    walk_group.add_argument(
        "--stop-after", type=float, default=20.0, help="Stop walking at this time in s (default: 20.0)"
    )
    walk_group.add_argument(
        "--dt", type=float, default=0.02, help="Sample period in seconds (default: 0.02)"
    )

    noise_group = parser.add_argument_group("Sensor Parameters")
    noise_group.add_argument(
        "--noise", type=float, default=0.05, help="Accel noise std dev in m/s^2 (default: 0.05)"
    )
    parser.add_argument(
        "--speed-limit", type=float, default=None, help="Speed limit for the reference run (m/s)"
    )
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")

    args = parser.parse_args()

    generate_dataset(
        output_dir=args.output,
        preset=args.preset,
        duration=args.duration,
        step_freq=args.step_freq,
        height_cm=args.height,
        dt=args.dt,
        noise=args.noise,
        stop_after=args.stop_after,
        speed_limit=args.speed_limit,
        seed=args.seed,
    )


if __name__ == "__main__":
    main()
