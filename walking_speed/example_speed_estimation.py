"""
Example: Walking speed from raw accelerometer samples

Streams accelerometer samples through the walking speed pipeline and shows
how each stage shapes the result.

Can run with:
    - Pre-generated dataset: python -m walking_speed.example_speed_estimation --data walking_speed_baseline
    - Inline data (default): python -m walking_speed.example_speed_estimation

Demonstrates:
    - Gravity removal by exponential smoothing (α = 0.8)
    - Hysteresis peak detection on the linear-acceleration magnitude
    - Speed = stride / inter-step interval, with the 0.2 s noise gate
    - Stop-timeout forcing the speed to 0 once the walker stands still
    - Overspeed alerts against a configured limit

Key Insight: the noise gate does not just drop a spurious step, it also
             moves the timing reference, so the next interval is measured
             from the spike rather than from the previous real footfall.
"""

import argparse
import json
from pathlib import Path
from typing import Dict, Optional

import matplotlib.pyplot as plt
import numpy as np

from walkspeed.config import PipelineConfig, stride_length_from_height
from walkspeed.pipeline import SpeedTrace, estimate_speed_series
from walkspeed.sensors import AccelSeries, remove_gravity_series
from walkspeed.sim import generate_walking_accel


def load_walking_dataset(data_dir: str) -> Dict:
    """Load a dataset written by scripts/generate_walking_speed_dataset.py.

    Args:
        data_dir: Path to dataset directory (e.g. 'data/sim/walking_speed_baseline')

    Returns:
        Dictionary with the AccelSeries, ground-truth step times and config
    """
    path = Path(data_dir)

    t = np.atleast_1d(np.loadtxt(path / 'time.txt'))
    accel = np.atleast_2d(np.loadtxt(path / 'accel.txt'))
    data = {
        'series': AccelSeries(t=t, accel=accel, meta={}),
        'step_times': np.atleast_1d(np.loadtxt(path / 'step_times.txt')),
    }

    config_path = path / 'config.json'
    if config_path.exists():
        with open(config_path) as f:
            data['config'] = json.load(f)

    return data


def report(trace: SpeedTrace, step_times_true: np.ndarray, stride: float) -> None:
    """Print a short summary of a replay."""
    walking = trace.speed[~trace.stopped]
    summary = trace.summary

    print(f"  Detected steps: {len(trace.step_times)} (true: {len(step_times_true)})")
    print(f"  Speed updates: {trace.num_updates}, stop updates: {int(trace.stopped.sum())}")
    if walking.size:
        print(f"  Speed: median {np.median(walking):.3f} m/s, "
              f"max {np.max(walking):.3f} m/s")
    print(f"  Session: {summary.step_count} steps, {summary.distance_m:.1f} m "
          f"in {summary.elapsed_s:.1f} s, average {summary.average_speed:.3f} m/s")
    print(f"  Overspeed alerts: {len(trace.alerts)}")
    if len(step_times_true) > 1:
        cadence = 1.0 / np.median(np.diff(step_times_true))
        print(f"  Expected walking speed: {stride * cadence:.3f} m/s "
              f"(stride {stride:.3f} m x {cadence:.2f} Hz)")


def plot_results(series: AccelSeries, trace: SpeedTrace, config: PipelineConfig,
                 figs_dir: Path) -> None:
    """Plot magnitude with detected steps, and the speed trace."""
    linear = remove_gravity_series(series.accel, alpha=config.alpha)
    magnitude = np.linalg.norm(linear, axis=1)

    fig, (ax1, ax2) = plt.subplots(2, 1, figsize=(12, 8), sharex=True)

    ax1.plot(series.t, magnitude, 'b-', linewidth=0.8, label='|linear accel|')
    ax1.axhline(config.step_threshold_mps2, color='r', linestyle='--',
                label=f'threshold {config.step_threshold_mps2} m/s²')
    for k, t_step in enumerate(trace.step_times):
        ax1.axvline(t_step, color='g', alpha=0.3, label='step' if k == 0 else None)
    ax1.set_ylabel('Magnitude [m/s²]')
    ax1.set_title('Step Detection')
    ax1.legend(loc='upper right')
    ax1.grid(True, alpha=0.3)

    ax2.step(trace.t, trace.speed, 'k-', where='post', label='speed')
    if trace.stopped.any():
        ax2.plot(trace.t[trace.stopped], trace.speed[trace.stopped], 'ro',
                 label='stop-timeout')
    if config.speed_limit_mps:
        ax2.axhline(config.speed_limit_mps, color='orange', linestyle='--',
                    label='speed limit')
    ax2.set_xlabel('Time [s]')
    ax2.set_ylabel('Speed [m/s]')
    ax2.set_title('Speed Estimate')
    ax2.legend(loc='upper right')
    ax2.grid(True, alpha=0.3)

    plt.tight_layout()
    figs_dir.mkdir(exist_ok=True)
    output_file = figs_dir / 'walking_speed.svg'
    fig.savefig(output_file, dpi=300, bbox_inches='tight')
    print(f"  [OK] Saved: {output_file}")
    plt.close('all')


def run(series: AccelSeries, step_times_true: np.ndarray, height_cm: float,
        speed_limit: Optional[float], plot: bool) -> SpeedTrace:
    stride = stride_length_from_height(height_cm)
    config = PipelineConfig(stride_length_m=stride, speed_limit_mps=speed_limit)

    print(f"\nRunning pipeline (stride {stride:.3f} m, "
          f"limit {speed_limit if speed_limit else 'off'})...")
    trace = estimate_speed_series(series, config)
    report(trace, step_times_true, stride)

    if plot:
        plot_results(series, trace, config, Path(__file__).parent / 'figs')
    return trace


def main():
    """Main execution with CLI argument parsing."""
    parser = argparse.ArgumentParser(
        description="Walking speed estimation example",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run with inline generated data (default)
  python -m walking_speed.example_speed_estimation

  # Run with pre-generated dataset
  python -m walking_speed.example_speed_estimation --data walking_speed_baseline

  # Taller walker with a speed limit
  python -m walking_speed.example_speed_estimation --height 185 --speed-limit 1.5
        """
    )
    parser.add_argument(
        "--data", type=str, default=None,
        help="Dataset name or path (e.g., 'walking_speed_baseline' or full path)"
    )
    parser.add_argument(
        "--height", type=float, default=170.0,
        help="Walker height in cm (default: 170)"
    )
    parser.add_argument(
        "--speed-limit", type=float, default=None,
        help="Overspeed alert threshold in m/s (default: off)"
    )
    parser.add_argument(
        "--no-plot", action="store_true",
        help="Skip figure generation"
    )

    args = parser.parse_args()

    print("=" * 70)
    print("Walking Speed Estimation")
    print("=" * 70)

    if args.data:
        data_path = Path(args.data)
        if not data_path.exists():
            data_path = Path("data/sim") / args.data
        if not data_path.exists():
            print(f"Error: Dataset not found at '{args.data}' or 'data/sim/{args.data}'")
            print("\nAvailable datasets:")
            sim_dir = Path("data/sim")
            if sim_dir.exists():
                for d in sorted(sim_dir.iterdir()):
                    if d.is_dir() and d.name.startswith("walking"):
                        print(f"  - {d.name}")
            return

        data = load_walking_dataset(str(data_path))
        series, step_times = data['series'], data['step_times']
        print(f"Loaded {len(series)} samples from {data_path}")
    else:
        series, step_times = generate_walking_accel(
            duration_s=30.0, step_freq_hz=2.0, noise_std=0.05,
            stop_after_s=20.0, rng=np.random.default_rng(42),
        )
        print(f"Generated {len(series)} samples ({series.duration:.1f} s) inline")

    run(series, step_times, args.height, args.speed_limit, plot=not args.no_plot)

    print("\n" + "=" * 70)
    print("KEY INSIGHT: speed is only as good as step timing. One spurious")
    print("             peak shortens the next interval it is measured from.")
    print("=" * 70)


if __name__ == "__main__":
    main()
