"""
Walking speed examples.

Examples:
    - example_speed_estimation.py: Stream a walk through the pipeline, report
      steps, speed, stop-timeout and overspeed alerts, and plot the result
    - example_live_stream.py: Real-time pipeline on a timer thread, with
      settings changed while samples are flowing
"""

__version__ = "0.1.0"
__all__ = []
