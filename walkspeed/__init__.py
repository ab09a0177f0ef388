"""Walking speed estimation from raw accelerometer samples.

This package contains the streaming pipeline and its building blocks:
- sensors: Sample types, gravity filter, step peak detector
- estimators: Speed estimator and stop-timeout scheduling
- sim: Synthetic walking accelerometer data
- pipeline: WalkingSpeedPipeline and offline replay
"""

from walkspeed.config import (
    PipelineConfig,
    SettingsCell,
    UserSettings,
    stride_length_from_height,
)
from walkspeed.pipeline import (
    SpeedTrace,
    WalkingSpeedPipeline,
    estimate_speed_series,
)

__all__ = [
    "PipelineConfig",
    "SettingsCell",
    "UserSettings",
    "stride_length_from_height",
    "SpeedTrace",
    "WalkingSpeedPipeline",
    "estimate_speed_series",
]

__version__ = "0.1.0"
