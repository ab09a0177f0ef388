"""
Configuration for the walking speed pipeline.

Tunable constants are named here rather than appearing as literals in the
algorithms. PipelineConfig groups them (with validation) and can be
round-tripped through the config.json files written next to datasets.

User-facing settings (stride length, speed limit) change at runtime from a
different source than the sensor stream. SettingsCell holds them as one
immutable UserSettings snapshot behind a lock; writers replace the whole
snapshot and the estimator reads it once per step, so a step never sees a
half-applied update.
"""

from dataclasses import asdict, dataclass, replace
from pathlib import Path
from typing import Any, Dict, Optional, Union
import json
import math
import threading
import warnings

# Gravity filter smoothing factor (single-pole IIR low-pass on each axis)
GRAVITY_FILTER_ALPHA = 0.8

# Linear-acceleration magnitude that arms the step peak detector (m/s²)
STEP_THRESHOLD_MPS2 = 1.8

# Inter-step intervals at or below this are treated as noise (s)
MIN_STEP_INTERVAL_S = 0.2

# Inactivity after the last accepted step before speed is forced to 0 (s)
STOP_TIMEOUT_S = 2.5
TYPICAL_STOP_TIMEOUT_RANGE_S = (2.0, 3.0)

# Stride used until the user provides a height (m)
DEFAULT_STRIDE_LENGTH_M = 0.762

# Stride ≈ height × 0.45
STRIDE_HEIGHT_RATIO = 0.45


def stride_length_from_height(height_cm: float) -> float:
    """
    Estimate stride length from user height.

        L = (h / 100) × 0.45

    Args:
        height_cm: User height in centimetres. Must be positive and finite.

    Returns:
        Stride length in meters.

    Example:
        >>> round(stride_length_from_height(170.0), 3)
        0.765
    """
    if not math.isfinite(height_cm) or height_cm <= 0:
        raise ValueError(f"height_cm must be positive, got {height_cm}")
    return (height_cm / 100.0) * STRIDE_HEIGHT_RATIO


def parse_height_cm(text: str) -> float:
    """
    Parse a height typed by the user.

    Raises:
        ValueError: If the text is empty, not a number, or not positive.
    """
    text = text.strip() if text is not None else ""
    if not text:
        raise ValueError("height must not be empty")
    try:
        height_cm = float(text)
    except ValueError:
        raise ValueError(f"height must be a number, got {text!r}") from None
    if not math.isfinite(height_cm) or height_cm <= 0:
        raise ValueError(f"height must be positive, got {text!r}")
    return height_cm


def _check_stride(stride_length_m: float) -> float:
    stride_length_m = float(stride_length_m)
    if not math.isfinite(stride_length_m) or stride_length_m < 0:
        raise ValueError(
            f"stride_length_m must be finite and non-negative, got {stride_length_m}"
        )
    return stride_length_m


def _check_limit(speed_limit_mps: Optional[float]) -> Optional[float]:
    if speed_limit_mps is None:
        return None
    speed_limit_mps = float(speed_limit_mps)
    if math.isnan(speed_limit_mps) or speed_limit_mps < 0:
        raise ValueError(
            f"speed_limit_mps must be None or non-negative, got {speed_limit_mps}"
        )
    return speed_limit_mps


@dataclass(frozen=True)
class UserSettings:
    """
    Snapshot of the externally configured values read by the estimator.

    Attributes:
        stride_length_m: Distance covered per step (m). 0 yields speed 0.
        speed_limit_mps: Overspeed threshold (m/s). None or 0 disables it.
    """

    stride_length_m: float = DEFAULT_STRIDE_LENGTH_M
    speed_limit_mps: Optional[float] = None

    def __post_init__(self) -> None:
        _check_stride(self.stride_length_m)
        _check_limit(self.speed_limit_mps)

    @property
    def limit_enabled(self) -> bool:
        return self.speed_limit_mps is not None and self.speed_limit_mps > 0


class SettingsCell:
    """Thread-safe single-value store for UserSettings."""

    def __init__(self, settings: Optional[UserSettings] = None) -> None:
        self._lock = threading.Lock()
        self._settings = settings if settings is not None else UserSettings()

    def get(self) -> UserSettings:
        with self._lock:
            return self._settings

    def set(self, settings: UserSettings) -> None:
        with self._lock:
            self._settings = settings

    def set_stride_length(self, stride_length_m: float) -> None:
        stride_length_m = _check_stride(stride_length_m)
        with self._lock:
            self._settings = replace(self._settings, stride_length_m=stride_length_m)

    def set_speed_limit(self, speed_limit_mps: Optional[float]) -> None:
        speed_limit_mps = _check_limit(speed_limit_mps)
        with self._lock:
            self._settings = replace(self._settings, speed_limit_mps=speed_limit_mps)

    def set_height_cm(self, height_cm: float) -> None:
        self.set_stride_length(stride_length_from_height(height_cm))


@dataclass(frozen=True)
class PipelineConfig:
    """
    Tuning and initial settings for WalkingSpeedPipeline.

    Attributes:
        alpha: Gravity filter smoothing factor in [0, 1). Default: 0.8.
        step_threshold_mps2: Magnitude that arms the peak detector.
                             Units: m/s². Default: 1.8.
        min_step_interval_s: Intervals <= this are noise. Units: s.
                             Default: 0.2.
        stop_timeout_s: Inactivity before speed is forced to 0. Units: s.
                        Default: 2.5 (typical range 2-3 s).
        stride_length_m: Initial stride length. Units: m. Default: 0.762.
        speed_limit_mps: Initial speed limit. Units: m/s. None disables.

    Example:
        >>> cfg = PipelineConfig(stride_length_m=0.75, speed_limit_mps=1.0)
        >>> cfg.user_settings().limit_enabled
        True
    """

    alpha: float = GRAVITY_FILTER_ALPHA
    step_threshold_mps2: float = STEP_THRESHOLD_MPS2
    min_step_interval_s: float = MIN_STEP_INTERVAL_S
    stop_timeout_s: float = STOP_TIMEOUT_S
    stride_length_m: float = DEFAULT_STRIDE_LENGTH_M
    speed_limit_mps: Optional[float] = None

    def __post_init__(self) -> None:
        """Validate parameter ranges."""
        if not (0.0 <= self.alpha < 1.0):
            raise ValueError(f"alpha must be in [0, 1), got {self.alpha}")

        if not math.isfinite(self.step_threshold_mps2) or self.step_threshold_mps2 <= 0:
            raise ValueError(
                f"step_threshold_mps2 must be positive, got {self.step_threshold_mps2}"
            )

        if not math.isfinite(self.min_step_interval_s) or self.min_step_interval_s < 0:
            raise ValueError(
                f"min_step_interval_s must be non-negative, got {self.min_step_interval_s}"
            )

        if not math.isfinite(self.stop_timeout_s) or self.stop_timeout_s <= 0:
            raise ValueError(
                f"stop_timeout_s must be positive, got {self.stop_timeout_s}"
            )

        _check_stride(self.stride_length_m)
        _check_limit(self.speed_limit_mps)

        lo, hi = TYPICAL_STOP_TIMEOUT_RANGE_S
        if not (lo <= self.stop_timeout_s <= hi):
            warnings.warn(
                f"stop_timeout_s={self.stop_timeout_s} is outside the typical "
                f"{lo}-{hi} s range; speed may linger or drop between steps.",
                UserWarning,
            )

    def user_settings(self) -> UserSettings:
        """Initial UserSettings derived from this configuration."""
        return UserSettings(
            stride_length_m=self.stride_length_m,
            speed_limit_mps=self.speed_limit_mps,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PipelineConfig":
        """Build from a dict, ignoring keys that are not config fields."""
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known)

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "PipelineConfig":
        """Load from a JSON file (e.g. a dataset's config.json)."""
        with open(path) as f:
            data = json.load(f)
        return cls.from_dict(data.get("pipeline", data))
