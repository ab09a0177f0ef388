"""
Synthetic accelerometer data for walking speed estimation.

Modules:
    walking: Heel-strike pulse walks and exact impulse step trains
"""

from walkspeed.sim.walking import (
    GRAVITY,
    generate_impulse_steps,
    generate_walking_accel,
)

__all__ = [
    "GRAVITY",
    "generate_impulse_steps",
    "generate_walking_accel",
]
