"""Tick-driven path following for movable entities."""
from .system import ARRIVAL_THRESHOLD, MovementSystem, clamp_to_bounds, has_reached_target, step_towards

__all__ = [
    "ARRIVAL_THRESHOLD",
    "MovementSystem",
    "clamp_to_bounds",
    "has_reached_target",
    "step_towards",
]
