"""Conversions between the mood/energy scales used across the app.

The backend stores mood on a canonical 1-10 scale. Energy check-ins use five
percent steps. Quick mood check-ins collect a 1-5 rating.
"""
from __future__ import annotations

ENERGY_STEPS = (20, 40, 60, 80, 100)
MOOD_MIN = 1
MOOD_MAX = 10


def is_valid_energy_step(value: int) -> bool:
    return value in ENERGY_STEPS


def is_valid_mood_level(value: int) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and MOOD_MIN <= value <= MOOD_MAX


def five_point_to_ten(value: int) -> int:
    """Map a 1-5 rating onto 1-10 (1 -> 2, 5 -> 10)."""
    if not 1 <= value <= 5:
        raise ValueError(f"five-point value out of range: {value}")
    return value * 2


def ten_to_five_point(value: float) -> int:
    if not MOOD_MIN <= value <= MOOD_MAX:
        raise ValueError(f"ten-point value out of range: {value}")
    return max(1, min(5, int(round(value / 2))))


def energy_percent_to_ten(value: int) -> int:
    """Map an energy step (20..100) onto 1-10."""
    if not is_valid_energy_step(value):
        raise ValueError(f"energy value must be one of {ENERGY_STEPS}: {value}")
    return value // 10

