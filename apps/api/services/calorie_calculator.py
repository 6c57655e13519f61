"""
Activity calorie estimate.

Base burn rate per minute at moderate effort, scaled by intensity:
multiplier = 0.5 + intensity/10 * 0.5 (1 -> 0.55x, 5 -> 0.75x, 10 -> 1.0x).
"""

import math
from typing import List

BASE_CALORIE_RATES = {
    "Running": 10.5,
    "Cycling": 8.0,
    "Weightlifting": 6.0,
    "Yoga": 3.5,
    "Swimming": 9.0,
    "Walking": 4.0,
}

ACTIVITY_TYPES: List[str] = ["Running", "Weightlifting", "Cycling", "Yoga", "Swimming", "Walking"]


def intensity_multiplier(intensity: int) -> float:
    return 0.5 + (intensity / 10) * 0.5


def calculate_calories(activity_type: str, duration_minutes: int, intensity: int) -> int:
    """
    Estimated calories burned, rounded to a whole number.

    Raises:
        ValueError: unknown activity type
    """
    base_rate = BASE_CALORIE_RATES.get(activity_type)
    if base_rate is None:
        raise ValueError(f"Unknown activity type: {activity_type}")
    # Half-up rounding
    return int(math.floor(base_rate * duration_minutes * intensity_multiplier(intensity) + 0.5))
