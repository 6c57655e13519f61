"""
Daily calorie goal from the onboarding profile.

BMR (Mifflin-St Jeor) x activity multiplier, then a goal adjustment:
-500 to lose weight, +300 to build muscle, unchanged to maintain.
"""

import math
from typing import Optional

from models import User

DEFAULT_DAILY_CALORIE_GOAL = 2000

ACTIVITY_MULTIPLIERS = {
    "sedentary": 1.2,
    "lightly_active": 1.375,
    "very_active": 1.725,
}
DEFAULT_ACTIVITY_MULTIPLIER = 1.375

GOAL_ADJUSTMENTS = {
    "lose_weight": -500,
    "build_muscle": 300,
    "maintain": 0,
}

# Sex constant of the equation; 'other' uses the midpoint of the two
_GENDER_OFFSETS = {
    "male": 5,
    "female": -161,
}
_OTHER_OFFSET = -78


def calculate_bmr(age: int, gender: Optional[str], height_cm: float, weight_kg: float) -> float:
    offset = _GENDER_OFFSETS.get(gender or "", _OTHER_OFFSET)
    return 10 * weight_kg + 6.25 * height_cm - 5 * age + offset


def calculate_calorie_goal(
    age: int,
    gender: Optional[str],
    height_cm: float,
    weight_kg: float,
    activity_level: Optional[str],
    fitness_goal: Optional[str],
) -> int:
    bmr = calculate_bmr(age, gender, height_cm, weight_kg)
    tdee = bmr * ACTIVITY_MULTIPLIERS.get(activity_level or "", DEFAULT_ACTIVITY_MULTIPLIER)
    return int(math.floor(tdee + GOAL_ADJUSTMENTS.get(fitness_goal or "", 0) + 0.5))


def recalculate_for_user(user: User) -> Optional[int]:
    """
    Recompute user.daily_calorie_goal in place when every input is present.

    Returns the new goal, or None if the profile is incomplete (goal untouched).
    """
    required = (user.age, user.gender, user.height_cm, user.weight_kg, user.activity_level, user.fitness_goal)
    if any(v is None for v in required):
        return None

    goal = calculate_calorie_goal(
        age=user.age,
        gender=user.gender,
        height_cm=user.height_cm,
        weight_kg=user.weight_kg,
        activity_level=user.activity_level,
        fitness_goal=user.fitness_goal,
    )
    user.daily_calorie_goal = goal
    return goal
