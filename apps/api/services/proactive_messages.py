"""
Proactive Coach Messages

Picks at most one unsolicited nudge from an ordered rule list. First match
wins; nothing is remembered between calls, so the same snapshot and hour
always give the same answer.

    1. breakfast  hour in [8, 12)  and no Breakfast logged today
    2. lunch      hour in [12, 16) and no Lunch logged today
    3. dinner     hour in [18, 22) and no Dinner logged today
    4. protein    any meal logged today and today's protein < 50 g
    5. workout    no workout in the trailing window and hour in [9, 20)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

DEFAULT_PROTEIN_THRESHOLD_G = 50.0


class NudgeRule(str, Enum):
    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    PROTEIN = "protein"
    WORKOUT = "workout"


@dataclass(frozen=True)
class ProactiveMessage:
    rule: NudgeRule
    message: str


BREAKFAST_MESSAGE = (
    "Good morning! I noticed you haven't logged breakfast yet. "
    "Want to start your day with some fuel? 🍳"
)
LUNCH_MESSAGE = (
    "Hey! Lunch time has passed and I don't see any logs. "
    "How are we doing on your protein goal today? 🥗"
)
DINNER_MESSAGE = (
    "Evening check-in! Haven't seen dinner logged yet. What's on the menu tonight? 🍽️"
)
PROTEIN_MESSAGE = (
    "I see you've logged some meals today, but your protein is at {protein}g. "
    "Want some budget-friendly tips to boost it? 💪"
)
WORKOUT_MESSAGE = (
    "I notice you haven't logged a workout in the last 2 days. "
    "Feeling ready for a quick home session? 🏋️"
)


def _format_grams(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:.1f}"


def select_proactive_message(
    hour: int,
    todays_meal_types: Iterable[str],
    todays_protein_g: float,
    recent_workout_count: int,
    protein_threshold_g: float = DEFAULT_PROTEIN_THRESHOLD_G,
) -> Optional[ProactiveMessage]:
    """
    Args:
        hour: local hour of day, 0-23
        todays_meal_types: meal type label of every meal logged today
        todays_protein_g: protein summed over today's meals
        recent_workout_count: activities logged in the trailing coach window
    """
    meal_types = list(todays_meal_types)
    logged = set(meal_types)

    if 8 <= hour < 12 and "Breakfast" not in logged:
        return ProactiveMessage(NudgeRule.BREAKFAST, BREAKFAST_MESSAGE)

    if 12 <= hour < 16 and "Lunch" not in logged:
        return ProactiveMessage(NudgeRule.LUNCH, LUNCH_MESSAGE)

    if 18 <= hour < 22 and "Dinner" not in logged:
        return ProactiveMessage(NudgeRule.DINNER, DINNER_MESSAGE)

    if meal_types and todays_protein_g < protein_threshold_g:
        return ProactiveMessage(
            NudgeRule.PROTEIN,
            PROTEIN_MESSAGE.format(protein=_format_grams(todays_protein_g)),
        )

    if recent_workout_count == 0 and 9 <= hour < 20:
        return ProactiveMessage(NudgeRule.WORKOUT, WORKOUT_MESSAGE)

    return None
