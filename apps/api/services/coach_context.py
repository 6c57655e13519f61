"""
Coach Context Service

Builds the short-term behavioral snapshot the AI coach reasons over:
meals and activities from the trailing window (48h by default), their
totals, and a human-readable summary. Recomputed on every request.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Dict, List, Optional
from uuid import UUID
import logging

from sqlalchemy.orm import Session

from models import ActivityCompletion, Meal
from services.proactive_messages import (
    DEFAULT_PROTEIN_THRESHOLD_G,
    ProactiveMessage,
    select_proactive_message,
)

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_HOURS = 48


@dataclass
class RecentMeal:
    id: str
    meal_type: str
    description: str
    calories: float
    protein_grams: float
    carbs_grams: float
    fats_grams: float
    date: date
    analysis_method: Optional[str]
    created_at: datetime
    time_ago: str


@dataclass
class RecentActivity:
    id: str
    activity_type: str
    duration_minutes: int
    intensity: int
    calories_burned: int
    date: date
    completed_at: datetime
    time_ago: str


@dataclass
class CoachContext:
    meals: List[RecentMeal] = field(default_factory=list)
    activities: List[RecentActivity] = field(default_factory=list)
    total_calories_in: float = 0
    total_calories_out: float = 0
    total_protein: float = 0
    meal_count: int = 0
    workout_count: int = 0
    summary: str = ""


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _fmt_number(value: float) -> str:
    value = round(float(value), 1)
    return str(int(value)) if value.is_integer() else str(value)


def time_ago(then: datetime, now: datetime) -> str:
    """'45m ago', '5h ago', '2d ago'."""
    seconds = (now - _as_utc(then)).total_seconds()
    minutes = int(seconds // 60)
    hours = int(seconds // 3600)
    if hours < 1:
        return f"{minutes}m ago"
    if hours < 24:
        return f"{hours}h ago"
    return f"{hours // 24}d ago"


def window_start_date(now: datetime, window_hours: int) -> date:
    return (now - timedelta(hours=window_hours)).date()


def fetch_recent_meals(
    db: Session,
    user_id: UUID,
    now: datetime,
    window_hours: int = DEFAULT_WINDOW_HOURS,
) -> List[RecentMeal]:
    """Meals dated on or after the window start, newest first."""
    rows = (
        db.query(Meal)
        .filter(Meal.user_id == user_id, Meal.date >= window_start_date(now, window_hours))
        .order_by(Meal.created_at.desc())
        .all()
    )
    return [
        RecentMeal(
            id=str(m.id),
            meal_type=m.meal_type,
            description=m.description,
            calories=m.calories or 0,
            protein_grams=m.protein_grams or 0,
            carbs_grams=m.carbs_grams or 0,
            fats_grams=m.fats_grams or 0,
            date=m.date,
            analysis_method=m.analysis_method,
            created_at=_as_utc(m.created_at),
            time_ago=time_ago(m.created_at, now),
        )
        for m in rows
    ]


def fetch_recent_activities(
    db: Session,
    user_id: UUID,
    now: datetime,
    window_hours: int = DEFAULT_WINDOW_HOURS,
) -> List[RecentActivity]:
    """Activities dated on or after the window start, newest first."""
    rows = (
        db.query(ActivityCompletion)
        .filter(
            ActivityCompletion.user_id == user_id,
            ActivityCompletion.date >= window_start_date(now, window_hours),
        )
        .order_by(ActivityCompletion.completed_at.desc())
        .all()
    )
    return [
        RecentActivity(
            id=str(a.id),
            activity_type=a.activity_type,
            duration_minutes=a.duration_minutes,
            intensity=a.intensity,
            calories_burned=a.calories_burned or 0,
            date=a.date,
            completed_at=_as_utc(a.completed_at),
            time_ago=time_ago(a.completed_at, now),
        )
        for a in rows
    ]


def build_summary(
    meals: List[RecentMeal],
    activities: List[RecentActivity],
    total_in: float,
    total_out: float,
    total_protein: float,
    window_hours: int = DEFAULT_WINDOW_HOURS,
) -> str:
    if not meals and not activities:
        return f"No meals or workouts logged in the last {window_hours} hours."

    parts: List[str] = []

    if meals:
        plural = "s" if len(meals) > 1 else ""
        parts.append(
            f"{len(meals)} meal{plural} logged "
            f"({_fmt_number(total_in)} cal, {_fmt_number(total_protein)}g protein)"
        )

        by_type: Dict[str, int] = {}
        for m in meals:
            by_type[m.meal_type] = by_type.get(m.meal_type, 0) + 1
        breakdown = ", ".join(
            f"{count} {meal_type}{'s' if count > 1 else ''}" for meal_type, count in by_type.items()
        )
        parts.append(f"  - {breakdown}")

        latest = meals[0]
        parts.append(f"  - Latest: {latest.meal_type} - {latest.description} ({latest.time_ago})")

    if activities:
        plural = "s" if len(activities) > 1 else ""
        parts.append(
            f"{len(activities)} workout{plural} completed ({_fmt_number(total_out)} cal burned)"
        )
        latest = activities[0]
        parts.append(
            f"  - Latest: {latest.activity_type} for {latest.duration_minutes}min ({latest.time_ago})"
        )

    balance = total_in - total_out
    sign = "+" if balance > 0 else ""
    parts.append(f"Net energy balance: {sign}{_fmt_number(balance)} cal")

    return "\n".join(parts)


def get_coach_context(
    db: Session,
    user_id: UUID,
    now: datetime,
    window_hours: int = DEFAULT_WINDOW_HOURS,
) -> CoachContext:
    meals = fetch_recent_meals(db, user_id, now, window_hours)
    activities = fetch_recent_activities(db, user_id, now, window_hours)

    total_in = sum(m.calories for m in meals)
    total_out = sum(a.calories_burned for a in activities)
    total_protein = sum(m.protein_grams for m in meals)

    return CoachContext(
        meals=meals,
        activities=activities,
        total_calories_in=total_in,
        total_calories_out=total_out,
        total_protein=total_protein,
        meal_count=len(meals),
        workout_count=len(activities),
        summary=build_summary(meals, activities, total_in, total_out, total_protein, window_hours),
    )


def generate_proactive_message(
    db: Session,
    user_id: UUID,
    now: datetime,
    local_hour: Optional[int] = None,
    window_hours: int = DEFAULT_WINDOW_HOURS,
    protein_threshold_g: float = DEFAULT_PROTEIN_THRESHOLD_G,
) -> Optional[ProactiveMessage]:
    """
    Select a nudge from a fresh context.

    `local_hour` lets the client supply its own wall-clock hour; the UTC hour
    of `now` is used otherwise. "Today" is always the UTC date of `now`.
    """
    context = get_coach_context(db, user_id, now, window_hours)
    today = now.date()
    todays_meals = [m for m in context.meals if m.date == today]
    hour = now.hour if local_hour is None else local_hour

    return select_proactive_message(
        hour=hour,
        todays_meal_types=[m.meal_type for m in todays_meals],
        todays_protein_g=sum(m.protein_grams for m in todays_meals),
        recent_workout_count=context.workout_count,
        protein_threshold_g=protein_threshold_g,
    )
