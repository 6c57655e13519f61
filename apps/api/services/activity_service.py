"""
Activity Service

Logged activities (runs, rides, yoga...) and the calorie-burn rollups built
on them: today's total and the trailing 7-day summary.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional
from uuid import UUID
import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from core.exceptions import NotFoundError
from models import ActivityCompletion
from services.calorie_calculator import calculate_calories

logger = logging.getLogger(__name__)

WEEK_DAYS = 7


@dataclass
class WeeklySummary:
    total_calories: int = 0
    best_day: Optional[Dict[str, Any]] = None
    daily_totals: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_calories": self.total_calories,
            "best_day": self.best_day,
            "daily_totals": self.daily_totals,
        }


def log_activity(
    db: Session,
    user_id: UUID,
    activity_type: str,
    duration_minutes: int,
    intensity: int,
    now: datetime,
    calories_burned: Optional[int] = None,
) -> ActivityCompletion:
    """Persist an activity; calories are estimated when not supplied."""
    if calories_burned is None:
        calories_burned = calculate_calories(activity_type, duration_minutes, intensity)

    activity = ActivityCompletion(
        user_id=user_id,
        activity_type=activity_type,
        duration_minutes=duration_minutes,
        intensity=intensity,
        calories_burned=calories_burned,
        date=now.date(),
        completed_at=now,
    )
    db.add(activity)
    db.flush()
    logger.info(f"Logged {activity_type} ({duration_minutes}min, {calories_burned} cal) for user {user_id}")
    return activity


def get_activities_in_range(db: Session, user_id: UUID, start: date, end: date) -> List[ActivityCompletion]:
    """Inclusive on both ends, newest first."""
    return (
        db.query(ActivityCompletion)
        .filter(
            ActivityCompletion.user_id == user_id,
            ActivityCompletion.date >= start,
            ActivityCompletion.date <= end,
        )
        .order_by(ActivityCompletion.completed_at.desc())
        .all()
    )


def get_activities_for_day(db: Session, user_id: UUID, day: date) -> List[ActivityCompletion]:
    return get_activities_in_range(db, user_id, day, day)


def get_calories_burned_for_day(db: Session, user_id: UUID, day: date) -> int:
    total = (
        db.query(func.coalesce(func.sum(ActivityCompletion.calories_burned), 0))
        .filter(ActivityCompletion.user_id == user_id, ActivityCompletion.date == day)
        .scalar()
    )
    return int(total or 0)


def delete_activity(db: Session, user_id: UUID, activity_id: UUID) -> None:
    activity = (
        db.query(ActivityCompletion)
        .filter(ActivityCompletion.id == activity_id, ActivityCompletion.user_id == user_id)
        .first()
    )
    if not activity:
        raise NotFoundError("Activity", str(activity_id))
    db.delete(activity)
    db.flush()


def get_weekly_summary(db: Session, user_id: UUID, today: date) -> WeeklySummary:
    """
    Calories burned per day for the 7 days ending today (oldest first).

    best_day is the first day with the highest non-zero total, None if the
    whole week is empty.
    """
    days = [today - timedelta(days=WEEK_DAYS - 1 - i) for i in range(WEEK_DAYS)]
    activities = get_activities_in_range(db, user_id, days[0], today)

    per_day: Dict[date, int] = {d: 0 for d in days}
    for a in activities:
        per_day[a.date] = per_day.get(a.date, 0) + (a.calories_burned or 0)

    daily_totals = [{"date": d.isoformat(), "calories": per_day[d]} for d in days]

    best_day = None
    for day in daily_totals:
        if day["calories"] == 0:
            continue
        if best_day is None or day["calories"] > best_day["calories"]:
            best_day = day

    return WeeklySummary(
        total_calories=sum(d["calories"] for d in daily_totals),
        best_day=best_day,
        daily_totals=daily_totals,
    )
