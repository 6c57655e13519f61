"""
Workout Streak Service

Daily streaks over completed workout sessions.

Policy: the current streak is same-day inclusive. Counting starts at today
and walks backwards one calendar day at a time, so a user whose last session
was yesterday has a current streak of 0 until today's session is logged.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Iterable, List, Union
from uuid import UUID
import logging

from sqlalchemy.orm import Session

from models import WorkoutSession

logger = logging.getLogger(__name__)

DateLike = Union[date, str]


class InvalidDateFormat(ValueError):
    """A session date was not a YYYY-MM-DD calendar date."""


@dataclass
class StreakInfo:
    """Derived streak record (never persisted)."""
    current_streak: int = 0
    longest_streak: int = 0
    last_workout_date: str = ""  # YYYY-MM-DD, "" when there are no sessions
    total_workouts: int = 0  # raw session count, not unique days
    workout_dates: List[str] = field(default_factory=list)  # unique, most recent first

    def to_dict(self) -> dict:
        return {
            "current_streak": self.current_streak,
            "longest_streak": self.longest_streak,
            "last_workout_date": self.last_workout_date,
            "total_workouts": self.total_workouts,
            "workout_dates": list(self.workout_dates),
        }


def parse_session_date(value: DateLike) -> date:
    """Normalize a session date to a calendar date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            raise InvalidDateFormat(f"Invalid session date: {value!r}")
    raise InvalidDateFormat(f"Invalid session date: {value!r}")


def calculate_streak(session_dates: Iterable[DateLike], today: date) -> StreakInfo:
    """
    Calculate current and longest daily streaks.

    Args:
        session_dates: one entry per completed session, any order, duplicates allowed
        today: the caller's calendar date (UTC)

    Raises:
        InvalidDateFormat: if any entry is not a parseable calendar date
    """
    raw = [parse_session_date(d) for d in session_dates]
    unique_dates = sorted(set(raw), reverse=True)

    if not unique_dates:
        return StreakInfo()

    current_streak = 0
    check_date = today
    for d in unique_dates:
        if d != check_date:
            break
        current_streak += 1
        check_date = check_date - timedelta(days=1)

    longest_streak = 0
    run = 1
    for newer, older in zip(unique_dates, unique_dates[1:]):
        if (newer - older).days == 1:
            run += 1
        else:
            longest_streak = max(longest_streak, run)
            run = 1
    longest_streak = max(longest_streak, run)

    return StreakInfo(
        current_streak=current_streak,
        longest_streak=longest_streak,
        last_workout_date=unique_dates[0].isoformat(),
        total_workouts=len(raw),
        workout_dates=[d.isoformat() for d in unique_dates],
    )


def fetch_completed_session_dates(db: Session, user_id: UUID) -> List[date]:
    """Dates of every completed session for the user, most recent first."""
    rows = (
        db.query(WorkoutSession.date)
        .filter(
            WorkoutSession.user_id == user_id,
            WorkoutSession.completed_at.isnot(None),
        )
        .order_by(WorkoutSession.date.desc())
        .all()
    )
    return [row[0] for row in rows]


def get_workout_streak(db: Session, user_id: UUID, today: date) -> StreakInfo:
    dates = fetch_completed_session_dates(db, user_id)
    streak = calculate_streak(dates, today)
    logger.debug(
        "Streak for %s: current=%d longest=%d sessions=%d",
        user_id, streak.current_streak, streak.longest_streak, streak.total_workouts,
    )
    return streak
