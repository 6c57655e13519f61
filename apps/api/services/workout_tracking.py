"""
Workout Tracking Service

Reads and writes around a generated plan: today's set completion per
exercise, set logging, session start/complete and per-exercise history.
All queries are scoped to the caller's user_id.
"""

from collections import OrderedDict
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID
import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from core.exceptions import NotFoundError
from models import WorkoutExercise, WorkoutPlan, WorkoutSession, WorkoutSetLog

logger = logging.getLogger(__name__)


def _get_owned_plan(db: Session, user_id: UUID, plan_id: UUID) -> WorkoutPlan:
    plan = (
        db.query(WorkoutPlan)
        .filter(WorkoutPlan.id == plan_id, WorkoutPlan.user_id == user_id)
        .first()
    )
    if not plan:
        raise NotFoundError("Workout plan", str(plan_id))
    return plan


def completed_sets_for_day(db: Session, user_id: UUID, plan_id: UUID, day: date) -> Dict[UUID, int]:
    """Highest set number logged per exercise on `day`."""
    rows = (
        db.query(WorkoutSetLog.exercise_id, func.max(WorkoutSetLog.set_number))
        .filter(
            WorkoutSetLog.user_id == user_id,
            WorkoutSetLog.workout_plan_id == plan_id,
            WorkoutSetLog.date == day,
        )
        .group_by(WorkoutSetLog.exercise_id)
        .all()
    )
    return {exercise_id: max_set for exercise_id, max_set in rows}


def serialize_exercise(ex: WorkoutExercise, completed_sets: int = 0) -> Dict[str, Any]:
    return {
        "id": str(ex.id),
        "workout_plan_id": str(ex.workout_plan_id),
        "exercise_name": ex.exercise_name,
        "exercise_description": ex.exercise_description,
        "target_sets": ex.target_sets,
        "target_reps": ex.target_reps,
        "rest_seconds": ex.rest_seconds,
        "equipment_needed": list(ex.equipment_needed or []),
        "muscle_groups": list(ex.muscle_groups or []),
        "exercise_order": ex.exercise_order,
        "image_url": ex.image_url,
        "created_at": ex.created_at,
        "completed_sets": completed_sets,
        "is_completed": completed_sets >= ex.target_sets,
    }


def serialize_plan(plan: WorkoutPlan, completed: Optional[Dict[UUID, int]] = None) -> Dict[str, Any]:
    completed = completed or {}
    exercises = sorted(plan.exercises, key=lambda e: e.exercise_order)
    return {
        "id": str(plan.id),
        "user_id": str(plan.user_id),
        "plan_name": plan.plan_name,
        "plan_description": plan.plan_description,
        "fitness_goal": plan.fitness_goal,
        "difficulty_level": plan.difficulty_level,
        "exercises": [serialize_exercise(ex, completed.get(ex.id, 0)) for ex in exercises],
        "created_at": plan.created_at,
        "metadata": plan.plan_metadata,
    }


def get_latest_workout_plan(db: Session, user_id: UUID, today: date) -> Optional[Dict[str, Any]]:
    """Most recent plan with today's completion state, or None."""
    plan = (
        db.query(WorkoutPlan)
        .filter(WorkoutPlan.user_id == user_id)
        .order_by(WorkoutPlan.created_at.desc())
        .first()
    )
    if not plan:
        return None

    completed = completed_sets_for_day(db, user_id, plan.id, today)
    return serialize_plan(plan, completed)


def log_workout_set(
    db: Session,
    user_id: UUID,
    workout_plan_id: UUID,
    exercise_id: UUID,
    set_number: int,
    reps_completed: int,
    now: datetime,
    weight_used: Optional[float] = None,
) -> WorkoutSetLog:
    _get_owned_plan(db, user_id, workout_plan_id)
    exercise = (
        db.query(WorkoutExercise)
        .filter(WorkoutExercise.id == exercise_id, WorkoutExercise.workout_plan_id == workout_plan_id)
        .first()
    )
    if not exercise:
        raise NotFoundError("Exercise", str(exercise_id))

    log = WorkoutSetLog(
        user_id=user_id,
        workout_plan_id=workout_plan_id,
        exercise_id=exercise_id,
        set_number=set_number,
        reps_completed=reps_completed,
        weight_used=weight_used,
        completed_at=now,
        date=now.date(),
    )
    db.add(log)
    db.flush()
    return log


def start_workout_session(db: Session, user_id: UUID, workout_plan_id: UUID, now: datetime) -> WorkoutSession:
    _get_owned_plan(db, user_id, workout_plan_id)
    session = WorkoutSession(
        user_id=user_id,
        workout_plan_id=workout_plan_id,
        started_at=now,
        date=now.date(),
    )
    db.add(session)
    db.flush()
    logger.info(f"Workout session {session.id} started for user {user_id}")
    return session


def complete_workout_session(
    db: Session,
    user_id: UUID,
    session_id: UUID,
    total_volume_kg: float,
    now: datetime,
) -> WorkoutSession:
    session = (
        db.query(WorkoutSession)
        .filter(WorkoutSession.id == session_id, WorkoutSession.user_id == user_id)
        .first()
    )
    if not session:
        raise NotFoundError("Workout session", str(session_id))

    started_at = session.started_at
    if started_at.tzinfo is None:
        started_at = started_at.replace(tzinfo=timezone.utc)

    session.completed_at = now
    session.total_volume_kg = total_volume_kg
    session.total_duration_minutes = round(max(0.0, (now - started_at).total_seconds() / 60), 1)
    db.flush()
    return session


def get_exercise_progress(db: Session, user_id: UUID, exercise_id: UUID) -> Dict[str, Any]:
    """Per-date set history for one exercise, oldest first."""
    exercise = (
        db.query(WorkoutExercise)
        .join(WorkoutPlan, WorkoutPlan.id == WorkoutExercise.workout_plan_id)
        .filter(WorkoutExercise.id == exercise_id, WorkoutPlan.user_id == user_id)
        .first()
    )
    if not exercise:
        raise NotFoundError("Exercise", str(exercise_id))

    logs = (
        db.query(WorkoutSetLog)
        .filter(WorkoutSetLog.user_id == user_id, WorkoutSetLog.exercise_id == exercise_id)
        .order_by(WorkoutSetLog.date.asc(), WorkoutSetLog.set_number.asc())
        .all()
    )

    by_date: "OrderedDict[date, List[WorkoutSetLog]]" = OrderedDict()
    for log in logs:
        by_date.setdefault(log.date, []).append(log)

    history = []
    for day, sets in by_date.items():
        history.append({
            "date": day.isoformat(),
            "sets": [
                {
                    "id": str(s.id),
                    "set_number": s.set_number,
                    "reps_completed": s.reps_completed,
                    "weight_used": s.weight_used,
                    "completed_at": s.completed_at,
                }
                for s in sets
            ],
            "total_volume": sum(s.reps_completed * (s.weight_used or 0) for s in sets),
            "max_weight": max((s.weight_used or 0) for s in sets),
        })

    return {
        "exercise_id": str(exercise.id),
        "exercise_name": exercise.exercise_name,
        "history": history,
    }
