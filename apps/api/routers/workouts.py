"""
Workout API Router

- AI plan generation (Gemini)
- Latest plan with today's per-exercise completion
- Set logging, sessions, streak, per-exercise progress
"""
from typing import Any, Optional
from uuid import UUID
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from core.auth import get_current_user
from core.clock import Clock, get_clock
from core.database import get_db
from core.exceptions import APIException, LLMUnavailableError, PlanGenerationError, ServiceUnavailableError
from models import User
from schemas import (
    StreakResponse,
    WorkoutPlanResponse,
    WorkoutSessionComplete,
    WorkoutSessionResponse,
    WorkoutSessionStart,
    WorkoutSetCreate,
    WorkoutSetResponse,
)
from services import workout_tracking
from services.llm_client import get_gemini_client
from services.streaks import get_workout_streak
from services.workout_plan_generator import generate_workout_plan

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/workouts", tags=["workouts"])


@router.post("/plans/generate", response_model=WorkoutPlanResponse, status_code=status.HTTP_201_CREATED)
def generate_plan(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    gemini_client: Any = Depends(get_gemini_client),
):
    """
    Generate a personalized home workout plan from the user's profile.

    503 when generation is unavailable, 502 when the model output fails
    validation. Nothing is stored in either case.
    """
    try:
        plan = generate_workout_plan(db, current_user, gemini_client)
    except LLMUnavailableError as e:
        raise ServiceUnavailableError(f"Workout generation unavailable: {e}")
    except PlanGenerationError as e:
        raise APIException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e), error_code="PLAN_GENERATION_FAILED")

    db.commit()
    return workout_tracking.serialize_plan(plan)


@router.get("/plans/latest", response_model=Optional[WorkoutPlanResponse])
def latest_plan(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Most recent plan with today's completed sets; null if none generated yet."""
    return workout_tracking.get_latest_workout_plan(db, current_user.id, clock.today())


@router.post("/sets", response_model=WorkoutSetResponse, status_code=status.HTTP_201_CREATED)
def log_set(
    payload: WorkoutSetCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    log = workout_tracking.log_workout_set(
        db,
        current_user.id,
        workout_plan_id=payload.workout_plan_id,
        exercise_id=payload.exercise_id,
        set_number=payload.set_number,
        reps_completed=payload.reps_completed,
        weight_used=payload.weight_used,
        now=clock.now(),
    )
    db.commit()
    return log


@router.post("/sessions", response_model=WorkoutSessionResponse, status_code=status.HTTP_201_CREATED)
def start_session(
    payload: WorkoutSessionStart,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    session = workout_tracking.start_workout_session(db, current_user.id, payload.workout_plan_id, clock.now())
    db.commit()
    return session


@router.post("/sessions/{session_id}/complete", response_model=WorkoutSessionResponse)
def complete_session(
    session_id: UUID,
    payload: WorkoutSessionComplete,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    session = workout_tracking.complete_workout_session(
        db, current_user.id, session_id, payload.total_volume_kg, clock.now()
    )
    db.commit()
    return session


@router.get("/streak", response_model=StreakResponse)
def workout_streak(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Consecutive-day streak over completed sessions, anchored at today."""
    return get_workout_streak(db, current_user.id, clock.today()).to_dict()


@router.get("/exercises/{exercise_id}/progress")
def exercise_progress(
    exercise_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return workout_tracking.get_exercise_progress(db, current_user.id, exercise_id)
