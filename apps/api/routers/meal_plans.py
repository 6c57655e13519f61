"""
Meal plan API: generation, latest plan with completion flags, per-meal
completion and daily progress.
"""
from typing import Any, Dict, Optional
from uuid import UUID
import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from core.auth import get_current_user
from core.clock import Clock, get_clock
from core.database import get_db
from core.exceptions import APIException, LLMUnavailableError, PlanGenerationError, ServiceUnavailableError
from models import User
from schemas import DailyProgressResponse, MealCompletionRequest, MealCompletionResponse
from services import meal_plan_generator
from services.llm_client import get_gemini_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/meal-plans", tags=["meal-plans"])


@router.post("/generate", status_code=status.HTTP_201_CREATED)
def generate_plan(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    gemini_client: Any = Depends(get_gemini_client),
) -> Dict[str, Any]:
    try:
        plan = meal_plan_generator.generate_meal_plan(db, current_user, gemini_client)
    except LLMUnavailableError as e:
        raise ServiceUnavailableError(f"Meal plan generation unavailable: {e}")
    except PlanGenerationError as e:
        raise APIException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e), error_code="PLAN_GENERATION_FAILED")

    db.commit()
    return meal_plan_generator.serialize_meal_plan(plan)


@router.get("/latest")
def latest_plan(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Optional[Dict[str, Any]]:
    return meal_plan_generator.get_latest_meal_plan(db, current_user.id)


@router.post("/{meal_plan_id}/completions", response_model=MealCompletionResponse)
def mark_completed(
    meal_plan_id: UUID,
    payload: MealCompletionRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Idempotent: marking an already-completed meal returns the existing record."""
    completion = meal_plan_generator.mark_meal_completed(
        db, current_user.id, meal_plan_id, payload.day_number, payload.meal_type, clock.now()
    )
    db.commit()
    return completion


@router.delete("/{meal_plan_id}/completions", status_code=status.HTTP_204_NO_CONTENT)
def unmark_completed(
    meal_plan_id: UUID,
    day_number: int = Query(..., ge=1, le=3),
    meal_type: str = Query(...),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    meal_plan_generator.unmark_meal_completed(db, current_user.id, meal_plan_id, day_number, meal_type)
    db.commit()


@router.get("/{meal_plan_id}/days/{day_number}/progress", response_model=DailyProgressResponse)
def daily_progress(
    meal_plan_id: UUID,
    day_number: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return meal_plan_generator.get_daily_progress(db, current_user.id, meal_plan_id, day_number)
