"""
Meal logging & nutrition API.

Manual entry is always available; text and photo parsing (OpenAI) are
optional helpers on top of it.
"""
from datetime import date
from typing import Any, Callable, List, Optional
from uuid import UUID
import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from core.auth import get_current_user
from core.clock import Clock, get_clock
from core.config import settings
from core.database import get_db
from core.exceptions import APIException, LLMUnavailableError, ServiceUnavailableError, ValidationError
from models import User
from schemas import (
    DailyNutritionResponse,
    EnergyBalanceResponse,
    MealCreate,
    MealFromImageRequest,
    MealFromTextRequest,
    MealImageParseRequest,
    MealParseRequest,
    MealParseResponse,
    MealResponse,
)
from services import meal_service, nutrition_parser

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/meals", tags=["meals"])


@router.post("", response_model=MealResponse, status_code=status.HTTP_201_CREATED)
def log_meal(
    payload: MealCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    meal = meal_service.log_meal(
        db,
        current_user.id,
        meal_type=payload.meal_type,
        description=payload.description,
        calories=payload.calories,
        protein_grams=payload.protein_grams,
        carbs_grams=payload.carbs_grams,
        fats_grams=payload.fats_grams,
        meal_date=payload.meal_date,
        analysis_method=payload.analysis_method,
        now=clock.now(),
    )
    db.commit()
    return meal


@router.get("", response_model=List[MealResponse])
def list_meals(
    day: Optional[date] = Query(None, alias="date"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    return meal_service.get_meals_for_day(db, current_user.id, day or clock.today())


@router.get("/summary", response_model=DailyNutritionResponse)
def daily_summary(
    day: Optional[date] = Query(None, alias="date"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    summary = meal_service.get_daily_nutrition_summary(db, current_user.id, day or clock.today())
    return DailyNutritionResponse.model_validate(summary)


@router.get("/energy-balance", response_model=EnergyBalanceResponse)
def energy_balance(
    day: Optional[date] = Query(None, alias="date"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    return meal_service.get_energy_balance(db, current_user.id, day or clock.today()).to_dict()


@router.get("/parse/available")
def meal_parse_available():
    """
    Capability check for natural-language meal parsing.

    No auth required: the client uses this to decide whether to show the text input.
    """
    return {"available": bool(settings.OPENAI_API_KEY)}


def _estimate_or_raise(parse: Callable[[], dict]) -> dict:
    try:
        return parse()
    except LLMUnavailableError as e:
        raise ServiceUnavailableError(f"Meal parsing unavailable: {e}")
    except ValueError as e:
        raise APIException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Could not read nutrition estimate: {e}",
            error_code="NUTRITION_PARSE_FAILED",
        )


def _parse_text(text: str, client: Any) -> dict:
    text = (text or "").strip()
    if not text:
        raise ValidationError("text is required", field="text")
    return _estimate_or_raise(lambda: nutrition_parser.parse_nutrition_text(text, client))


def _parse_image(image_url: str, client: Any, fallback_description: str = "Meal photo") -> dict:
    image_url = (image_url or "").strip()
    if not image_url.startswith(nutrition_parser.IMAGE_URL_PREFIXES):
        raise ValidationError("image_url must be a data:image/ URL or an http(s) link", field="image_url")
    return _estimate_or_raise(
        lambda: nutrition_parser.parse_nutrition_image(image_url, client, fallback_description)
    )


def _log_estimate(
    db: Session,
    user: User,
    parsed: dict,
    meal_type: str,
    meal_date: Optional[date],
    analysis_method: str,
    clock: Clock,
):
    return meal_service.log_meal(
        db,
        user.id,
        meal_type=meal_type,
        description=parsed["description"],
        calories=parsed["calories"] or 0,
        protein_grams=parsed["protein_grams"] or 0,
        carbs_grams=parsed["carbs_grams"] or 0,
        fats_grams=parsed["fats_grams"] or 0,
        meal_date=meal_date,
        analysis_method=analysis_method,
        now=clock.now(),
    )


@router.post("/parse", response_model=MealParseResponse)
def parse_meal(
    payload: MealParseRequest,
    current_user: User = Depends(get_current_user),
    openai_client: Any = Depends(nutrition_parser.get_openai_client),
):
    """Estimate macros for a meal description without saving anything."""
    return _parse_text(payload.text, openai_client)


@router.post("/parse-image", response_model=MealParseResponse)
def parse_meal_image(
    payload: MealImageParseRequest,
    current_user: User = Depends(get_current_user),
    openai_client: Any = Depends(nutrition_parser.get_openai_client),
):
    """Estimate macros from a meal photo without saving anything."""
    return _parse_image(payload.image_url, openai_client)


@router.post("/from-text", response_model=MealResponse, status_code=status.HTTP_201_CREATED)
def log_meal_from_text(
    payload: MealFromTextRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    openai_client: Any = Depends(nutrition_parser.get_openai_client),
):
    """Parse a meal description and log it (analysis_method='text')."""
    parsed = _parse_text(payload.text, openai_client)
    meal = _log_estimate(db, current_user, parsed, payload.meal_type, payload.meal_date, "text", clock)
    db.commit()
    return meal


@router.post("/from-image", response_model=MealResponse, status_code=status.HTTP_201_CREATED)
def log_meal_from_image(
    payload: MealFromImageRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    openai_client: Any = Depends(nutrition_parser.get_openai_client),
):
    """Analyse a meal photo and log it (analysis_method='vision')."""
    parsed = _parse_image(payload.image_url, openai_client, f"Photo of {payload.meal_type.lower()}")
    meal = _log_estimate(db, current_user, parsed, payload.meal_type, payload.meal_date, "vision", clock)
    db.commit()
    return meal


@router.delete("/{meal_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_meal(
    meal_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    meal_service.delete_meal(db, current_user.id, meal_id)
    db.commit()
