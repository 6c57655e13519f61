"""
Meal Plan Generator

3-day x 4-meal plan (breakfast, lunch, dinner, snacks) generated by Gemini
from the user's profile. Financial status drives the ingredient tier.

The plan is validated against a strict schema and stored as one document
(MealPlan.days). Per-meal completion lives in meal_completion, one row per
(plan, day, slot), so marking and unmarking are idempotent.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.exceptions import NotFoundError, PlanGenerationError, ValidationError
from models import MealCompletion, MealPlan, User
from services.llm_client import extract_json_object, generate_text

logger = logging.getLogger(__name__)

PLAN_DAYS = 3
MEAL_SLOTS = ("breakfast", "lunch", "dinner", "snacks")


class BudgetCategory(str, Enum):
    BUDGET = "budget"
    MODERATE = "moderate"
    PREMIUM = "premium"


# ---------------------------------------------------------------------------
# Output schema
# ---------------------------------------------------------------------------

class _Strict(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", str_strip_whitespace=True)


class GeneratedIngredients(_Strict):
    pantry: List[str] = Field(default_factory=list)
    to_buy: List[str] = Field(alias="toBuy", default_factory=list)


class GeneratedNutrition(_Strict):
    calories: float = Field(ge=0, le=5000)
    protein: float = Field(ge=0)
    carbs: float = Field(ge=0)
    fats: float = Field(ge=0)


class GeneratedMeal(_Strict):
    name: str = Field(min_length=1, max_length=200)
    description: str = ""
    cooking_time: int = Field(alias="cookingTime", ge=0, le=600)
    budget_category: BudgetCategory = Field(alias="budgetCategory")
    ingredients: GeneratedIngredients
    preparation_steps: List[str] = Field(alias="preparationSteps", min_length=1)
    nutrition: GeneratedNutrition


class GeneratedDay(_Strict):
    breakfast: GeneratedMeal
    lunch: GeneratedMeal
    dinner: GeneratedMeal
    snacks: GeneratedMeal


class GeneratedMealPlan(_Strict):
    day1: GeneratedDay
    day2: GeneratedDay
    day3: GeneratedDay

    def ordered_days(self) -> List[GeneratedDay]:
        return [self.day1, self.day2, self.day3]


@dataclass
class MealPlanParseResult:
    plan: Optional[GeneratedMealPlan] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.plan is not None


def parse_meal_plan(raw_text: str) -> MealPlanParseResult:
    try:
        data = extract_json_object(raw_text)
    except ValueError as e:
        return MealPlanParseResult(error=f"invalid_json: {e}")

    try:
        plan = GeneratedMealPlan.model_validate(data)
    except PydanticValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()[:5]
        )
        return MealPlanParseResult(error=f"schema_violation: {problems}")

    return MealPlanParseResult(plan=plan)


# ---------------------------------------------------------------------------
# Prompt
# ---------------------------------------------------------------------------

def build_meal_plan_prompt(user: User) -> str:
    return f"""You are a professional nutritionist and meal planner. Create a personalized 3-day meal plan based on the following user profile:

Age: {user.age or "Not specified"}
Gender: {user.gender or "Not specified"}
Height: {user.height_cm or "Not specified"}cm
Weight: {user.weight_kg or "Not specified"}kg
Activity Level: {user.activity_level or "Not specified"}
Financial Status: {user.financial_status or "balanced"}
Fitness Goal: {user.fitness_goal or "maintain"}
Daily Calorie Goal: {user.daily_calorie_goal} calories

IMPORTANT: The financial status must heavily influence your meal suggestions:
- budget_conscious: Simple, affordable meals using basic ingredients (rice, beans, eggs, pasta, seasonal vegetables). Snacks should be simple like fruits, nuts, or yogurt.
- balanced: Quality ingredients at reasonable prices (chicken, fish, fresh produce, whole grains). Snacks can include protein bars, smoothies, or cheese.
- premium_gourmet: High-end ingredients and gourmet preparations (organic meats, exotic produce, specialty items). Snacks can include artisanal cheeses, exotic fruits, or premium protein snacks.

Create EXACTLY 12 meals (3 days x 4 meals per day: breakfast, lunch, dinner, snacks).

Return a JSON object with this EXACT structure:
{{
  "day1": {{
    "breakfast": {{
      "name": "Meal Name",
      "description": "Brief description",
      "cookingTime": 15,
      "budgetCategory": "budget|moderate|premium",
      "ingredients": {{
        "pantry": ["item1", "item2"],
        "toBuy": ["item1", "item2"]
      }},
      "preparationSteps": ["step1", "step2", "step3"],
      "nutrition": {{
        "calories": 450,
        "protein": 20,
        "carbs": 50,
        "fats": 15
      }}
    }},
    "lunch": {{ ... same structure ... }},
    "dinner": {{ ... same structure ... }},
    "snacks": {{ ... same structure ... }}
  }},
  "day2": {{ ... same structure ... }},
  "day3": {{ ... same structure ... }}
}}

Ensure:
1. Total daily calories align with the user's goal
2. Budget category matches the financial status
3. Meals are appropriate for the fitness goal (high protein for muscle building, lower calories for weight loss)
4. Cooking times are realistic
5. All fields are present and valid

Return ONLY valid JSON, no extra text."""


# ---------------------------------------------------------------------------
# Document shape
# ---------------------------------------------------------------------------

def _meal_document(slot: str, meal: GeneratedMeal) -> Dict[str, Any]:
    ingredients = [
        {"name": name, "amount": "As needed", "is_pantry": True} for name in meal.ingredients.pantry
    ] + [
        {"name": name, "amount": "As needed", "is_pantry": False} for name in meal.ingredients.to_buy
    ]
    return {
        "type": slot,
        "name": meal.name,
        "description": meal.description,
        "cooking_time": meal.cooking_time,
        "budget_category": meal.budget_category.value,
        "ingredients": ingredients,
        "preparation_steps": list(meal.preparation_steps),
        "calories": meal.nutrition.calories,
        "protein": meal.nutrition.protein,
        "carbs": meal.nutrition.carbs,
        "fats": meal.nutrition.fats,
    }


def build_days_document(plan: GeneratedMealPlan) -> List[Dict[str, Any]]:
    days = []
    for day_number, day in enumerate(plan.ordered_days(), start=1):
        entry: Dict[str, Any] = {"day_number": day_number}
        for slot in MEAL_SLOTS:
            entry[slot] = _meal_document(slot, getattr(day, slot))
        days.append(entry)
    return days


def _profile_snapshot(user: User) -> Dict[str, Any]:
    return {
        "age": user.age or 0,
        "gender": user.gender or "other",
        "activity_level": user.activity_level or "sedentary",
        "financial_status": user.financial_status or "balanced",
        "fitness_goal": user.fitness_goal or "maintain",
    }


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def generate_meal_plan(db: Session, user: User, gemini_client: Any) -> MealPlan:
    """
    Raises:
        LLMUnavailableError: generation not configured or the call failed
        PlanGenerationError: the model output failed validation
    """
    logger.info(f"Generating meal plan for user {user.id}")
    raw_text = generate_text(gemini_client, build_meal_plan_prompt(user))

    result = parse_meal_plan(raw_text)
    if not result.ok:
        logger.warning(f"Meal plan rejected for user {user.id}: {result.error}")
        raise PlanGenerationError(f"Failed to parse meal plan from AI: {result.error}")

    meal_plan = MealPlan(
        user_id=user.id,
        days=build_days_document(result.plan),
        plan_metadata=_profile_snapshot(user),
    )
    db.add(meal_plan)
    db.flush()
    logger.info(f"Meal plan {meal_plan.id} saved")
    return meal_plan


def _get_owned_meal_plan(db: Session, user_id: UUID, meal_plan_id: UUID) -> MealPlan:
    plan = (
        db.query(MealPlan)
        .filter(MealPlan.id == meal_plan_id, MealPlan.user_id == user_id)
        .first()
    )
    if not plan:
        raise NotFoundError("Meal plan", str(meal_plan_id))
    return plan


def _find_day(plan: MealPlan, day_number: int) -> Optional[Dict[str, Any]]:
    for day in plan.days or []:
        if day.get("day_number") == day_number:
            return day
    return None


def _validate_slot(day_number: int, meal_type: str) -> None:
    if not 1 <= day_number <= PLAN_DAYS:
        raise ValidationError(f"day_number must be between 1 and {PLAN_DAYS}", field="day_number")
    if meal_type not in MEAL_SLOTS:
        raise ValidationError(f"meal_type must be one of {', '.join(MEAL_SLOTS)}", field="meal_type")


def _completion_query(db: Session, user_id: UUID, meal_plan_id: UUID):
    return db.query(MealCompletion).filter(
        MealCompletion.user_id == user_id,
        MealCompletion.meal_plan_id == meal_plan_id,
    )


def _find_completion(db: Session, user_id: UUID, meal_plan_id: UUID, day_number: int, meal_type: str):
    return (
        _completion_query(db, user_id, meal_plan_id)
        .filter(MealCompletion.day_number == day_number, MealCompletion.meal_type == meal_type)
        .first()
    )


def serialize_meal_plan(plan: MealPlan, completed_slots: Optional[set] = None) -> Dict[str, Any]:
    completed_slots = completed_slots or set()
    days = []
    for day in plan.days or []:
        entry = {"day_number": day["day_number"]}
        for slot in MEAL_SLOTS:
            meal = dict(day[slot])
            meal["is_completed"] = (day["day_number"], slot) in completed_slots
            entry[slot] = meal
        days.append(entry)
    return {
        "id": str(plan.id),
        "user_id": str(plan.user_id),
        "days": days,
        "created_at": plan.created_at,
        "metadata": plan.plan_metadata,
    }


def get_latest_meal_plan(db: Session, user_id: UUID) -> Optional[Dict[str, Any]]:
    """Most recent plan with is_completed set on every meal, or None."""
    plan = (
        db.query(MealPlan)
        .filter(MealPlan.user_id == user_id)
        .order_by(MealPlan.created_at.desc())
        .first()
    )
    if not plan:
        return None

    completed = {(c.day_number, c.meal_type) for c in _completion_query(db, user_id, plan.id).all()}
    return serialize_meal_plan(plan, completed)


def mark_meal_completed(
    db: Session,
    user_id: UUID,
    meal_plan_id: UUID,
    day_number: int,
    meal_type: str,
    now: datetime,
) -> MealCompletion:
    """Record a planned meal as eaten. Repeated calls return the existing row."""
    _validate_slot(day_number, meal_type)
    plan = _get_owned_meal_plan(db, user_id, meal_plan_id)

    existing = _find_completion(db, user_id, meal_plan_id, day_number, meal_type)
    if existing:
        return existing

    day = _find_day(plan, day_number)
    if day is None:
        raise NotFoundError("Meal plan day", str(day_number))

    completion = MealCompletion(
        user_id=user_id,
        meal_plan_id=meal_plan_id,
        day_number=day_number,
        meal_type=meal_type,
        calories=day[meal_type].get("calories", 0) or 0,
        completed_at=now,
    )
    db.add(completion)
    try:
        db.flush()
    except IntegrityError:
        # A concurrent request marked the same slot first
        db.rollback()
        existing = _find_completion(db, user_id, meal_plan_id, day_number, meal_type)
        if existing is None:
            raise
        return existing
    return completion


def unmark_meal_completed(
    db: Session,
    user_id: UUID,
    meal_plan_id: UUID,
    day_number: int,
    meal_type: str,
) -> None:
    """Remove a completion; a slot that was never marked is left as is."""
    _validate_slot(day_number, meal_type)
    _get_owned_meal_plan(db, user_id, meal_plan_id)
    (
        _completion_query(db, user_id, meal_plan_id)
        .filter(MealCompletion.day_number == day_number, MealCompletion.meal_type == meal_type)
        .delete(synchronize_session=False)
    )
    db.flush()


def get_daily_progress(db: Session, user_id: UUID, meal_plan_id: UUID, day_number: int) -> Dict[str, Any]:
    if not 1 <= day_number <= PLAN_DAYS:
        raise ValidationError(f"day_number must be between 1 and {PLAN_DAYS}", field="day_number")
    plan = _get_owned_meal_plan(db, user_id, meal_plan_id)

    completions = (
        _completion_query(db, user_id, meal_plan_id)
        .filter(MealCompletion.day_number == day_number)
        .all()
    )
    day = _find_day(plan, day_number)
    total_calories = sum(day[slot].get("calories", 0) or 0 for slot in MEAL_SLOTS) if day else 0

    return {
        "day_number": day_number,
        "completed": len(completions),
        "total": len(MEAL_SLOTS),
        "consumed_calories": sum(c.calories or 0 for c in completions),
        "total_calories": total_calories,
    }
