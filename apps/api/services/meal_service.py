"""
Meal Service

Logged meals and the per-day nutrition rollups: totals, meals grouped by
type, and energy balance (calories in minus calories burned).
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional
from uuid import UUID
import logging

from sqlalchemy.orm import Session

from core.exceptions import NotFoundError
from models import Meal
from services.activity_service import get_calories_burned_for_day

logger = logging.getLogger(__name__)

MEAL_TYPES = ("Breakfast", "Lunch", "Dinner", "Snack")
ANALYSIS_METHODS = ("text", "vision", "manual")


@dataclass
class DailyNutritionSummary:
    date: date
    total_calories: float = 0
    total_protein: float = 0
    total_carbs: float = 0
    total_fats: float = 0
    meals: List[Meal] = field(default_factory=list)
    meals_by_type: Dict[str, List[Meal]] = field(default_factory=dict)


@dataclass
class EnergyBalance:
    date: date
    calories_in: float
    calories_out: float

    @property
    def balance(self) -> float:
        return self.calories_in - self.calories_out

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "calories_in": self.calories_in,
            "calories_out": self.calories_out,
            "balance": self.balance,
        }


def log_meal(
    db: Session,
    user_id: UUID,
    meal_type: str,
    description: str,
    now: datetime,
    calories: float = 0,
    protein_grams: float = 0,
    carbs_grams: float = 0,
    fats_grams: float = 0,
    meal_date: Optional[date] = None,
    analysis_method: Optional[str] = "manual",
) -> Meal:
    meal = Meal(
        user_id=user_id,
        meal_type=meal_type,
        description=description,
        calories=calories,
        protein_grams=protein_grams,
        carbs_grams=carbs_grams,
        fats_grams=fats_grams,
        date=meal_date or now.date(),
        analysis_method=analysis_method,
        created_at=now,
    )
    db.add(meal)
    db.flush()
    logger.info(f"Logged {meal_type} ({calories} cal) for user {user_id}")
    return meal


def get_meals_for_day(db: Session, user_id: UUID, day: date) -> List[Meal]:
    """Meals on `day`, oldest first."""
    return (
        db.query(Meal)
        .filter(Meal.user_id == user_id, Meal.date == day)
        .order_by(Meal.created_at.asc())
        .all()
    )


def delete_meal(db: Session, user_id: UUID, meal_id: UUID) -> None:
    meal = db.query(Meal).filter(Meal.id == meal_id, Meal.user_id == user_id).first()
    if not meal:
        raise NotFoundError("Meal", str(meal_id))
    db.delete(meal)
    db.flush()


def get_daily_nutrition_summary(db: Session, user_id: UUID, day: date) -> DailyNutritionSummary:
    meals = get_meals_for_day(db, user_id, day)
    by_type: Dict[str, List[Meal]] = {t: [] for t in MEAL_TYPES}
    for m in meals:
        by_type.setdefault(m.meal_type, []).append(m)

    return DailyNutritionSummary(
        date=day,
        total_calories=sum(m.calories or 0 for m in meals),
        total_protein=sum(m.protein_grams or 0 for m in meals),
        total_carbs=sum(m.carbs_grams or 0 for m in meals),
        total_fats=sum(m.fats_grams or 0 for m in meals),
        meals=meals,
        meals_by_type=by_type,
    )


def get_energy_balance(db: Session, user_id: UUID, day: date) -> EnergyBalance:
    meals = get_meals_for_day(db, user_id, day)
    return EnergyBalance(
        date=day,
        calories_in=sum(m.calories or 0 for m in meals),
        calories_out=get_calories_burned_for_day(db, user_id, day),
    )
