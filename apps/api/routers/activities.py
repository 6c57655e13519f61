"""
Activity logging API.

Calories are estimated from type, duration and intensity unless the
client supplies its own figure.
"""
from datetime import date
from typing import List, Optional
from uuid import UUID
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from core.auth import get_current_user
from core.clock import Clock, get_clock
from core.database import get_db
from models import User
from schemas import ActivityCreate, ActivityResponse, CaloriesBurnedResponse, WeeklySummaryResponse
from services import activity_service
from services.calorie_calculator import ACTIVITY_TYPES

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/activities", tags=["activities"])

MAX_RANGE_DAYS = 366


@router.get("/types")
def activity_types():
    return {"activity_types": ACTIVITY_TYPES}


@router.post("", response_model=ActivityResponse, status_code=status.HTTP_201_CREATED)
def log_activity(
    payload: ActivityCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    activity = activity_service.log_activity(
        db,
        current_user.id,
        activity_type=payload.activity_type,
        duration_minutes=payload.duration_minutes,
        intensity=payload.intensity,
        calories_burned=payload.calories_burned,
        now=clock.now(),
    )
    db.commit()
    return activity


@router.get("", response_model=List[ActivityResponse])
def list_activities(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Activities in [start_date, end_date]; both default to today."""
    today = clock.today()
    start = start_date or today
    end = end_date or today
    if end < start:
        raise HTTPException(status_code=400, detail="end_date must be on or after start_date")
    if (end - start).days > MAX_RANGE_DAYS:
        raise HTTPException(status_code=400, detail=f"Date range cannot exceed {MAX_RANGE_DAYS} days")
    return activity_service.get_activities_in_range(db, current_user.id, start, end)


@router.get("/today/calories", response_model=CaloriesBurnedResponse)
def todays_calories_burned(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    today = clock.today()
    return {
        "date": today,
        "calories_burned": activity_service.get_calories_burned_for_day(db, current_user.id, today),
    }


@router.get("/weekly-summary", response_model=WeeklySummaryResponse)
def weekly_summary(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    return activity_service.get_weekly_summary(db, current_user.id, clock.today()).to_dict()


@router.delete("/{activity_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_activity(
    activity_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    activity_service.delete_activity(db, current_user.id, activity_id)
    db.commit()
