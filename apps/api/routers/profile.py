"""
Profile & onboarding.

Any change to age, gender, height, weight, activity level or fitness goal
recomputes daily_calorie_goal (when the profile is complete).
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import logging

from core.auth import get_current_user
from core.database import get_db
from models import User
from schemas import OnboardingRequest, ProfileUpdate, UserResponse
from services.calorie_goal import recalculate_for_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["profile"])

GOAL_INPUTS = {"age", "gender", "height_cm", "weight_kg", "activity_level", "fitness_goal"}


@router.get("/profile", response_model=UserResponse)
def get_profile(current_user: User = Depends(get_current_user)):
    return current_user


@router.post("/profile/onboarding", response_model=UserResponse)
def complete_onboarding(
    payload: OnboardingRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    for key, value in payload.model_dump().items():
        setattr(current_user, key, value)
    recalculate_for_user(current_user)
    current_user.onboarding_completed = True

    db.commit()
    db.refresh(current_user)
    logger.info(
        f"Onboarding completed for user {current_user.id}",
        extra={"extra_fields": {"daily_calorie_goal": current_user.daily_calorie_goal}},
    )
    return current_user


@router.put("/profile", response_model=UserResponse)
def update_profile(
    payload: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    updates = payload.model_dump(exclude_unset=True, exclude_none=True)
    for key, value in updates.items():
        setattr(current_user, key, value)

    if GOAL_INPUTS & updates.keys():
        recalculate_for_user(current_user)

    db.commit()
    db.refresh(current_user)
    return current_user
