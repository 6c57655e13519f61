"""
Workout Plan Generator

Builds a home/bodyweight routine for a user with Gemini:

1. Profile -> fitness goal + difficulty
2. Prompt -> model output
3. Output -> strict schema (names, types, list bounds)
4. Persist plan + exercises

The model output is never trusted directly: parse_workout_plan returns a
PlanParseResult holding either the validated plan or the reason it was
rejected.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError, model_validator
from sqlalchemy.orm import Session

from core.exceptions import PlanGenerationError
from models import User, WorkoutExercise, WorkoutPlan
from services.llm_client import extract_json_object, generate_text

logger = logging.getLogger(__name__)

MIN_EXERCISES = 3
MAX_EXERCISES = 12

FITNESS_GOAL_MAP = {
    "lose_weight": "weight_loss",
    "build_muscle": "muscle_gain",
    "maintain": "general_fitness",
}


def map_fitness_goal(profile_goal: Optional[str]) -> str:
    return FITNESS_GOAL_MAP.get(profile_goal or "", "general_fitness")


def difficulty_for_activity_level(activity_level: Optional[str]) -> str:
    if activity_level == "sedentary":
        return "beginner"
    if activity_level == "very_active":
        return "advanced"
    return "intermediate"


# ---------------------------------------------------------------------------
# Output schema
# ---------------------------------------------------------------------------

class GeneratedExercise(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", str_strip_whitespace=True)

    exercise_name: str = Field(alias="exerciseName", min_length=1, max_length=120)
    exercise_description: str = Field(alias="exerciseDescription", min_length=1)
    target_sets: int = Field(alias="targetSets", ge=1, le=10)
    target_reps: int = Field(alias="targetReps", ge=1, le=100)
    rest_seconds: int = Field(alias="restSeconds", ge=0, le=600)
    equipment_needed: List[str] = Field(alias="equipmentNeeded", default_factory=lambda: ["bodyweight"])
    muscle_groups: List[str] = Field(alias="muscleGroups", min_length=1)
    exercise_order: int = Field(alias="exerciseOrder", ge=1)


class GeneratedWorkoutPlan(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", str_strip_whitespace=True)

    plan_name: str = Field(alias="planName", min_length=1, max_length=200)
    plan_description: str = Field(alias="planDescription", default="")
    exercises: List[GeneratedExercise] = Field(min_length=MIN_EXERCISES, max_length=MAX_EXERCISES)

    @model_validator(mode="after")
    def _orders_run_one_to_n(self) -> "GeneratedWorkoutPlan":
        orders = sorted(ex.exercise_order for ex in self.exercises)
        if orders != list(range(1, len(self.exercises) + 1)):
            raise ValueError("exerciseOrder must run 1..N with no gaps or duplicates")
        return self


@dataclass
class PlanParseResult:
    """Either a validated plan or the reason the output was rejected."""
    plan: Optional[GeneratedWorkoutPlan] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.plan is not None


def parse_workout_plan(raw_text: str) -> PlanParseResult:
    try:
        data = extract_json_object(raw_text)
    except ValueError as e:
        return PlanParseResult(error=f"invalid_json: {e}")

    try:
        plan = GeneratedWorkoutPlan.model_validate(data)
    except PydanticValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()[:5]
        )
        return PlanParseResult(error=f"schema_violation: {problems}")

    return PlanParseResult(plan=plan)


# ---------------------------------------------------------------------------
# Prompt
# ---------------------------------------------------------------------------

def build_workout_prompt(user: User, fitness_goal: str, difficulty: str) -> str:
    activity_level = user.activity_level or "lightly_active"
    return f"""You are a certified personal trainer and fitness expert. Create a personalized workout routine for home/bodyweight training based on the following user profile:

Age: {user.age or "Not specified"}
Gender: {user.gender or "Not specified"}
Activity Level: {activity_level}
Fitness Goal: {fitness_goal}
Difficulty: {difficulty}

Create a COMPLETE workout routine with 6-8 exercises that can be done at home with minimal or no equipment. Focus on bodyweight exercises, but you can include basic equipment like dumbbells if helpful.

Return a JSON object with this EXACT structure:
{{
  "planName": "Creative workout plan name",
  "planDescription": "Brief motivational description",
  "exercises": [
    {{
      "exerciseName": "Exercise Name",
      "exerciseDescription": "Clear, detailed description of how to perform the exercise with proper form",
      "targetSets": 3,
      "targetReps": 12,
      "restSeconds": 60,
      "equipmentNeeded": ["bodyweight"],
      "muscleGroups": ["chest", "triceps"],
      "exerciseOrder": 1
    }}
  ]
}}

Requirements:
1. Include 6-8 exercises in a logical order (warm-up -> main exercises -> cool-down)
2. Target multiple muscle groups for balanced development
3. For weight_loss: Higher reps (12-15), shorter rest (45-60s), include cardio movements
4. For muscle_gain: Lower reps (6-10), longer rest (90-120s), focus on compound movements
5. For endurance: Moderate reps (10-12), shorter rest (45s), circuit-style
6. For general_fitness: Balanced approach (8-12 reps, 60s rest)
7. Adjust difficulty based on {difficulty} level
8. Use ONLY equipment commonly available at home
9. exerciseOrder should go from 1 to N sequentially

Return ONLY valid JSON, no extra text."""


# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------

def estimate_exercise_minutes(target_sets: int, target_reps: int, rest_seconds: int) -> float:
    """~3s per rep plus rest after every set."""
    return (target_sets * target_reps * 3 + rest_seconds * target_sets) / 60


def compute_plan_metadata(exercises: List[GeneratedExercise]) -> Dict[str, Any]:
    muscle_groups: List[str] = []
    for ex in exercises:
        for group in ex.muscle_groups:
            if group not in muscle_groups:
                muscle_groups.append(group)

    return {
        "total_exercises": len(exercises),
        "estimated_duration": round(
            sum(estimate_exercise_minutes(ex.target_sets, ex.target_reps, ex.rest_seconds) for ex in exercises),
            1,
        ),
        "target_muscle_groups": muscle_groups,
    }


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def generate_workout_plan(db: Session, user: User, gemini_client: Any) -> WorkoutPlan:
    """
    Generate, validate and persist a workout plan for `user`.

    Raises:
        LLMUnavailableError: generation not configured or the call failed
        PlanGenerationError: the model output failed validation
    """
    fitness_goal = map_fitness_goal(user.fitness_goal)
    difficulty = difficulty_for_activity_level(user.activity_level)
    prompt = build_workout_prompt(user, fitness_goal, difficulty)

    logger.info(f"Generating workout plan for user {user.id} ({fitness_goal}, {difficulty})")
    raw_text = generate_text(gemini_client, prompt)

    result = parse_workout_plan(raw_text)
    if not result.ok:
        logger.warning(f"Workout plan rejected for user {user.id}: {result.error}")
        raise PlanGenerationError(f"Failed to parse workout plan from AI: {result.error}")

    generated = result.plan
    ordered = sorted(generated.exercises, key=lambda ex: ex.exercise_order)

    plan = WorkoutPlan(
        user_id=user.id,
        plan_name=generated.plan_name,
        plan_description=generated.plan_description,
        fitness_goal=fitness_goal,
        difficulty_level=difficulty,
        plan_metadata=compute_plan_metadata(ordered),
    )
    for ex in ordered:
        plan.exercises.append(
            WorkoutExercise(
                exercise_name=ex.exercise_name,
                exercise_description=ex.exercise_description,
                target_sets=ex.target_sets,
                target_reps=ex.target_reps,
                rest_seconds=ex.rest_seconds,
                equipment_needed=list(ex.equipment_needed),
                muscle_groups=list(ex.muscle_groups),
                exercise_order=ex.exercise_order,
            )
        )

    db.add(plan)
    db.flush()
    logger.info(f"Workout plan {plan.id} saved with {len(plan.exercises)} exercises")
    return plan
