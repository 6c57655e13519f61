from pydantic import BaseModel, ConfigDict, EmailStr, Field
from datetime import datetime, date
from uuid import UUID
from typing import Optional, List, Dict, Any, Literal


Gender = Literal["male", "female", "other"]
ActivityLevel = Literal["sedentary", "lightly_active", "very_active"]
FinancialStatus = Literal["budget_conscious", "balanced", "premium_gourmet"]
FitnessGoal = Literal["lose_weight", "build_muscle", "maintain"]
ActivityType = Literal["Running", "Weightlifting", "Cycling", "Yoga", "Swimming", "Walking"]
MealType = Literal["Breakfast", "Lunch", "Dinner", "Snack"]
MealSlot = Literal["breakfast", "lunch", "dinner", "snacks"]
AnalysisMethod = Literal["text", "vision", "manual"]


# ---------------------------------------------------------------------------
# Auth / profile
# ---------------------------------------------------------------------------

class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    display_name: Optional[str] = None


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class UserResponse(BaseModel):
    id: UUID
    email: str
    display_name: Optional[str] = None
    age: Optional[int] = None
    gender: Optional[str] = None
    height_cm: Optional[float] = None
    weight_kg: Optional[float] = None
    activity_level: Optional[str] = None
    financial_status: Optional[str] = None
    fitness_goal: Optional[str] = None
    daily_calorie_goal: int
    onboarding_completed: bool = False
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class OnboardingRequest(BaseModel):
    age: int = Field(ge=13, le=100)
    gender: Gender
    height_cm: float = Field(gt=50, lt=300)
    weight_kg: float = Field(gt=20, lt=500)
    activity_level: ActivityLevel
    financial_status: FinancialStatus
    fitness_goal: FitnessGoal


class ProfileUpdate(BaseModel):
    """Partial profile update; omitted fields are left unchanged."""
    display_name: Optional[str] = None
    age: Optional[int] = Field(default=None, ge=13, le=100)
    gender: Optional[Gender] = None
    height_cm: Optional[float] = Field(default=None, gt=50, lt=300)
    weight_kg: Optional[float] = Field(default=None, gt=20, lt=500)
    activity_level: Optional[ActivityLevel] = None
    financial_status: Optional[FinancialStatus] = None
    fitness_goal: Optional[FitnessGoal] = None


# ---------------------------------------------------------------------------
# Workouts
# ---------------------------------------------------------------------------

class WorkoutExerciseResponse(BaseModel):
    id: UUID
    workout_plan_id: UUID
    exercise_name: str
    exercise_description: Optional[str] = None
    target_sets: int
    target_reps: int
    rest_seconds: int
    equipment_needed: List[str] = []
    muscle_groups: List[str] = []
    exercise_order: int
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None
    completed_sets: int = 0
    is_completed: bool = False


class WorkoutPlanResponse(BaseModel):
    id: UUID
    user_id: UUID
    plan_name: str
    plan_description: Optional[str] = None
    fitness_goal: str
    difficulty_level: str
    exercises: List[WorkoutExerciseResponse]
    created_at: Optional[datetime] = None
    metadata: Optional[Dict[str, Any]] = None


class WorkoutSetCreate(BaseModel):
    workout_plan_id: UUID
    exercise_id: UUID
    set_number: int = Field(ge=1, le=50)
    reps_completed: int = Field(ge=0, le=1000)
    weight_used: Optional[float] = Field(default=None, ge=0)


class WorkoutSetResponse(BaseModel):
    id: UUID
    workout_plan_id: UUID
    exercise_id: UUID
    set_number: int
    reps_completed: int
    weight_used: Optional[float] = None
    completed_at: datetime
    date: date

    model_config = ConfigDict(from_attributes=True)


class WorkoutSessionStart(BaseModel):
    workout_plan_id: UUID


class WorkoutSessionComplete(BaseModel):
    total_volume_kg: float = Field(default=0, ge=0)


class WorkoutSessionResponse(BaseModel):
    id: UUID
    workout_plan_id: UUID
    started_at: datetime
    completed_at: Optional[datetime] = None
    total_duration_minutes: Optional[float] = None
    total_volume_kg: Optional[float] = None
    date: date

    model_config = ConfigDict(from_attributes=True)


class StreakResponse(BaseModel):
    current_streak: int
    longest_streak: int
    last_workout_date: str
    total_workouts: int
    workout_dates: List[str]


# ---------------------------------------------------------------------------
# Activities
# ---------------------------------------------------------------------------

class ActivityCreate(BaseModel):
    activity_type: ActivityType
    duration_minutes: int = Field(ge=1, le=1440)
    intensity: int = Field(ge=1, le=10)
    calories_burned: Optional[int] = Field(default=None, ge=0)


class ActivityResponse(BaseModel):
    id: UUID
    activity_type: str
    duration_minutes: int
    intensity: int
    calories_burned: int
    date: date
    completed_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CaloriesBurnedResponse(BaseModel):
    date: date
    calories_burned: int


class DailyTotal(BaseModel):
    date: str
    calories: int


class WeeklySummaryResponse(BaseModel):
    total_calories: int
    best_day: Optional[DailyTotal] = None
    daily_totals: List[DailyTotal]


# ---------------------------------------------------------------------------
# Meals
# ---------------------------------------------------------------------------

class MealCreate(BaseModel):
    meal_type: MealType
    description: str = Field(min_length=1, max_length=2000)
    calories: float = Field(default=0, ge=0)
    protein_grams: float = Field(default=0, ge=0)
    carbs_grams: float = Field(default=0, ge=0)
    fats_grams: float = Field(default=0, ge=0)
    meal_date: Optional[date] = None
    analysis_method: AnalysisMethod = "manual"


class MealResponse(BaseModel):
    id: UUID
    meal_type: str
    description: str
    calories: float
    protein_grams: float
    carbs_grams: float
    fats_grams: float
    date: date
    analysis_method: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DailyNutritionResponse(BaseModel):
    date: date
    total_calories: float
    total_protein: float
    total_carbs: float
    total_fats: float
    meals: List[MealResponse]
    meals_by_type: Dict[str, List[MealResponse]]

    model_config = ConfigDict(from_attributes=True)


class EnergyBalanceResponse(BaseModel):
    date: str
    calories_in: float
    calories_out: float
    balance: float


class MealParseRequest(BaseModel):
    text: str = Field(min_length=1, max_length=2000)


class MealParseResponse(BaseModel):
    calories: Optional[float] = None
    protein_grams: Optional[float] = None
    carbs_grams: Optional[float] = None
    fats_grams: Optional[float] = None
    description: str


class MealFromTextRequest(BaseModel):
    text: str = Field(min_length=1, max_length=2000)
    meal_type: MealType
    meal_date: Optional[date] = None


class MealImageParseRequest(BaseModel):
    """`image_url` is a data:image/... URL (inline upload) or an http(s) link."""
    image_url: str = Field(min_length=1, max_length=8_000_000)


class MealFromImageRequest(MealImageParseRequest):
    meal_type: MealType
    meal_date: Optional[date] = None


# ---------------------------------------------------------------------------
# Meal plans
# ---------------------------------------------------------------------------

class MealCompletionRequest(BaseModel):
    day_number: int = Field(ge=1, le=3)
    meal_type: MealSlot


class MealCompletionResponse(BaseModel):
    id: UUID
    meal_plan_id: UUID
    day_number: int
    meal_type: str
    calories: float
    completed_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DailyProgressResponse(BaseModel):
    day_number: int
    completed: int
    total: int
    consumed_calories: float
    total_calories: float


# ---------------------------------------------------------------------------
# Coach
# ---------------------------------------------------------------------------

class RecentMealResponse(BaseModel):
    id: str
    meal_type: str
    description: str
    calories: float
    protein_grams: float
    carbs_grams: float
    fats_grams: float
    date: date
    analysis_method: Optional[str] = None
    created_at: datetime
    time_ago: str

    model_config = ConfigDict(from_attributes=True)


class RecentActivityResponse(BaseModel):
    id: str
    activity_type: str
    duration_minutes: int
    intensity: int
    calories_burned: int
    date: date
    completed_at: datetime
    time_ago: str

    model_config = ConfigDict(from_attributes=True)


class CoachContextResponse(BaseModel):
    meals: List[RecentMealResponse]
    activities: List[RecentActivityResponse]
    total_calories_in: float
    total_calories_out: float
    total_protein: float
    meal_count: int
    workout_count: int
    summary: str

    model_config = ConfigDict(from_attributes=True)


class ProactiveMessageResponse(BaseModel):
    """`message` is null when no rule fires."""
    rule: Optional[str] = None
    message: Optional[str] = None


class CoachChatRequest(BaseModel):
    message: str = Field(min_length=1, max_length=4000)


class CoachMessageResponse(BaseModel):
    id: UUID
    role: str
    content: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CoachChatResponse(BaseModel):
    reply: CoachMessageResponse


class CoachHistoryResponse(BaseModel):
    messages: List[CoachMessageResponse]
