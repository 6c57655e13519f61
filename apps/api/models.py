from sqlalchemy import Column, Integer, Boolean, Float, Date, DateTime, ForeignKey, Text, Index, UniqueConstraint, JSON, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.dialects.postgresql import JSONB
from core.database import Base
import uuid
from datetime import datetime, timezone


# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONDocument = JSON().with_variant(JSONB(), "postgresql")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """
    Account plus onboarding profile.

    daily_calorie_goal is derived from the body metrics, activity level and
    fitness goal (see services.calorie_goal) whenever any of them change.
    """
    __tablename__ = "app_user"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)
    email = Column(Text, unique=True, nullable=False)
    password_hash = Column(Text, nullable=True)
    display_name = Column(Text, nullable=True)

    # Onboarding data
    age = Column(Integer, nullable=True)
    gender = Column(Text, nullable=True)  # 'male', 'female', 'other'
    height_cm = Column(Float, nullable=True)
    weight_kg = Column(Float, nullable=True)
    activity_level = Column(Text, nullable=True)  # 'sedentary', 'lightly_active', 'very_active'
    financial_status = Column(Text, nullable=True)  # 'budget_conscious', 'balanced', 'premium_gourmet'
    fitness_goal = Column(Text, nullable=True)  # 'lose_weight', 'build_muscle', 'maintain'

    daily_calorie_goal = Column(Integer, default=2000, nullable=False)
    onboarding_completed = Column(Boolean, default=False, nullable=False)


class WorkoutPlan(Base):
    """AI-generated home workout routine."""
    __tablename__ = "workout_plan"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("app_user.id"), nullable=False, index=True)
    plan_name = Column(Text, nullable=False)
    plan_description = Column(Text, nullable=True)
    fitness_goal = Column(Text, nullable=False)  # 'weight_loss', 'muscle_gain', 'endurance', 'general_fitness'
    difficulty_level = Column(Text, nullable=False)  # 'beginner', 'intermediate', 'advanced'
    # {total_exercises, estimated_duration, target_muscle_groups}
    plan_metadata = Column("metadata", JSONDocument, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    exercises = relationship(
        "WorkoutExercise",
        back_populates="plan",
        order_by="WorkoutExercise.exercise_order",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("ix_workout_plan_user_created", "user_id", "created_at"),
    )


class WorkoutExercise(Base):
    __tablename__ = "workout_exercise"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    workout_plan_id = Column(Uuid, ForeignKey("workout_plan.id", ondelete="CASCADE"), nullable=False, index=True)
    exercise_name = Column(Text, nullable=False)
    exercise_description = Column(Text, nullable=True)
    target_sets = Column(Integer, nullable=False)
    target_reps = Column(Integer, nullable=False)
    rest_seconds = Column(Integer, nullable=False)
    equipment_needed = Column(JSONDocument, nullable=False, default=list)
    muscle_groups = Column(JSONDocument, nullable=False, default=list)
    exercise_order = Column(Integer, nullable=False)
    image_url = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    plan = relationship("WorkoutPlan", back_populates="exercises")


class WorkoutSetLog(Base):
    """One completed set of one exercise."""
    __tablename__ = "workout_set_log"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("app_user.id"), nullable=False)
    workout_plan_id = Column(Uuid, ForeignKey("workout_plan.id", ondelete="CASCADE"), nullable=False)
    exercise_id = Column(Uuid, ForeignKey("workout_exercise.id", ondelete="CASCADE"), nullable=False)
    set_number = Column(Integer, nullable=False)
    reps_completed = Column(Integer, nullable=False)
    weight_used = Column(Float, nullable=True)
    completed_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    date = Column(Date, nullable=False)

    __table_args__ = (
        Index("ix_workout_set_log_user_plan_date", "user_id", "workout_plan_id", "date"),
    )


class WorkoutSession(Base):
    """
    A started (and possibly completed) workout.

    Only sessions with completed_at set count toward streaks.
    """
    __tablename__ = "workout_session"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("app_user.id"), nullable=False)
    workout_plan_id = Column(Uuid, ForeignKey("workout_plan.id", ondelete="CASCADE"), nullable=False)
    started_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    total_duration_minutes = Column(Float, nullable=True)
    total_volume_kg = Column(Float, nullable=True)
    date = Column(Date, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __table_args__ = (
        Index("ix_workout_session_user_date", "user_id", "date"),
    )


class ActivityCompletion(Base):
    """Free-form logged activity (run, ride, yoga...)."""
    __tablename__ = "activity_completion"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("app_user.id"), nullable=False)
    activity_type = Column(Text, nullable=False)  # Running, Weightlifting, Cycling, Yoga, Swimming, Walking
    duration_minutes = Column(Integer, nullable=False)
    intensity = Column(Integer, nullable=False)  # 1-10
    calories_burned = Column(Integer, nullable=False)
    date = Column(Date, nullable=False)
    completed_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __table_args__ = (
        Index("ix_activity_completion_user_date", "user_id", "date"),
    )


class Meal(Base):
    """Logged meal (manual, text-parsed or photo-analysed)."""
    __tablename__ = "meal"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("app_user.id"), nullable=False)
    meal_type = Column(Text, nullable=False)  # Breakfast, Lunch, Dinner, Snack
    description = Column(Text, nullable=False)
    calories = Column(Float, nullable=False, default=0)
    protein_grams = Column(Float, nullable=False, default=0)
    carbs_grams = Column(Float, nullable=False, default=0)
    fats_grams = Column(Float, nullable=False, default=0)
    date = Column(Date, nullable=False)
    analysis_method = Column(Text, nullable=True)  # 'text', 'vision', 'manual'
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __table_args__ = (
        Index("ix_meal_user_date", "user_id", "date"),
    )


class MealPlan(Base):
    """
    Generated 3-day meal plan.

    Stored as a document: `days` holds the full
    [{day_number, breakfast, lunch, dinner, snacks}] structure.
    """
    __tablename__ = "meal_plan"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("app_user.id"), nullable=False, index=True)
    days = Column(JSONDocument, nullable=False)
    plan_metadata = Column("metadata", JSONDocument, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)


class MealCompletion(Base):
    __tablename__ = "meal_completion"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("app_user.id"), nullable=False)
    meal_plan_id = Column(Uuid, ForeignKey("meal_plan.id", ondelete="CASCADE"), nullable=False)
    day_number = Column(Integer, nullable=False)
    meal_type = Column(Text, nullable=False)  # breakfast, lunch, dinner, snacks
    calories = Column(Float, nullable=False, default=0)
    completed_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "meal_plan_id", "day_number", "meal_type", name="uq_meal_completion_slot"),
    )


class CoachMessage(Base):
    """One turn of the coach chat thread (role: 'user' or 'assistant')."""
    __tablename__ = "coach_message"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("app_user.id"), nullable=False)
    role = Column(Text, nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __table_args__ = (
        Index("ix_coach_message_user_created", "user_id", "created_at"),
    )
