"""
Tests for workout tracking: today's completion, set logging, sessions,
streak endpoint and per-exercise progress.
"""

import pytest
from datetime import datetime, timedelta, timezone
from uuid import uuid4

from core.exceptions import NotFoundError
from models import WorkoutExercise, WorkoutPlan, WorkoutSession
from services.workout_tracking import (
    complete_workout_session,
    get_exercise_progress,
    get_latest_workout_plan,
    log_workout_set,
    start_workout_session,
)

# Same instant as the `clock` fixture
FIXED_NOW = datetime(2026, 3, 10, 14, 30, tzinfo=timezone.utc)


@pytest.fixture
def plan(db_session, test_user):
    plan = WorkoutPlan(
        user_id=test_user.id,
        plan_name="Home Circuit",
        plan_description="Full body",
        fitness_goal="general_fitness",
        difficulty_level="intermediate",
        plan_metadata={"total_exercises": 2, "estimated_duration": 9.6, "target_muscle_groups": ["legs", "chest"]},
    )
    plan.exercises.append(WorkoutExercise(
        exercise_name="Push-ups", exercise_description="Chest to floor",
        target_sets=3, target_reps=12, rest_seconds=60,
        equipment_needed=["bodyweight"], muscle_groups=["chest"], exercise_order=2,
    ))
    plan.exercises.append(WorkoutExercise(
        exercise_name="Squats", exercise_description="Hips below knees",
        target_sets=2, target_reps=15, rest_seconds=45,
        equipment_needed=["bodyweight"], muscle_groups=["legs"], exercise_order=1,
    ))
    db_session.add(plan)
    db_session.commit()
    return plan


def _exercise(plan, name):
    return next(e for e in plan.exercises if e.exercise_name == name)


class TestLatestPlan:
    def test_none_when_no_plan(self, db_session, test_user):
        assert get_latest_workout_plan(db_session, test_user.id, FIXED_NOW.date()) is None

    def test_exercises_ordered_with_todays_completion(self, db_session, test_user, plan):
        squats = _exercise(plan, "Squats")
        for n in (1, 2):
            log_workout_set(db_session, test_user.id, plan.id, squats.id, n, 15, FIXED_NOW)
        # Yesterday's push-up set does not count today
        log_workout_set(db_session, test_user.id, plan.id, _exercise(plan, "Push-ups").id, 1, 12,
                        FIXED_NOW - timedelta(days=1))
        db_session.commit()

        result = get_latest_workout_plan(db_session, test_user.id, FIXED_NOW.date())

        assert [e["exercise_name"] for e in result["exercises"]] == ["Squats", "Push-ups"]
        assert result["exercises"][0]["completed_sets"] == 2
        assert result["exercises"][0]["is_completed"] is True
        assert result["exercises"][1]["completed_sets"] == 0
        assert result["exercises"][1]["is_completed"] is False

    def test_completed_sets_is_highest_set_number(self, db_session, test_user, plan):
        pushups = _exercise(plan, "Push-ups")
        log_workout_set(db_session, test_user.id, plan.id, pushups.id, 2, 10, FIXED_NOW)
        db_session.commit()

        result = get_latest_workout_plan(db_session, test_user.id, FIXED_NOW.date())
        pushup_view = next(e for e in result["exercises"] if e["exercise_name"] == "Push-ups")
        assert pushup_view["completed_sets"] == 2


class TestSetsAndSessions:
    def test_log_set_on_foreign_plan_is_not_found(self, db_session, other_user, plan):
        with pytest.raises(NotFoundError):
            log_workout_set(db_session, other_user.id, plan.id, plan.exercises[0].id, 1, 10, FIXED_NOW)

    def test_log_set_unknown_exercise(self, db_session, test_user, plan):
        with pytest.raises(NotFoundError):
            log_workout_set(db_session, test_user.id, plan.id, uuid4(), 1, 10, FIXED_NOW)

    def test_session_duration_and_volume(self, db_session, test_user, plan):
        session = start_workout_session(db_session, test_user.id, plan.id, FIXED_NOW)
        db_session.commit()

        done = complete_workout_session(
            db_session, test_user.id, session.id, 1250.0, FIXED_NOW + timedelta(minutes=42, seconds=30)
        )

        assert done.total_duration_minutes == 42.5
        assert done.total_volume_kg == 1250.0
        assert done.completed_at is not None
        assert done.date == FIXED_NOW.date()

    def test_complete_other_users_session_is_not_found(self, db_session, test_user, other_user, plan):
        session = start_workout_session(db_session, test_user.id, plan.id, FIXED_NOW)
        db_session.commit()

        with pytest.raises(NotFoundError):
            complete_workout_session(db_session, other_user.id, session.id, 0, FIXED_NOW)


class TestExerciseProgress:
    def test_history_grouped_by_date(self, db_session, test_user, plan):
        squats = _exercise(plan, "Squats")
        yesterday = FIXED_NOW - timedelta(days=1)
        log_workout_set(db_session, test_user.id, plan.id, squats.id, 1, 10, yesterday, weight_used=20)
        log_workout_set(db_session, test_user.id, plan.id, squats.id, 2, 8, yesterday, weight_used=25)
        log_workout_set(db_session, test_user.id, plan.id, squats.id, 1, 15, FIXED_NOW)
        db_session.commit()

        progress = get_exercise_progress(db_session, test_user.id, squats.id)

        assert progress["exercise_name"] == "Squats"
        assert [h["date"] for h in progress["history"]] == ["2026-03-09", "2026-03-10"]
        first = progress["history"][0]
        assert first["total_volume"] == 10 * 20 + 8 * 25
        assert first["max_weight"] == 25
        assert progress["history"][1]["total_volume"] == 0

    def test_foreign_exercise_not_found(self, db_session, other_user, plan):
        with pytest.raises(NotFoundError):
            get_exercise_progress(db_session, other_user.id, plan.exercises[0].id)


class TestWorkoutEndpoints:
    def test_latest_plan_null_without_plan(self, client, auth_headers):
        response = client.get("/v1/workouts/plans/latest", headers=auth_headers)
        assert response.status_code == 200
        assert response.json() is None

    def test_full_workout_flow(self, client, auth_headers, plan):
        squats = _exercise(plan, "Squats")

        started = client.post("/v1/workouts/sessions", json={"workout_plan_id": str(plan.id)}, headers=auth_headers)
        assert started.status_code == 201
        session_id = started.json()["id"]

        for n in (1, 2):
            r = client.post("/v1/workouts/sets", headers=auth_headers, json={
                "workout_plan_id": str(plan.id),
                "exercise_id": str(squats.id),
                "set_number": n,
                "reps_completed": 15,
            })
            assert r.status_code == 201
            assert r.json()["date"] == "2026-03-10"

        latest = client.get("/v1/workouts/plans/latest", headers=auth_headers).json()
        assert latest["exercises"][0]["is_completed"] is True

        completed = client.post(f"/v1/workouts/sessions/{session_id}/complete",
                                json={"total_volume_kg": 0}, headers=auth_headers)
        assert completed.status_code == 200
        assert completed.json()["completed_at"] is not None

        streak = client.get("/v1/workouts/streak", headers=auth_headers).json()
        assert streak["current_streak"] == 1
        assert streak["total_workouts"] == 1
        assert streak["last_workout_date"] == "2026-03-10"

    def test_streak_counts_consecutive_days(self, client, auth_headers, db_session, test_user, plan):
        for days_back in (0, 1, 2, 5):
            day = FIXED_NOW.date() - timedelta(days=days_back)
            started = datetime(day.year, day.month, day.day, 7, tzinfo=timezone.utc)
            db_session.add(WorkoutSession(
                user_id=test_user.id, workout_plan_id=plan.id,
                started_at=started, completed_at=started + timedelta(minutes=20), date=day,
            ))
        db_session.commit()

        data = client.get("/v1/workouts/streak", headers=auth_headers).json()
        assert data["current_streak"] == 3
        assert data["longest_streak"] == 3
        assert data["total_workouts"] == 4

    def test_streak_empty(self, client, auth_headers):
        data = client.get("/v1/workouts/streak", headers=auth_headers).json()
        assert data == {
            "current_streak": 0,
            "longest_streak": 0,
            "last_workout_date": "",
            "total_workouts": 0,
            "workout_dates": [],
        }

    def test_session_for_unknown_plan_is_404(self, client, auth_headers):
        response = client.post("/v1/workouts/sessions", json={"workout_plan_id": str(uuid4())}, headers=auth_headers)
        assert response.status_code == 404
        assert response.json()["error_code"] == "NOT_FOUND"

    def test_set_validation(self, client, auth_headers, plan):
        response = client.post("/v1/workouts/sets", headers=auth_headers, json={
            "workout_plan_id": str(plan.id),
            "exercise_id": str(plan.exercises[0].id),
            "set_number": 0,
            "reps_completed": 10,
        })
        assert response.status_code == 422

    def test_progress_endpoint(self, client, auth_headers, plan):
        squats = _exercise(plan, "Squats")
        client.post("/v1/workouts/sets", headers=auth_headers, json={
            "workout_plan_id": str(plan.id), "exercise_id": str(squats.id),
            "set_number": 1, "reps_completed": 12, "weight_used": 10,
        })

        data = client.get(f"/v1/workouts/exercises/{squats.id}/progress", headers=auth_headers).json()
        assert data["history"][0]["total_volume"] == 120
