"""
Tests for the coach context snapshot and proactive message wiring.
"""

import pytest
from datetime import date, datetime, timedelta, timezone

from models import ActivityCompletion, Meal
from services.coach_context import (
    build_summary,
    fetch_recent_activities,
    fetch_recent_meals,
    generate_proactive_message,
    get_coach_context,
    time_ago,
    window_start_date,
)
from services.proactive_messages import NudgeRule

NOW = datetime(2026, 3, 10, 14, 30, tzinfo=timezone.utc)


def add_meal(db, user, meal_type, hours_ago, calories=400, protein=20, day=None):
    created = NOW - timedelta(hours=hours_ago)
    meal = Meal(
        user_id=user.id,
        meal_type=meal_type,
        description=f"{meal_type} bowl",
        calories=calories,
        protein_grams=protein,
        carbs_grams=40,
        fats_grams=10,
        date=day or created.date(),
        analysis_method="manual",
        created_at=created,
    )
    db.add(meal)
    return meal


def add_activity(db, user, activity_type, hours_ago, calories=300, duration=30, day=None):
    completed = NOW - timedelta(hours=hours_ago)
    activity = ActivityCompletion(
        user_id=user.id,
        activity_type=activity_type,
        duration_minutes=duration,
        intensity=6,
        calories_burned=calories,
        date=day or completed.date(),
        completed_at=completed,
    )
    db.add(activity)
    return activity


class TestTimeAgo:
    @pytest.mark.parametrize("delta,expected", [
        (timedelta(minutes=0), "0m ago"),
        (timedelta(minutes=45), "45m ago"),
        (timedelta(minutes=59, seconds=59), "59m ago"),
        (timedelta(hours=1), "1h ago"),
        (timedelta(hours=23, minutes=59), "23h ago"),
        (timedelta(hours=24), "1d ago"),
        (timedelta(hours=50), "2d ago"),
    ])
    def test_buckets(self, delta, expected):
        assert time_ago(NOW - delta, NOW) == expected

    def test_naive_timestamps_treated_as_utc(self):
        naive = (NOW - timedelta(hours=3)).replace(tzinfo=None)
        assert time_ago(naive, NOW) == "3h ago"


class TestWindow:
    def test_window_start_is_a_calendar_date(self):
        assert window_start_date(NOW, 48) == date(2026, 3, 8)

    def test_meals_filtered_by_date_not_timestamp(self, db_session, test_user):
        # Dated at the window start day but earlier than now - 48h: still included
        add_meal(db_session, test_user, "Breakfast", hours_ago=52)
        # Dated the day before the window start: excluded
        add_meal(db_session, test_user, "Dinner", hours_ago=70)
        db_session.commit()

        meals = fetch_recent_meals(db_session, test_user.id, NOW, window_hours=48)
        assert [m.meal_type for m in meals] == ["Breakfast"]

    def test_newest_first(self, db_session, test_user):
        add_meal(db_session, test_user, "Breakfast", hours_ago=6)
        add_meal(db_session, test_user, "Lunch", hours_ago=2)
        add_activity(db_session, test_user, "Running", hours_ago=30)
        add_activity(db_session, test_user, "Yoga", hours_ago=1)
        db_session.commit()

        meals = fetch_recent_meals(db_session, test_user.id, NOW)
        activities = fetch_recent_activities(db_session, test_user.id, NOW)

        assert [m.meal_type for m in meals] == ["Lunch", "Breakfast"]
        assert meals[0].time_ago == "2h ago"
        assert [a.activity_type for a in activities] == ["Yoga", "Running"]
        assert activities[1].time_ago == "1d ago"

    def test_scoped_to_user(self, db_session, test_user, other_user):
        add_meal(db_session, other_user, "Lunch", hours_ago=1)
        add_activity(db_session, other_user, "Running", hours_ago=1)
        db_session.commit()

        assert fetch_recent_meals(db_session, test_user.id, NOW) == []
        assert fetch_recent_activities(db_session, test_user.id, NOW) == []


class TestSummary:
    def test_empty(self):
        assert build_summary([], [], 0, 0, 0) == "No meals or workouts logged in the last 48 hours."

    def test_empty_respects_window(self):
        assert build_summary([], [], 0, 0, 0, window_hours=24) == "No meals or workouts logged in the last 24 hours."

    def test_full_summary(self, db_session, test_user):
        add_meal(db_session, test_user, "Breakfast", hours_ago=6, calories=500, protein=30)
        add_meal(db_session, test_user, "Lunch", hours_ago=2, calories=700, protein=40)
        add_activity(db_session, test_user, "Running", hours_ago=4, calories=350, duration=35)
        db_session.commit()

        ctx = get_coach_context(db_session, test_user.id, NOW)

        assert ctx.meal_count == 2
        assert ctx.workout_count == 1
        assert ctx.total_calories_in == 1200
        assert ctx.total_calories_out == 350
        assert ctx.total_protein == 70
        assert ctx.summary.splitlines() == [
            "2 meals logged (1200 cal, 70g protein)",
            "  - 1 Lunch, 1 Breakfast",
            "  - Latest: Lunch - Lunch bowl (2h ago)",
            "1 workout completed (350 cal burned)",
            "  - Latest: Running for 35min (4h ago)",
            "Net energy balance: +850 cal",
        ]

    def test_negative_balance_has_no_plus_sign(self, db_session, test_user):
        add_activity(db_session, test_user, "Cycling", hours_ago=1, calories=600)
        db_session.commit()

        ctx = get_coach_context(db_session, test_user.id, NOW)
        assert ctx.summary.endswith("Net energy balance: -600 cal")
        assert "meal" not in ctx.summary


class TestProactiveFromContext:
    def test_uses_todays_meals_only(self, db_session, test_user):
        # Yesterday's breakfast does not satisfy today's breakfast rule
        add_meal(db_session, test_user, "Breakfast", hours_ago=28)
        db_session.commit()

        msg = generate_proactive_message(db_session, test_user.id, NOW, local_hour=9)
        assert msg.rule == NudgeRule.BREAKFAST

    def test_protein_from_today(self, db_session, test_user):
        add_meal(db_session, test_user, "Breakfast", hours_ago=6, protein=15)
        add_meal(db_session, test_user, "Lunch", hours_ago=2, protein=15)
        # Yesterday's protein does not count toward today
        add_meal(db_session, test_user, "Dinner", hours_ago=20, protein=100)
        add_activity(db_session, test_user, "Running", hours_ago=3)
        db_session.commit()

        msg = generate_proactive_message(db_session, test_user.id, NOW, local_hour=17)
        assert msg.rule == NudgeRule.PROTEIN
        assert "30g" in msg.message

    def test_defaults_to_utc_hour(self, db_session, test_user):
        # 14:30 UTC is inside the lunch window
        add_meal(db_session, test_user, "Breakfast", hours_ago=6, protein=60)
        db_session.commit()

        msg = generate_proactive_message(db_session, test_user.id, NOW)
        assert msg.rule == NudgeRule.LUNCH

    def test_nothing_late_at_night(self, db_session, test_user):
        assert generate_proactive_message(db_session, test_user.id, NOW, local_hour=23) is None
