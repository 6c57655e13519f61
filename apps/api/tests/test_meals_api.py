"""
Tests for meal logging, daily nutrition rollups, energy balance and the
text and photo parse endpoints.
"""

import json
import pytest
from datetime import date, datetime, timedelta, timezone
from unittest.mock import MagicMock
from uuid import uuid4

from core.exceptions import NotFoundError
from models import ActivityCompletion, Meal
from services import nutrition_parser
from services.meal_service import (
    delete_meal,
    get_daily_nutrition_summary,
    get_energy_balance,
    get_meals_for_day,
    log_meal,
)

NOW = datetime(2026, 3, 10, 14, 30, tzinfo=timezone.utc)
TODAY = NOW.date()


def _mock_openai(content):
    client = MagicMock()
    message = MagicMock()
    message.content = content
    choice = MagicMock()
    choice.message = message
    client.chat.completions.create.return_value.choices = [choice]
    return client


class TestMealService:
    def test_defaults_to_today(self, db_session, test_user):
        meal = log_meal(db_session, test_user.id, "Lunch", "Chicken salad", NOW, calories=450, protein_grams=35)
        assert meal.date == TODAY
        assert meal.analysis_method == "manual"

    def test_explicit_date(self, db_session, test_user):
        meal = log_meal(db_session, test_user.id, "Dinner", "Pasta", NOW, meal_date=date(2026, 3, 8))
        assert meal.date == date(2026, 3, 8)

    def test_meals_for_day_oldest_first(self, db_session, test_user):
        log_meal(db_session, test_user.id, "Dinner", "Curry", NOW)
        log_meal(db_session, test_user.id, "Breakfast", "Oats", NOW - timedelta(hours=6))
        db_session.commit()

        assert [m.meal_type for m in get_meals_for_day(db_session, test_user.id, TODAY)] == ["Breakfast", "Dinner"]

    def test_daily_summary(self, db_session, test_user):
        log_meal(db_session, test_user.id, "Breakfast", "Oats", NOW - timedelta(hours=6),
                 calories=350, protein_grams=12, carbs_grams=60, fats_grams=7)
        log_meal(db_session, test_user.id, "Snack", "Apple", NOW - timedelta(hours=3),
                 calories=95, protein_grams=0.5, carbs_grams=25, fats_grams=0.3)
        log_meal(db_session, test_user.id, "Snack", "Yogurt", NOW, calories=150, protein_grams=15)
        db_session.commit()

        summary = get_daily_nutrition_summary(db_session, test_user.id, TODAY)

        assert summary.total_calories == 595
        assert summary.total_protein == pytest.approx(27.5)
        assert summary.total_carbs == 85
        assert [m.description for m in summary.meals_by_type["Snack"]] == ["Apple", "Yogurt"]
        assert summary.meals_by_type["Lunch"] == []

    def test_energy_balance(self, db_session, test_user):
        log_meal(db_session, test_user.id, "Lunch", "Burrito", NOW, calories=900)
        db_session.add(ActivityCompletion(
            user_id=test_user.id, activity_type="Running", duration_minutes=30, intensity=5,
            calories_burned=236, date=TODAY, completed_at=NOW,
        ))
        db_session.commit()

        balance = get_energy_balance(db_session, test_user.id, TODAY)
        assert balance.balance == 664
        assert balance.to_dict() == {"date": "2026-03-10", "calories_in": 900, "calories_out": 236, "balance": 664}

    def test_delete_scoped_to_owner(self, db_session, test_user, other_user):
        meal = log_meal(db_session, test_user.id, "Lunch", "Soup", NOW)
        db_session.commit()

        with pytest.raises(NotFoundError):
            delete_meal(db_session, other_user.id, meal.id)
        delete_meal(db_session, test_user.id, meal.id)
        assert db_session.query(Meal).count() == 0


class TestMealEndpoints:
    def test_log_and_list(self, client, auth_headers):
        response = client.post("/v1/meals", headers=auth_headers, json={
            "meal_type": "Breakfast",
            "description": "Two eggs and toast",
            "calories": 380,
            "protein_grams": 20,
            "carbs_grams": 30,
            "fats_grams": 18,
        })
        assert response.status_code == 201
        assert response.json()["date"] == "2026-03-10"

        listed = client.get("/v1/meals", headers=auth_headers).json()
        assert [m["description"] for m in listed] == ["Two eggs and toast"]

        yesterday = client.get("/v1/meals", params={"date": "2026-03-09"}, headers=auth_headers).json()
        assert yesterday == []

    def test_log_for_past_date(self, client, auth_headers):
        response = client.post("/v1/meals", headers=auth_headers, json={
            "meal_type": "Dinner",
            "description": "Leftover pizza",
            "calories": 600,
            "meal_date": "2026-03-09",
        })
        assert response.json()["date"] == "2026-03-09"

    @pytest.mark.parametrize("payload", [
        {"meal_type": "Brunch", "description": "Waffles"},
        {"meal_type": "Lunch", "description": ""},
        {"meal_type": "Lunch", "description": "Soup", "calories": -5},
    ])
    def test_validation(self, client, auth_headers, payload):
        assert client.post("/v1/meals", headers=auth_headers, json=payload).status_code == 422

    def test_summary_endpoint(self, client, auth_headers, db_session, test_user):
        log_meal(db_session, test_user.id, "Lunch", "Rice bowl", NOW, calories=700, protein_grams=30)
        db_session.commit()

        data = client.get("/v1/meals/summary", headers=auth_headers).json()
        assert data["total_calories"] == 700
        assert data["total_protein"] == 30
        assert len(data["meals_by_type"]["Lunch"]) == 1
        assert set(data["meals_by_type"]) == {"Breakfast", "Lunch", "Dinner", "Snack"}

    def test_energy_balance_endpoint(self, client, auth_headers):
        data = client.get("/v1/meals/energy-balance", headers=auth_headers).json()
        assert data == {"date": "2026-03-10", "calories_in": 0, "calories_out": 0, "balance": 0}

    def test_delete(self, client, auth_headers, other_auth_headers, db_session, test_user):
        meal = log_meal(db_session, test_user.id, "Snack", "Banana", NOW, calories=105)
        db_session.commit()

        assert client.delete(f"/v1/meals/{meal.id}", headers=other_auth_headers).status_code == 404
        assert client.delete(f"/v1/meals/{meal.id}", headers=auth_headers).status_code == 204
        assert client.delete(f"/v1/meals/{uuid4()}", headers=auth_headers).status_code == 404


class TestParseEndpoints:
    def _override_client(self, client_obj):
        from main import app
        app.dependency_overrides[nutrition_parser.get_openai_client] = lambda: client_obj

    def test_available_reflects_config(self, client):
        assert client.get("/v1/meals/parse/available").json() == {"available": False}

    def test_parse_returns_estimate(self, client, auth_headers):
        self._override_client(_mock_openai(json.dumps({
            "calories": 520,
            "protein_grams": 32,
            "carbs_grams": "55",
            "fats_grams": 18,
            "description": "chicken wrap, side salad",
        })))

        response = client.post("/v1/meals/parse", headers=auth_headers, json={"text": "chicken wrap and a salad"})

        assert response.status_code == 200
        assert response.json() == {
            "calories": 520.0,
            "protein_grams": 32.0,
            "carbs_grams": 55.0,
            "fats_grams": 18.0,
            "description": "chicken wrap, side salad",
        }

    def test_parse_without_key_is_503(self, client, auth_headers):
        self._override_client(None)
        response = client.post("/v1/meals/parse", headers=auth_headers, json={"text": "toast"})
        assert response.status_code == 503
        assert response.json()["error_code"] == "SERVICE_UNAVAILABLE"

    def test_parse_garbage_output_is_502(self, client, auth_headers):
        self._override_client(_mock_openai("Sorry, I can't do that."))
        response = client.post("/v1/meals/parse", headers=auth_headers, json={"text": "toast"})
        assert response.status_code == 502
        assert response.json()["error_code"] == "NUTRITION_PARSE_FAILED"

    def test_parse_blank_text_is_422(self, client, auth_headers):
        self._override_client(_mock_openai("{}"))
        response = client.post("/v1/meals/parse", headers=auth_headers, json={"text": "   "})
        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR_TEXT"

    def test_from_text_logs_meal(self, client, auth_headers):
        self._override_client(_mock_openai(json.dumps({
            "calories": 310,
            "protein_grams": None,
            "carbs_grams": 40,
            "fats_grams": 12,
            "description": "bagel with cream cheese",
        })))

        response = client.post("/v1/meals/from-text", headers=auth_headers, json={
            "text": "a bagel with cream cheese",
            "meal_type": "Breakfast",
        })

        assert response.status_code == 201
        data = response.json()
        assert data["analysis_method"] == "text"
        assert data["description"] == "bagel with cream cheese"
        assert data["calories"] == 310
        assert data["protein_grams"] == 0

    def test_parse_image_returns_estimate(self, client, auth_headers):
        self._override_client(_mock_openai(json.dumps({
            "calories": 700,
            "protein_grams": 45,
            "carbs_grams": 60,
            "fats_grams": 28,
            "description": "steak, potatoes, broccoli",
        })))

        response = client.post("/v1/meals/parse-image", headers=auth_headers, json={
            "image_url": "data:image/png;base64,iVBORw0KGgo=",
        })

        assert response.status_code == 200
        assert response.json()["calories"] == 700.0
        assert response.json()["description"] == "steak, potatoes, broccoli"

    def test_parse_image_rejects_non_image_url(self, client, auth_headers):
        self._override_client(_mock_openai("{}"))
        response = client.post("/v1/meals/parse-image", headers=auth_headers, json={"image_url": "file:///etc/passwd"})
        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR_IMAGE_URL"

    def test_parse_image_without_key_is_503(self, client, auth_headers):
        self._override_client(None)
        response = client.post("/v1/meals/parse-image", headers=auth_headers, json={
            "image_url": "https://cdn.example.com/dinner.jpg",
        })
        assert response.status_code == 503
        assert response.json()["error_code"] == "SERVICE_UNAVAILABLE"

    def test_from_image_logs_vision_meal(self, client, auth_headers, db_session):
        self._override_client(_mock_openai(json.dumps({
            "calories": 430,
            "protein_grams": 25,
            "carbs_grams": 48,
            "fats_grams": 14,
        })))

        response = client.post("/v1/meals/from-image", headers=auth_headers, json={
            "image_url": "https://cdn.example.com/lunch.jpg",
            "meal_type": "Lunch",
        })

        assert response.status_code == 201
        data = response.json()
        assert data["analysis_method"] == "vision"
        assert data["description"] == "Photo of lunch"
        assert data["calories"] == 430
        assert db_session.query(Meal).filter(Meal.analysis_method == "vision").count() == 1

    def test_from_image_garbage_output_stores_nothing(self, client, auth_headers, db_session):
        self._override_client(_mock_openai("I only see a blur."))

        response = client.post("/v1/meals/from-image", headers=auth_headers, json={
            "image_url": "https://cdn.example.com/blur.jpg",
            "meal_type": "Dinner",
        })

        assert response.status_code == 502
        assert db_session.query(Meal).count() == 0
