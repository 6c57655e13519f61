"""
API tests for registration, login and the profile/onboarding endpoints.
"""

import pytest

from core.security import create_access_token


class TestAuth:
    def test_register_returns_token(self, client):
        response = client.post("/v1/auth/register", json={
            "email": "New.User@Example.com",
            "password": "long-enough-password",
        })

        assert response.status_code == 201
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["access_token"]
        assert data["user"]["email"] == "new.user@example.com"
        assert data["user"]["display_name"] == "new.user"
        assert data["user"]["daily_calorie_goal"] == 2000
        assert data["user"]["onboarding_completed"] is False

    def test_register_duplicate_email(self, client, test_user):
        response = client.post("/v1/auth/register", json={
            "email": test_user.email,
            "password": "long-enough-password",
        })
        assert response.status_code == 409
        assert response.json() == {"detail": "Email already registered", "error_code": "CONFLICT"}

    def test_register_short_password(self, client):
        response = client.post("/v1/auth/register", json={"email": "a@example.com", "password": "short"})
        assert response.status_code == 422

    def test_login_and_me(self, client, test_user):
        login = client.post("/v1/auth/login", json={
            "email": test_user.email,
            "password": "correct-horse-battery",
        })
        assert login.status_code == 200
        token = login.json()["access_token"]

        me = client.get("/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["id"] == str(test_user.id)

    def test_login_wrong_password(self, client, test_user):
        response = client.post("/v1/auth/login", json={"email": test_user.email, "password": "nope-nope-nope"})
        assert response.status_code == 401

    def test_login_unknown_email(self, client):
        response = client.post("/v1/auth/login", json={"email": "ghost@example.com", "password": "whatever1"})
        assert response.status_code == 401

    def test_me_requires_token(self, client):
        assert client.get("/v1/auth/me").status_code == 401

    def test_me_rejects_garbage_token(self, client):
        response = client.get("/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    def test_token_for_deleted_user(self, client):
        token = create_access_token(data={"sub": "00000000-0000-0000-0000-000000000000"})
        response = client.get("/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401


class TestProfile:
    def test_onboarding_sets_goal(self, client, other_user, other_auth_headers):
        response = client.post("/v1/profile/onboarding", headers=other_auth_headers, json={
            "age": 25,
            "gender": "female",
            "height_cm": 165,
            "weight_kg": 60,
            "activity_level": "sedentary",
            "financial_status": "budget_conscious",
            "fitness_goal": "lose_weight",
        })

        assert response.status_code == 200
        data = response.json()
        assert data["onboarding_completed"] is True
        assert data["daily_calorie_goal"] == 1114
        assert data["financial_status"] == "budget_conscious"

    def test_onboarding_validates_enums(self, client, other_auth_headers):
        response = client.post("/v1/profile/onboarding", headers=other_auth_headers, json={
            "age": 25,
            "gender": "female",
            "height_cm": 165,
            "weight_kg": 60,
            "activity_level": "couch",
            "financial_status": "balanced",
            "fitness_goal": "maintain",
        })
        assert response.status_code == 422

    def test_weight_change_recomputes_goal(self, client, auth_headers):
        # 30y male, 180cm, lightly active, build muscle: 90kg -> BMR 1880
        response = client.put("/v1/profile", headers=auth_headers, json={"weight_kg": 90})

        assert response.status_code == 200
        assert response.json()["weight_kg"] == 90
        assert response.json()["daily_calorie_goal"] == 2885  # 1880 * 1.375 + 300 = 2885

    def test_financial_status_change_keeps_goal(self, client, auth_headers, test_user):
        before = test_user.daily_calorie_goal
        response = client.put("/v1/profile", headers=auth_headers, json={"financial_status": "premium_gourmet"})

        assert response.status_code == 200
        assert response.json()["financial_status"] == "premium_gourmet"
        assert response.json()["daily_calorie_goal"] == before

    def test_get_profile(self, client, auth_headers, test_user):
        response = client.get("/v1/profile", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["email"] == test_user.email

    @pytest.mark.parametrize("payload", [{"age": 5}, {"height_cm": 10}, {"fitness_goal": "bulk"}])
    def test_update_validation(self, client, auth_headers, payload):
        assert client.put("/v1/profile", headers=auth_headers, json=payload).status_code == 422
