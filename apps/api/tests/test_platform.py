"""
Health endpoints, error envelope, structured logging and the Redis rate limiter.
"""

import json
import logging

from fastapi import FastAPI
from fastapi.testclient import TestClient

from core import rate_limit
from core.config import settings
from core.logging import JSONFormatter, setup_logging
from core.rate_limit import RateLimitMiddleware


class FakeRedis:
    def __init__(self):
        self.values = {}

    def get(self, key):
        return self.values.get(key)

    def setex(self, key, window, value):
        self.values[key] = value

    def incr(self, key):
        self.values[key] = int(self.values.get(key, 0)) + 1
        return self.values[key]

    def expire(self, key, window):
        pass

    def ttl(self, key):
        return 42


def _limited_app():
    app = FastAPI()
    app.add_middleware(RateLimitMiddleware, default_limit=2, window=60)

    @app.get("/v1/things")
    def things():
        return {"ok": True}

    @app.get("/health")
    def health():
        return {"status": "healthy"}

    return app


def test_ping_and_health(client):
    assert client.get("/ping").json() == {"pong": True}
    assert client.get("/health").json()["status"] == "healthy"


def test_not_found_error_envelope(client, auth_headers):
    response = client.get(
        "/v1/workouts/exercises/00000000-0000-0000-0000-000000000000/progress", headers=auth_headers
    )
    assert response.status_code == 404
    assert set(response.json()) == {"detail", "error_code"}


def test_json_formatter_includes_extra_fields():
    record = logging.LogRecord("homefit", logging.INFO, __file__, 10, "Logged meal", None, None)
    record.extra_fields = {"user_id": "abc", "calories": 450}

    data = json.loads(JSONFormatter().format(record))

    assert data["message"] == "Logged meal"
    assert data["level"] == "INFO"
    assert data["user_id"] == "abc"
    assert data["calories"] == 450


def test_setup_logging_json_and_quiet_clients(monkeypatch):
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    monkeypatch.setattr(settings, "LOG_FORMAT", "json")
    try:
        setup_logging()

        assert isinstance(root.handlers[0].formatter, JSONFormatter)
        assert logging.getLogger("openai").level == logging.WARNING
        assert logging.getLogger("google_genai").level == logging.WARNING
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)

def test_rate_limit_blocks_after_limit(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(settings, "RATE_LIMIT_ENABLED", True)
    monkeypatch.setattr(rate_limit, "get_redis_client", lambda: fake)
    client = TestClient(_limited_app())

    first = client.get("/v1/things")
    second = client.get("/v1/things")
    third = client.get("/v1/things")

    assert first.status_code == 200
    assert first.headers["X-RateLimit-Remaining"] == "1"
    assert second.status_code == 200
    assert third.status_code == 429
    assert third.json()["error_code"] == "RATE_LIMITED"
    assert third.headers["X-RateLimit-Remaining"] == "0"


def test_rate_limit_exempts_health(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(settings, "RATE_LIMIT_ENABLED", True)
    monkeypatch.setattr(rate_limit, "get_redis_client", lambda: fake)
    client = TestClient(_limited_app())

    for _ in range(5):
        assert client.get("/health").status_code == 200
    assert fake.values == {}


def test_rate_limit_fails_open_without_redis(monkeypatch):
    monkeypatch.setattr(settings, "RATE_LIMIT_ENABLED", True)
    monkeypatch.setattr(rate_limit, "get_redis_client", lambda: None)
    client = TestClient(_limited_app())

    for _ in range(5):
        assert client.get("/v1/things").status_code == 200
