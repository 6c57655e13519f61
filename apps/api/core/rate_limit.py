"""
Rate Limiting Middleware

Fixed-window counters in Redis, per caller and per endpoint.
Plan generation endpoints get tighter limits because each request is an
LLM call.
"""
import time
import logging
from typing import Tuple
from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from core.config import settings
from core.cache import get_redis_client
from core.security import decode_access_token

logger = logging.getLogger(__name__)

EXEMPT_PATHS = {"/health", "/ping", "/docs", "/openapi.json", "/redoc"}


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Rate limiting middleware."""

    def __init__(self, app, default_limit: int = 60, window: int = 60):
        super().__init__(app)
        self.default_limit = default_limit
        self.window = window  # Time window in seconds

        # Per-endpoint limits (requests per window)
        self.endpoint_limits = {
            "/v1/workouts/plans/generate": 3,
            "/v1/meal-plans/generate": 3,
            "/v1/meals/parse": 20,
            "/v1/meals/parse-image": 10,
            "/v1/meals/from-image": 10,
            "/v1/coach/chat": 20,
            "/v1/auth/login": 10,
        }

    async def dispatch(self, request: Request, call_next):
        if not settings.RATE_LIMIT_ENABLED or request.url.path in EXEMPT_PATHS:
            return await call_next(request)

        caller = self._get_caller_id(request)
        limit = self._get_endpoint_limit(request.url.path)

        allowed, remaining, reset_time = self._check_rate_limit(
            caller=caller,
            endpoint=request.url.path,
            limit=limit,
            window=self.window
        )

        if not allowed:
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={
                    "detail": "Rate limit exceeded",
                    "error_code": "RATE_LIMITED",
                    "limit": limit,
                    "window": self.window,
                    "reset_at": reset_time
                },
                headers={
                    "X-RateLimit-Limit": str(limit),
                    "X-RateLimit-Remaining": "0",
                    "X-RateLimit-Reset": str(reset_time),
                    "Retry-After": str(max(0, int(reset_time - time.time())))
                }
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(limit)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        response.headers["X-RateLimit-Reset"] = str(reset_time)
        return response

    def _get_caller_id(self, request: Request) -> str:
        """User ID from the bearer token, else client IP."""
        auth_header = request.headers.get("Authorization", "")
        if auth_header.startswith("Bearer "):
            payload = decode_access_token(auth_header.split(" ", 1)[1])
            if payload and payload.get("sub"):
                return f"user:{payload['sub']}"

        client_ip = request.client.host if request.client else "unknown"
        return f"ip:{client_ip}"

    def _get_endpoint_limit(self, path: str) -> int:
        if path in self.endpoint_limits:
            return self.endpoint_limits[path]
        return self.default_limit

    def _check_rate_limit(
        self,
        caller: str,
        endpoint: str,
        limit: int,
        window: int
    ) -> Tuple[bool, int, int]:
        """
        Returns:
            (allowed, remaining, reset_time)
        """
        redis_client = get_redis_client()

        if not redis_client:
            # If Redis unavailable, allow request (graceful degradation)
            return True, limit, int(time.time()) + window

        key = f"rate_limit:{caller}:{endpoint}"

        try:
            current = redis_client.get(key)

            if current is None:
                redis_client.setex(key, window, 1)
                return True, limit - 1, int(time.time()) + window

            if int(current) >= limit:
                ttl = redis_client.ttl(key)
                reset_time = int(time.time()) + (ttl if ttl > 0 else window)
                return False, 0, reset_time

            new_count = redis_client.incr(key)
            if new_count == 1:
                redis_client.expire(key, window)

            ttl = redis_client.ttl(key)
            reset_time = int(time.time()) + (ttl if ttl > 0 else window)
            return True, max(0, limit - new_count), reset_time

        except Exception as e:
            # On error, allow request (fail open)
            logger.error(f"Rate limit check error: {e}")
            return True, limit, int(time.time()) + window
