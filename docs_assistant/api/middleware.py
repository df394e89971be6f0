"""
Rate limiting middleware for the chat endpoint.
"""

import logging
import math
import time

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from docs_assistant.utils.rate_limit import RateGovernor

logger = logging.getLogger(__name__)

RATE_LIMITED_PREFIX = "/api/chat"
ANONYMOUS_IDENTITY = "anonymous"


def client_identity(request: Request) -> str:
    """First X-Forwarded-For address, then X-Real-IP, then a shared anonymous key."""
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first
    return request.headers.get("x-real-ip") or ANONYMOUS_IDENTITY


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Admit or reject /api/chat requests through a RateGovernor."""

    def __init__(self, app, governor: RateGovernor):
        super().__init__(app)
        self.governor = governor

    async def dispatch(self, request: Request, call_next):
        if not request.url.path.startswith(RATE_LIMITED_PREFIX):
            return await call_next(request)

        identity = client_identity(request)
        result = self.governor.check(identity)

        if not result.allowed:
            reset_ms = result.reset_time_ms or 0
            retry_after = math.ceil(reset_ms / 1000)
            logger.info(f"[RATE LIMIT] Rejected {identity}, resets in {reset_ms}ms")
            return JSONResponse(
                status_code=429,
                content={
                    "error": "Rate limit exceeded",
                    "message": f"Too many requests. Please try again in {retry_after} seconds.",
                },
                headers={
                    "X-RateLimit-Limit": str(self.governor.limit),
                    "X-RateLimit-Remaining": "0",
                    "X-RateLimit-Reset": str(int(time.time() * 1000) + reset_ms),
                    "Retry-After": str(retry_after),
                },
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(self.governor.limit)
        response.headers["X-RateLimit-Remaining"] = str(result.remaining)
        return response
