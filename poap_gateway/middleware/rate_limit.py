"""
Rate Limit Middleware for Gateway

Applies the per-IP fixed-window limits from utils.rate_limiter:
- /api/auth/register and /api/auth/login → "auth" bucket (stricter)
- every other /api/* path → "api" bucket
- everything else (health, uploads, metrics) is not limited

Auth routes count against both buckets, like stacked limiters.
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from poap_gateway.config import settings
from poap_gateway.utils import rate_limiter

AUTH_LIMITED_PATHS = ("/api/auth/register", "/api/auth/login")


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Reject over-limit callers with 429 before the request reaches a router.

    Example:
        from poap_gateway.middleware.rate_limit import RateLimitMiddleware
        app.add_middleware(RateLimitMiddleware)
    """

    async def dispatch(self, request: Request, call_next):
        path = request.url.path

        if not settings.RATE_LIMIT_ENABLED or not path.startswith("/api/") or request.method == "OPTIONS":
            return await call_next(request)

        ip = client_ip(request)
        buckets = [rate_limiter.API_BUCKET]
        if path.rstrip("/") in AUTH_LIMITED_PATHS:
            buckets.append(rate_limiter.AUTH_BUCKET)

        for bucket in buckets:
            allowed, stats = rate_limiter.check_rate_limit(bucket, ip)
            if not allowed:
                return JSONResponse(
                    status_code=429,
                    content={"success": False, "error": rate_limiter.RATE_LIMIT_MESSAGES[bucket]},
                    headers={
                        "RateLimit-Limit": str(stats["limit"]),
                        "RateLimit-Remaining": "0",
                    },
                )

        return await call_next(request)
