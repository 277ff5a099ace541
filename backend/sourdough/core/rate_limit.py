"""
Rate limiting for Happy Sourdough Backend
Uses in-memory fixed-window buckets keyed by prefix and client IP
"""
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from fastapi import Request, HTTPException, status
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from sourdough.core.config import settings


@dataclass
class TokenBucket:
    count: int
    reset_time: float


@dataclass
class RateLimitResult:
    success: bool
    limit: int
    remaining: int
    reset: float

    def retry_after(self, now: Optional[float] = None) -> int:
        """Whole seconds until the window resets (at least 1)"""
        now = time.time() if now is None else now
        return max(1, int(self.reset - now + 0.999))


class RateLimiter:
    """
    In-memory rate limiter using fixed windows per token.

    State is per process: it is lost on restart and not shared between
    instances. For production with multiple instances, consider using Redis.
    """

    def __init__(
        self,
        interval_seconds: int = 60,
        max_tokens: int = 500,
        clock: Callable[[], float] = time.time,
    ):
        self.interval_seconds = interval_seconds
        self.max_tokens = max_tokens
        self._clock = clock
        self._buckets: Dict[str, TokenBucket] = {}
        self._last_cleanup = clock()
        self._cleanup_interval = interval_seconds

    def _cleanup_old_entries(self, force: bool = False):
        """Drop expired buckets and trim the map to max_tokens entries"""
        now = self._clock()

        # Only cleanup periodically to avoid overhead
        if not force and now - self._last_cleanup < self._cleanup_interval:
            return

        for token in list(self._buckets.keys()):
            if self._buckets[token].reset_time < now:
                del self._buckets[token]

        if len(self._buckets) > self.max_tokens * 2:
            by_reset = sorted(self._buckets.items(), key=lambda item: item[1].reset_time)
            for token, _ in by_reset[:len(by_reset) - self.max_tokens]:
                del self._buckets[token]

        self._last_cleanup = now

    def check(self, identifier: str, limit: int, prefix: str = "GLOBAL") -> RateLimitResult:
        """
        Count one request for identifier under prefix.

        Returns:
            RateLimitResult with success flag, remaining requests and reset time
        """
        self._cleanup_old_entries()

        now = self._clock()
        token = f"{prefix}_{identifier}"
        bucket = self._buckets.get(token)

        if bucket is None or bucket.reset_time < now:
            reset = now + self.interval_seconds
            self._buckets[token] = TokenBucket(count=1, reset_time=reset)
            return RateLimitResult(success=True, limit=limit, remaining=limit - 1, reset=reset)

        if bucket.count >= limit:
            return RateLimitResult(success=False, limit=limit, remaining=0, reset=bucket.reset_time)

        bucket.count += 1
        return RateLimitResult(
            success=True,
            limit=limit,
            remaining=limit - bucket.count,
            reset=bucket.reset_time,
        )

    def reset(self):
        """Forget every bucket"""
        self._buckets.clear()

    def __len__(self):
        return len(self._buckets)


# Pre-configured limiters: (limiter, requests per window)
WINDOW = settings.RATE_LIMIT_WINDOW_SECONDS

checkout_limiter = RateLimiter(interval_seconds=WINDOW, max_tokens=1000)
discount_limiter = RateLimiter(interval_seconds=WINDOW, max_tokens=500)
api_limiter = RateLimiter(interval_seconds=WINDOW, max_tokens=2000)
strict_limiter = RateLimiter(interval_seconds=WINDOW, max_tokens=500)

RATE_LIMITS = {
    "CHECKOUT": (checkout_limiter, 10),
    "DISCOUNT": (discount_limiter, 20),
    "API": (api_limiter, 100),
    "ORDER_CANCEL": (strict_limiter, 5),
}

# Paths that are exempt from the global limiter
EXEMPT_PATHS = {
    "/",
    "/health",
    "/docs",
    "/openapi.json",
    "/redoc",
    "/api/v1/webhooks/stripe",
}


def get_client_ip(request: Request) -> str:
    """Get the client IP, considering proxies"""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # Take the first IP in the chain (original client)
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    if request.client:
        return request.client.host

    return "unknown"


def rate_limit_headers(result: RateLimitResult) -> Dict[str, str]:
    """Headers describing a rejected request"""
    return {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": "0",
        "X-RateLimit-Reset": str(int(result.reset)),
        "Retry-After": str(result.retry_after()),
    }


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Applies the general API limiter (100 req/min per IP) to every request.

    Headers returned:
    - X-RateLimit-Limit: Maximum requests per window
    - X-RateLimit-Remaining: Remaining requests in current window
    - X-RateLimit-Reset: Epoch seconds when the window resets (when limited)
    """

    async def dispatch(self, request: Request, call_next):
        if request.url.path in EXEMPT_PATHS:
            return await call_next(request)

        # Skip OPTIONS requests (CORS preflight)
        if request.method == "OPTIONS":
            return await call_next(request)

        limiter, limit = RATE_LIMITS["API"]
        result = limiter.check(get_client_ip(request), limit, prefix="API")

        if not result.success:
            # Return JSONResponse instead of raising HTTPException
            # so the response still goes through the CORS middleware
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={
                    "detail": "Too many requests. Please try again later.",
                    "retry_after": result.retry_after(),
                },
                headers=rate_limit_headers(result),
            )

        response = await call_next(request)

        # An endpoint limiter that rejected the request already set its own headers
        if "X-RateLimit-Limit" not in response.headers:
            response.headers["X-RateLimit-Limit"] = str(limit)
            response.headers["X-RateLimit-Remaining"] = str(result.remaining)

        return response


def rate_limit(name: str):
    """
    Dependency factory applying one of the named limiters to an endpoint.

    Usage:
        @router.post("/validate")
        async def validate(_: None = Depends(rate_limit("DISCOUNT"))):
            pass
    """
    limiter, limit = RATE_LIMITS[name]

    async def checker(request: Request):
        result = limiter.check(get_client_ip(request), limit, prefix=name)
        if not result.success:
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many requests. Please try again later.",
                headers=rate_limit_headers(result),
            )

    return checker
