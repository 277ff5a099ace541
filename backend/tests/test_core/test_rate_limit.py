"""
Unit tests for the in-memory rate limiter
"""
import pytest
from fastapi import FastAPI, Depends
from fastapi.testclient import TestClient

from sourdough.core.rate_limit import RateLimiter, RateLimitMiddleware, rate_limit


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


class TestRateLimiter:
    """Test fixed-window counting"""

    def test_allows_up_to_limit(self, clock):
        limiter = RateLimiter(interval_seconds=60, clock=clock)

        results = [limiter.check("1.2.3.4", 3, prefix="CHECKOUT") for _ in range(4)]

        assert [r.success for r in results] == [True, True, True, False]
        assert [r.remaining for r in results] == [2, 1, 0, 0]
        assert results[0].reset == 1060

    def test_window_resets(self, clock):
        limiter = RateLimiter(interval_seconds=60, clock=clock)
        for _ in range(3):
            limiter.check("ip", 3)

        clock.now += 61

        assert limiter.check("ip", 3).success

    def test_prefixes_are_independent(self, clock):
        limiter = RateLimiter(interval_seconds=60, clock=clock)

        limiter.check("ip", 1, prefix="DISCOUNT")

        assert limiter.check("ip", 1, prefix="CHECKOUT").success
        assert not limiter.check("ip", 1, prefix="DISCOUNT").success

    def test_retry_after(self, clock):
        limiter = RateLimiter(interval_seconds=60, clock=clock)
        limiter.check("ip", 1)
        clock.now += 20

        result = limiter.check("ip", 1)

        assert result.retry_after(now=clock.now) == 40

    def test_cleanup_drops_expired_buckets(self, clock):
        limiter = RateLimiter(interval_seconds=60, clock=clock)
        limiter.check("a", 5)
        limiter.check("b", 5)

        clock.now += 120
        limiter.check("c", 5)

        assert len(limiter) == 1

    def test_cleanup_trims_to_max_tokens(self, clock):
        limiter = RateLimiter(interval_seconds=60, max_tokens=2, clock=clock)
        for i in range(5):
            clock.now += 1
            limiter.check(f"ip-{i}", 5)

        limiter._cleanup_old_entries(force=True)

        assert len(limiter) == 2


@pytest.fixture
def limited_app():
    app = FastAPI()
    app.add_middleware(RateLimitMiddleware)

    @app.post("/checkout", dependencies=[Depends(rate_limit("CHECKOUT"))])
    async def checkout():
        return {"ok": True}

    @app.get("/health")
    async def health():
        return {"ok": True}

    return TestClient(app)


class TestRateLimitHttp:
    """Test the middleware and the endpoint dependency"""

    def test_endpoint_limit(self, limited_app):
        responses = [limited_app.post("/checkout") for _ in range(11)]

        assert [r.status_code for r in responses[:10]] == [200] * 10
        assert responses[10].status_code == 429
        assert responses[10].json()["detail"] == "Too many requests. Please try again later."
        assert responses[10].headers["X-RateLimit-Limit"] == "10"
        assert responses[10].headers["X-RateLimit-Remaining"] == "0"
        assert "Retry-After" in responses[10].headers

    def test_middleware_adds_headers(self, limited_app):
        response = limited_app.post("/checkout")

        assert response.headers["X-RateLimit-Limit"] == "100"
        assert response.headers["X-RateLimit-Remaining"] == "99"

    def test_exempt_paths(self, limited_app):
        response = limited_app.get("/health")

        assert "X-RateLimit-Limit" not in response.headers

    def test_forwarded_for_identifies_client(self, limited_app):
        for _ in range(10):
            limited_app.post("/checkout", headers={"X-Forwarded-For": "10.0.0.1, 172.16.0.1"})

        blocked = limited_app.post("/checkout", headers={"X-Forwarded-For": "10.0.0.1"})
        other = limited_app.post("/checkout", headers={"X-Forwarded-For": "10.0.0.2"})

        assert blocked.status_code == 429
        assert other.status_code == 200
