"""Tests for the fixed-window rate limiter and the rate-limit middleware."""
import pytest
from httpx import AsyncClient

from paperforum.main import api_limiter, auth_limiter
from paperforum.services.rate_limiter import UNKNOWN_CLIENT, FixedWindowRateLimiter


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ---------------------------------------------------------------------------
# FixedWindowRateLimiter
# ---------------------------------------------------------------------------

def test_allows_up_to_max_requests():
    limiter = FixedWindowRateLimiter(window_seconds=60, max_requests=3, clock=FakeClock())
    decisions = [limiter.hit("1.2.3.4") for _ in range(3)]
    assert all(d.allowed for d in decisions)
    assert [d.remaining for d in decisions] == [2, 1, 0]


def test_rejects_with_retry_after_until_window_resets():
    clock = FakeClock()
    limiter = FixedWindowRateLimiter(window_seconds=60, max_requests=2, clock=clock)
    limiter.hit("ip")
    limiter.hit("ip")

    clock.advance(20.5)
    decision = limiter.hit("ip")
    assert decision.allowed is False
    assert decision.remaining == 0
    assert decision.retry_after == 40

    # the reset instant itself still belongs to the old window
    clock.advance(39.5)
    assert limiter.hit("ip").allowed is False

    clock.advance(0.1)
    decision = limiter.hit("ip")
    assert decision.allowed is True
    assert decision.remaining == 1


def test_rejected_requests_do_not_extend_the_window():
    clock = FakeClock()
    limiter = FixedWindowRateLimiter(window_seconds=10, max_requests=1, clock=clock)
    limiter.hit("ip")
    for _ in range(5):
        clock.advance(1)
        limiter.hit("ip")
    clock.advance(5.5)
    assert limiter.hit("ip").allowed is True


def test_keys_are_independent():
    limiter = FixedWindowRateLimiter(window_seconds=60, max_requests=1, clock=FakeClock())
    assert limiter.hit("a").allowed
    assert not limiter.hit("a").allowed
    assert limiter.hit("b").allowed


def test_missing_key_uses_unknown_bucket():
    limiter = FixedWindowRateLimiter(window_seconds=60, max_requests=1, clock=FakeClock())
    assert limiter.hit(None).allowed
    assert not limiter.hit("").allowed
    assert UNKNOWN_CLIENT in limiter


def test_sweep_drops_expired_windows():
    clock = FakeClock()
    limiter = FixedWindowRateLimiter(window_seconds=10, max_requests=5, clock=clock)
    limiter.hit("old")
    clock.advance(8)
    limiter.hit("new")
    clock.advance(3)

    assert limiter.sweep() == 1
    assert "old" not in limiter
    assert "new" in limiter
    assert len(limiter) == 1


@pytest.mark.parametrize("window, max_requests", [(0, 10), (-1, 10), (60, 0)])
def test_invalid_configuration(window, max_requests):
    with pytest.raises(ValueError):
        FixedWindowRateLimiter(window_seconds=window, max_requests=max_requests)


# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_api_limit_returns_429(client: AsyncClient, monkeypatch):
    monkeypatch.setattr(api_limiter, "max_requests", 2)

    assert (await client.get("/api/journals")).status_code == 200
    assert (await client.get("/api/journals")).status_code == 200

    resp = await client.get("/api/journals")
    assert resp.status_code == 429
    body = resp.json()
    assert body["error"] == "Too many requests"
    assert body["retryAfter"] > 0
    assert resp.headers["Retry-After"] == str(body["retryAfter"])
    assert resp.headers["X-Content-Type-Options"] == "nosniff"


@pytest.mark.asyncio
async def test_non_api_paths_are_not_limited(client: AsyncClient, monkeypatch):
    monkeypatch.setattr(api_limiter, "max_requests", 1)
    for _ in range(3):
        assert (await client.get("/")).status_code == 200


@pytest.mark.asyncio
async def test_auth_routes_have_stricter_limit(client: AsyncClient, monkeypatch):
    monkeypatch.setattr(auth_limiter, "max_requests", 2)
    payload = {"email": "nobody@example.com", "password": "password123"}

    assert (await client.post("/api/auth/login", json=payload)).status_code == 401
    assert (await client.post("/api/auth/login", json=payload)).status_code == 401
    assert (await client.post("/api/auth/login", json=payload)).status_code == 429

    # other API routes still answer
    assert (await client.get("/api/journals")).status_code == 200


@pytest.mark.asyncio
async def test_cors_preflights_are_not_counted(client: AsyncClient, monkeypatch):
    monkeypatch.setattr(auth_limiter, "max_requests", 2)
    preflight = {
        "Origin": "http://localhost:3000",
        "Access-Control-Request-Method": "POST",
        "Access-Control-Request-Headers": "content-type",
    }
    for _ in range(5):
        resp = await client.options("/api/auth/login", headers=preflight)
        assert resp.status_code == 200

    payload = {"email": "nobody@example.com", "password": "password123"}
    assert (await client.post("/api/auth/login", json=payload)).status_code == 401
    assert (await client.post("/api/auth/login", json=payload)).status_code == 401


@pytest.mark.asyncio
async def test_429_carries_cors_headers(client: AsyncClient, monkeypatch):
    monkeypatch.setattr(api_limiter, "max_requests", 1)
    origin = {"Origin": "http://localhost:3000"}

    assert (await client.get("/api/journals", headers=origin)).status_code == 200
    resp = await client.get("/api/journals", headers=origin)
    assert resp.status_code == 429
    assert resp.headers["Access-Control-Allow-Origin"] == "http://localhost:3000"
    assert "Retry-After" in resp.headers["Access-Control-Expose-Headers"]
