import pytest
from fastapi.testclient import TestClient

from app.infra import security
from app.infra.security import InMemoryRateLimiter, create_rate_limiter
from app.main import create_app
from tests.conftest import StubAiBackend, make_settings


class FakeClock:
    def __init__(self, now: float = 1_000_000.0) -> None:
        self.now = now

    def time(self) -> float:
        return self.now


@pytest.fixture()
def clock(monkeypatch):
    fake = FakeClock()
    monkeypatch.setattr(security, "time", fake)
    return fake


@pytest.mark.anyio
async def test_inmemory_rate_limiter_blocks_after_limit():
    limiter = InMemoryRateLimiter(max_requests=2, window_seconds=60)

    assert await limiter.allow("client-1")
    assert await limiter.allow("client-1")
    assert not await limiter.allow("client-1")
    assert await limiter.allow("client-2")


@pytest.mark.anyio
async def test_inmemory_rate_limiter_reset_clears_state():
    limiter = InMemoryRateLimiter(max_requests=1, window_seconds=60)

    assert await limiter.allow("client-1")
    await limiter.reset()

    assert await limiter.allow("client-1")


@pytest.mark.anyio
async def test_window_slides_forward(clock):
    limiter = InMemoryRateLimiter(max_requests=1, window_seconds=900)

    assert await limiter.allow("client-3")
    clock.now += 899
    assert not await limiter.allow("client-3")
    clock.now += 2
    assert await limiter.allow("client-3")


@pytest.mark.anyio
async def test_idle_clients_are_pruned(clock):
    limiter = InMemoryRateLimiter(max_requests=5, window_seconds=60)

    assert await limiter.allow("idle")
    clock.now += 120
    assert await limiter.allow("active")

    assert "idle" not in limiter._requests
    assert "active" in limiter._requests


def test_create_rate_limiter_uses_configured_window():
    limiter = create_rate_limiter(make_settings(rate_limit_max_requests=7, rate_limit_window_seconds=60))

    assert isinstance(limiter, InMemoryRateLimiter)
    assert limiter.max_requests == 7
    assert limiter.window_seconds == 60


def test_api_requests_are_limited_but_health_is_exempt(faq_table):
    app = create_app(make_settings(rate_limit_max_requests=2), ai_backend=StubAiBackend(), faq_table=faq_table)
    with TestClient(app) as client:
        assert client.get("/api/chat/config").status_code == 200
        assert client.get("/api/chat/config").status_code == 200
        blocked = client.get("/api/chat/config")
        assert blocked.status_code == 429
        assert blocked.json()["type"].endswith("rate-limit")
        assert blocked.headers["Retry-After"] == str(15 * 60)
        assert client.get("/api/health").status_code == 200
        assert client.get("/healthz").status_code == 200


def test_forwarded_for_header_does_not_pick_the_bucket(faq_table):
    app = create_app(make_settings(rate_limit_max_requests=1), ai_backend=StubAiBackend(), faq_table=faq_table)
    with TestClient(app) as client:
        assert client.get("/api/chat/config", headers={"X-Forwarded-For": "203.0.113.1"}).status_code == 200
        blocked = client.get("/api/chat/config", headers={"X-Forwarded-For": "203.0.113.2"})
        assert blocked.status_code == 429
