"""
Error envelopes for unexpected failures, rate limiting and request timeouts.
"""
import asyncio
from dataclasses import replace

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI

from core.config import WebConfig
from core.repositories import AccountRepository
from web.main import create_app
from web.middleware import RequestTimeoutMiddleware
from web.routes.api._deps import limiter


@pytest_asyncio.fixture
async def tolerant_client(app, token):
    """Client that returns 500 responses instead of re-raising app errors."""
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(
        transport=transport,
        base_url="http://testserver",
        headers={"Authorization": f"Bearer {token}"},
    ) as c:
        yield c


@pytest_asyncio.fixture
async def limited_client(config, db):
    """Client for an app with rate limiting on, starting from empty counters."""
    limiter.reset()
    app = create_app(replace(config, web=WebConfig(rate_limit_enabled=True)), db)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c
    limiter.reset()
    limiter.enabled = False


class TestUnexpectedError:
    """Unhandled exceptions become a generic 500 envelope."""

    @pytest.mark.asyncio
    async def test_generic_500(self, tolerant_client, monkeypatch):
        async def broken(self, *args, **kwargs):
            raise RuntimeError("disk on fire")

        monkeypatch.setattr(AccountRepository, "find_many", broken)

        response = await tolerant_client.get("/api/v1/accounts")
        assert response.status_code == 500
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "Internal server error"
        assert "disk on fire" not in response.text


class TestRateLimit:
    """slowapi limits surface as a 429 envelope."""

    @pytest.mark.asyncio
    async def test_login_limited_after_ten_attempts(self, limited_client):
        credentials = {"email": "nobody@example.com", "password": "wrong"}
        for _ in range(10):
            response = await limited_client.post("/api/v1/auth/login", json=credentials)
            assert response.status_code == 401

        response = await limited_client.post("/api/v1/auth/login", json=credentials)
        assert response.status_code == 429
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "Rate limit exceeded"
        assert "10 per 1 minute" in body["retry_after"]


class TestRequestTimeout:
    """RequestTimeoutMiddleware answers 504 for slow requests."""

    @pytest.fixture
    def slow_app(self) -> FastAPI:
        app = FastAPI()

        @app.get("/api/v1/slow")
        async def slow():
            await asyncio.sleep(1)
            return {"success": True}

        @app.get("/api/v1/health")
        async def health():
            await asyncio.sleep(0.1)
            return {"success": True}

        app.add_middleware(RequestTimeoutMiddleware, timeout=0.05)
        return app

    @pytest.mark.asyncio
    async def test_slow_request(self, slow_app):
        transport = httpx.ASGITransport(app=slow_app)
        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
            response = await c.get("/api/v1/slow")

        assert response.status_code == 504
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "Request Timeout"

    @pytest.mark.asyncio
    async def test_health_is_exempt(self, slow_app):
        transport = httpx.ASGITransport(app=slow_app)
        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
            response = await c.get("/api/v1/health")
        assert response.status_code == 200
