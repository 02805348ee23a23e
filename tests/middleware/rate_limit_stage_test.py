from unittest.mock import MagicMock, patch

import pytest
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from httpx import ASGITransport, AsyncClient

from guarded_api.core.config import Settings
from guarded_api.main import create_app
from guarded_api.middleware.rate_limit import RateLimitStage
from guarded_api.services.rate_limiter import RateLimiter, RateLimitPolicy


@pytest.fixture
def limited_app(test_settings: Settings) -> FastAPI:
    return create_app(test_settings.model_copy(update={"rate_limit_requests": 100}))


def make_request(ip: str) -> MagicMock:
    request = MagicMock(spec=Request)
    request.method = "GET"
    request.url = MagicMock(path="/health")
    request.client = MagicMock(host=ip)
    request.headers = {}
    return request


async def ok(request):
    return PlainTextResponse("ok")


@pytest.mark.anyio
class TestRateLimitStage:
    """Tests for RateLimitStage."""

    async def test_denied_request_gets_429(self):
        stage = RateLimitStage(RateLimiter(RateLimitPolicy(limit=1, window=60)))

        with patch("guarded_api.core.security_events.logger") as mock_logger:
            first = await stage.dispatch(make_request("10.0.0.1"), ok)
            second = await stage.dispatch(make_request("10.0.0.1"), ok)

        assert first.status_code == 200
        assert second.status_code == 429
        assert second.headers["Retry-After"] == "60"
        mock_logger.bind.assert_called_once()

    async def test_hundred_requests_pass_and_next_is_limited(self, limited_app: FastAPI):
        """limit=100, window=60s: the 101st request is answered with 429 and a 60s hint."""
        async with AsyncClient(
            transport=ASGITransport(app=limited_app), base_url="http://test"
        ) as client:
            statuses = [(await client.get("/health")).status_code for _ in range(100)]
            limited = await client.get("/health")

        assert statuses == [200] * 100
        assert limited.status_code == 429
        assert limited.headers["retry-after"] == "60"
        assert limited.json() == {
            "detail": "rate limit exceeded",
            "code": "rate_limited",
            "retry_after": 60,
        }

    async def test_limited_response_still_gets_security_headers(self, limited_app: FastAPI):
        async with AsyncClient(
            transport=ASGITransport(app=limited_app), base_url="http://test"
        ) as client:
            for _ in range(100):
                await client.get("/health")
            limited = await client.get("/health")

        assert limited.status_code == 429
        assert limited.headers["x-frame-options"] == "DENY"
        assert "x-request-id" in limited.headers

    async def test_clients_are_keyed_by_forwarded_address(self, limited_app: FastAPI):
        async with AsyncClient(
            transport=ASGITransport(app=limited_app), base_url="http://test"
        ) as client:
            for _ in range(100):
                await client.get("/health", headers={"X-Forwarded-For": "203.0.113.1"})

            limited = await client.get("/health", headers={"X-Forwarded-For": "203.0.113.1"})
            other = await client.get("/health", headers={"X-Forwarded-For": "203.0.113.2"})

        assert limited.status_code == 429
        assert other.status_code == 200
