from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient


@pytest.mark.anyio
class TestDelay:
    """Tests for the delay endpoints."""

    async def test_fixed_delay(self, client: AsyncClient):
        with patch("guarded_api.api.endpoints.delay.anyio.sleep", new_callable=AsyncMock) as sleep:
            response = await client.get("/delay/250")

        assert response.status_code == 200
        assert response.json()["delay_ms"] == 250
        assert "time" in response.json()
        sleep.assert_awaited_once_with(0.25)

    async def test_zero_delay(self, client: AsyncClient):
        response = await client.get("/delay/0")

        assert response.status_code == 200
        assert response.json()["delay_ms"] == 0

    @pytest.mark.parametrize("value", ["-1", "10001", "abc"])
    async def test_invalid_delay(self, client: AsyncClient, value: str):
        response = await client.get(f"/delay/{value}")

        assert response.status_code == 400

    async def test_random_delay(self, client: AsyncClient):
        with patch("guarded_api.api.endpoints.delay.anyio.sleep", new_callable=AsyncMock):
            with patch("guarded_api.api.endpoints.delay.random.randint", return_value=420):
                response = await client.get("/random-delay")

        assert response.status_code == 200
        assert response.json()["delay_ms"] == 420


@pytest.mark.anyio
class TestErrorRate:
    """Tests for GET /error-rate/{percent}."""

    async def test_draw_below_rate_fails(self, client: AsyncClient):
        with patch("guarded_api.api.endpoints.delay.random.randrange", return_value=29):
            response = await client.get("/error-rate/30")

        assert response.status_code == 500
        body = response.json()
        assert body["success"] is False
        assert body["error_rate_percent"] == 30
        assert body["random_value"] == 29

    async def test_draw_at_rate_succeeds(self, client: AsyncClient):
        with patch("guarded_api.api.endpoints.delay.random.randrange", return_value=30):
            response = await client.get("/error-rate/30")

        assert response.status_code == 200
        assert response.json()["success"] is True

    async def test_zero_percent_never_fails(self, client: AsyncClient):
        statuses = {(await client.get("/error-rate/0")).status_code for _ in range(20)}

        assert statuses == {200}

    async def test_hundred_percent_always_fails(self, client: AsyncClient):
        statuses = {(await client.get("/error-rate/100")).status_code for _ in range(20)}

        assert statuses == {500}

    @pytest.mark.parametrize("value", ["-5", "101", "ten"])
    async def test_invalid_rate(self, client: AsyncClient, value: str):
        response = await client.get(f"/error-rate/{value}")

        assert response.status_code == 400
