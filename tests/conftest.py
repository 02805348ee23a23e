from typing import AsyncGenerator

import pytest
from faker import Faker
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from guarded_api.core.config import Environment, Settings
from guarded_api.main import create_app
from guarded_api.services.pipeline import Pipeline
from tests.utils import ALICE_EMAIL, TEST_ORIGIN, TEST_PASSWORD


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def test_settings() -> Settings:
    """Settings isolated from the environment of the machine running the tests."""
    return Settings(
        current_environment=Environment.DEV,
        jwt_secret="test-signing-secret",
        rate_limit_requests=1000,
        rate_limit_window=60,
        body_limit_bytes=1024,
        cors_origins=TEST_ORIGIN,
        csrf_allowed_origins=TEST_ORIGIN,
        csrf_strict_mode=False,
        test_user_password=TEST_PASSWORD,
        log_to_file=False,
    )


@pytest.fixture
def test_app(test_settings: Settings) -> FastAPI:
    """Create a fresh application, with its own user store and rate limiter."""
    return create_app(test_settings)


@pytest.fixture
def pipeline(test_app: FastAPI) -> Pipeline:
    return test_app.state.pipeline


@pytest.fixture
async def client(test_app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client for testing."""
    async with AsyncClient(transport=ASGITransport(app=test_app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def faker() -> Faker:
    """Create a Faker instance for generating test data."""
    return Faker()


@pytest.fixture
def browser_headers() -> dict[str, str]:
    """Headers a scripted browser client on a trusted origin sends."""
    return {"Origin": TEST_ORIGIN, "X-Requested-With": "XMLHttpRequest"}


@pytest.fixture
async def tokens(client: AsyncClient) -> dict:
    """Log in as the seeded user Alice."""
    response = await client.post(
        "/auth/login", json={"email": ALICE_EMAIL, "password": TEST_PASSWORD}
    )
    assert response.status_code == 200
    return response.json()
