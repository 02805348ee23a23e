from unittest.mock import MagicMock

import pytest
from fastapi import Request
from fastapi.responses import PlainTextResponse

from guarded_api.middleware.cors import CORSStage
from tests.utils import TEST_ORIGIN

ALLOWED_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
ALLOWED_HEADERS = ["Content-Type", "Authorization", "X-Requested-With"]


@pytest.fixture
def stage() -> CORSStage:
    return CORSStage([TEST_ORIGIN], ALLOWED_METHODS, ALLOWED_HEADERS)


def make_request(method: str, headers: dict) -> MagicMock:
    request = MagicMock(spec=Request)
    request.method = method
    request.headers = headers
    return request


async def ok(request):
    return PlainTextResponse("ok")


@pytest.mark.anyio
class TestCORSStage:
    """Tests for CORS header emission."""

    async def test_echoes_allowed_origin(self, stage: CORSStage):
        response = await stage.dispatch(make_request("GET", {"Origin": TEST_ORIGIN}), ok)

        assert response.headers["Access-Control-Allow-Origin"] == TEST_ORIGIN
        assert response.headers["Vary"] == "Origin"

    async def test_disallowed_origin_gets_no_allow_origin(self, stage: CORSStage):
        response = await stage.dispatch(
            make_request("GET", {"Origin": "https://evil.example"}), ok
        )

        assert "Access-Control-Allow-Origin" not in response.headers
        assert response.body == b"ok"

    async def test_no_origin_gets_wildcard(self, stage: CORSStage):
        response = await stage.dispatch(make_request("GET", {}), ok)

        assert response.headers["Access-Control-Allow-Origin"] == "*"

    async def test_wildcard_allow_list_echoes_any_origin(self):
        stage = CORSStage(["*"], ALLOWED_METHODS, ALLOWED_HEADERS)

        response = await stage.dispatch(
            make_request("GET", {"Origin": "https://anything.example"}), ok
        )

        assert response.headers["Access-Control-Allow-Origin"] == "https://anything.example"

    async def test_sets_methods_and_headers(self, stage: CORSStage):
        response = await stage.dispatch(make_request("GET", {}), ok)

        assert response.headers["Access-Control-Allow-Methods"] == "GET, POST, PUT, DELETE, OPTIONS"
        assert (
            response.headers["Access-Control-Allow-Headers"]
            == "Content-Type, Authorization, X-Requested-With"
        )

    async def test_preflight_answered_without_calling_next(self, stage: CORSStage):
        async def call_next(request):
            raise AssertionError("preflight must not reach the router")

        response = await stage.dispatch(make_request("OPTIONS", {"Origin": TEST_ORIGIN}), call_next)

        assert response.status_code == 200
        assert response.headers["Access-Control-Allow-Origin"] == TEST_ORIGIN

    async def test_preflight_on_application(self, client):
        response = await client.options(
            "/users",
            headers={"Origin": TEST_ORIGIN, "Access-Control-Request-Method": "POST"},
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == TEST_ORIGIN
