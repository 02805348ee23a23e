from typing import AsyncIterator

import pytest
from httpx import AsyncClient

UNTRUSTED = {"Origin": "https://evil.example", "X-Requested-With": "XMLHttpRequest"}


async def oversized_body() -> AsyncIterator[bytes]:
    for _ in range(4):
        yield b"x" * 1024


@pytest.mark.anyio
class TestHealth:
    async def test_health(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert "timestamp" in response.json()


@pytest.mark.anyio
class TestRouteChains:
    """Each route runs behind the chain it is registered with."""

    @pytest.mark.parametrize(
        "method, path",
        [
            ("POST", "/users"),
            ("PUT", "/users/1"),
            ("DELETE", "/users/1"),
            ("POST", "/auth/login"),
            ("POST", "/auth/refresh"),
        ],
    )
    async def test_protected_routes_check_csrf(self, client: AsyncClient, method, path):
        response = await client.request(method, path, json={}, headers=UNTRUSTED)

        assert response.status_code == 403
        assert response.json()["code"] == "disallowed_origin"

    @pytest.mark.parametrize(
        "method, path",
        [
            ("GET", "/users"),
            ("GET", "/users/1"),
            ("POST", "/users"),
            ("PUT", "/users/1"),
            ("DELETE", "/users/1"),
            ("POST", "/auth/login"),
            ("POST", "/auth/refresh"),
        ],
    )
    async def test_protected_routes_limit_body(self, client: AsyncClient, method, path):
        response = await client.request(method, path, content=oversized_body())

        assert response.status_code == 413

    async def test_safe_method_passes_csrf(self, client: AsyncClient):
        response = await client.get("/users", headers=UNTRUSTED)

        assert response.status_code == 200

    async def test_identity_route_requires_token(self, client: AsyncClient):
        response = await client.get("/auth/me", headers=UNTRUSTED)

        assert response.status_code == 401
        assert response.json()["code"] == "missing_header"

    async def test_identity_route_has_no_body_limit(self, client: AsyncClient, tokens: dict):
        response = await client.request(
            "GET",
            "/auth/me",
            content=oversized_body(),
            headers={"Authorization": f"Bearer {tokens['access_token']}"},
        )

        assert response.status_code == 200

    @pytest.mark.parametrize("path", ["/health", "/delay/0", "/error-rate/0"])
    async def test_unchained_routes(self, client: AsyncClient, path: str):
        response = await client.request("GET", path, content=oversized_body(), headers=UNTRUSTED)

        assert response.status_code == 200
