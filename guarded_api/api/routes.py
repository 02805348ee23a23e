from datetime import UTC, datetime

from fastapi import APIRouter

from guarded_api.api.endpoints import auth, delay, users
from guarded_api.schemas import HealthCheckResponse
from guarded_api.services.pipeline import Pipeline


async def health_check():
    return HealthCheckResponse(status="ok", timestamp=datetime.now(UTC))


def build_api_router(pipeline: Pipeline) -> APIRouter:
    """
    Assemble every route of the service.

    Health, delay and error-rate routes have no per-route chain.
    """
    api_router = APIRouter()

    api_router.add_api_route(
        "/health",
        health_check,
        methods=["GET"],
        response_model=HealthCheckResponse,
        tags=["Health"],
        summary="Health Check",
    )

    api_router.include_router(
        users.build_router(pipeline.protected),
        prefix="/users",
        tags=["Users"],
    )

    api_router.include_router(
        auth.build_router(pipeline.protected, pipeline.authenticated),
        prefix="/auth",
        tags=["Auth"],
    )

    api_router.include_router(
        delay.router,
        tags=["Simulation"],
    )

    return api_router
