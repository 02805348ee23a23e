import random
from datetime import UTC, datetime
from typing import Annotated

import anyio
from fastapi import APIRouter, Path, status
from fastapi.responses import JSONResponse

from guarded_api.core import responses
from guarded_api.schemas import DelayResponse, ErrorRateResponse

MAX_DELAY_MS = 10000
MAX_RANDOM_DELAY_MS = 1000
MAX_ERROR_RATE = 100

router = APIRouter(responses={status.HTTP_400_BAD_REQUEST: {"model": responses.BadRequestResponse}})


@router.get("/delay/{ms}", response_model=DelayResponse, summary="Fixed delay")
async def delay(ms: Annotated[int, Path(ge=0, le=MAX_DELAY_MS)]):
    """Respond after `ms` milliseconds."""
    await anyio.sleep(ms / 1000)

    return DelayResponse(delay_ms=ms, time=datetime.now(UTC))


@router.get("/random-delay", response_model=DelayResponse, summary="Random delay")
async def random_delay():
    """Respond after a uniformly drawn delay between 0 and 1000 milliseconds."""
    ms = random.randint(0, MAX_RANDOM_DELAY_MS)
    await anyio.sleep(ms / 1000)

    return DelayResponse(delay_ms=ms, time=datetime.now(UTC))


@router.get(
    "/error-rate/{percent}",
    response_model=ErrorRateResponse,
    responses={status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorRateResponse}},
    summary="Simulated error rate",
)
async def error_rate(percent: Annotated[int, Path(ge=0, le=MAX_ERROR_RATE)]):
    """
    Fail with 500 for roughly `percent` percent of the calls.

    The body is the same on success and failure; `success` tells them apart.
    """
    random_value = random.randrange(100)
    should_error = random_value < percent

    result = ErrorRateResponse(
        success=not should_error,
        error_rate_percent=percent,
        random_value=random_value,
        time=datetime.now(UTC),
    )

    if should_error:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=result.model_dump(mode="json"),
        )

    return result
