from datetime import datetime

from pydantic import Field

from guarded_api.schemas.base import BaseSchema


class DelayResponse(BaseSchema):
    delay_ms: int
    time: datetime


class ErrorRateResponse(BaseSchema):
    """Outcome of one draw against the requested error rate"""

    success: bool
    error_rate_percent: int = Field(ge=0, le=100)
    random_value: int = Field(ge=0, lt=100)
    time: datetime
