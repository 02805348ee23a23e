from datetime import datetime

from guarded_api.schemas.base import BaseSchema


class HealthCheckResponse(BaseSchema):
    """Schema for health check response"""

    status: str
    timestamp: datetime
