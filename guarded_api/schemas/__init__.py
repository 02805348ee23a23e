from .base import BaseSchema, BaseTimestampSchema
from .delay import DelayResponse, ErrorRateResponse
from .healthcheck import HealthCheckResponse
from .token import LoginRequest, MeResponse, RefreshRequest, TokenResponse
from .user import UserCreate, UserResponse

__all__ = [
    "BaseSchema",
    "BaseTimestampSchema",
    "DelayResponse",
    "ErrorRateResponse",
    "HealthCheckResponse",
    "LoginRequest",
    "MeResponse",
    "RefreshRequest",
    "TokenResponse",
    "UserCreate",
    "UserResponse",
]
