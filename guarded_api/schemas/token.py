from pydantic import Field, SecretStr

from guarded_api.core.constants import FieldSizes, TokenLifetime
from guarded_api.schemas.base import BaseSchema


class LoginRequest(BaseSchema):
    """Login credentials"""

    email: str = Field(max_length=FieldSizes.EMAIL)
    password: SecretStr


class RefreshRequest(BaseSchema):
    """Token payload for refresh token"""

    refresh_token: str


class TokenResponse(BaseSchema):
    """Token response schema"""

    access_token: str
    refresh_token: str
    expires_in: int = TokenLifetime.ACCESS_SECONDS


class MeResponse(BaseSchema):
    user_id: int
    email: str
