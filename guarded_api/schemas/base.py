from datetime import datetime

from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    """Base schema with common configuration"""

    model_config = ConfigDict(
        from_attributes=True,
        extra="ignore",
    )


class BaseTimestampSchema(BaseSchema):
    """Base schema with timestamp fields"""

    created_at: datetime
    updated_at: datetime
