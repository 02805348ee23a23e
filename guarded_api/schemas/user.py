import re
from typing import Any

from email_validator import EmailNotValidError, validate_email
from pydantic import Field, field_validator

from guarded_api.core.constants import FieldSizes
from guarded_api.schemas.base import BaseSchema, BaseTimestampSchema

HTML_TAG_REGEX = re.compile(r"<[^>]*>")
# Control characters except tab, newline and carriage return
CONTROL_CHARS_REGEX = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
NAME_FORBIDDEN_CHARS_REGEX = re.compile(r"[\x00-\x08\x0B-\x1F\x7F]")
USER_EMAIL_REGEX = re.compile(r"^[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}$")

USER_NAME_DESCRIPTION = (
    f"Name must be {FieldSizes.NAME_MIN} to {FieldSizes.NAME_MAX} characters long "
    + "and must not contain control characters."
)


def sanitize_string(value: str) -> str:
    """
    Strip HTML tags and control characters, then surrounding whitespace.

    Tabs and newlines inside the value are kept.
    """
    value = HTML_TAG_REGEX.sub("", value)
    value = CONTROL_CHARS_REGEX.sub("", value)
    return value.strip()


def is_valid_name(name: str) -> bool:
    if not FieldSizes.NAME_MIN <= len(name) <= FieldSizes.NAME_MAX:
        return False

    return NAME_FORBIDDEN_CHARS_REGEX.search(name) is None


def is_valid_email(email: str) -> bool:
    """
    Plain `local@domain.tld` address of at most 254 characters that
    email-validator also accepts. No DNS lookups are made.
    """
    if len(email) > FieldSizes.EMAIL or USER_EMAIL_REGEX.match(email) is None:
        return False

    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        return False

    return True


class UserCreate(BaseSchema):
    """User creation and replacement schema"""

    name: str = Field(description=USER_NAME_DESCRIPTION)
    email: str

    @field_validator("name", "email", mode="before")
    @classmethod
    def sanitize(cls, value: Any) -> Any:
        if isinstance(value, str):
            return sanitize_string(value)

        return value

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        if not value:
            raise ValueError("name and email are required")
        if not is_valid_name(value):
            raise ValueError("invalid name format")

        return value

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        if not value:
            raise ValueError("name and email are required")
        if not is_valid_email(value):
            raise ValueError("invalid email format")

        return value


class UserResponse(BaseTimestampSchema):
    """User schema for API response"""

    id: int
    name: str = Field(description=USER_NAME_DESCRIPTION)
    email: str
