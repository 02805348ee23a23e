from enum import StrEnum
from typing import Any, ClassVar

from fastapi.responses import JSONResponse

from guarded_api.core.exceptions import http_exceptions
from guarded_api.core.exceptions.base import CustomException, HTTPException

# =============================================================================
# Request pipeline exceptions (raised by services, turned into responses by stages)
# =============================================================================

BEARER_CHALLENGE = {"WWW-Authenticate": "Bearer"}


class PipelineError(CustomException):
    """
    Base for errors that terminate a request inside the request pipeline.

    Every pipeline error maps to exactly one HTTP status. The stage that
    detects it converts it with `to_response()`; endpoints convert it with
    `to_http_exception()` and let FastAPI render it.
    """

    http_exception_class: ClassVar[type[HTTPException]]

    def __init__(self, message: str, code: str, exception: Exception | None = None):
        super().__init__(message, exception)
        self.code = code

    @property
    def headers(self) -> dict[str, str] | None:
        return None

    def body(self) -> dict[str, Any]:
        return {"detail": self.message, "code": self.code}

    def to_http_exception(self) -> HTTPException:
        return self.http_exception_class(detail=self.message, headers=self.headers)

    def to_response(self) -> JSONResponse:
        return JSONResponse(
            status_code=self.to_http_exception().status_code,
            content=self.body(),
            headers=self.headers,
        )


class AuthenticationReason(StrEnum):
    MISSING_HEADER = "missing_header"
    MALFORMED_HEADER = "malformed_header"
    MALFORMED = "malformed"
    INVALID_SIGNATURE = "invalid_signature"
    EXPIRED = "expired"
    INVALID_CREDENTIALS = "invalid_credentials"


AUTHENTICATION_MESSAGES = {
    AuthenticationReason.MISSING_HEADER: "missing authorization header",
    AuthenticationReason.MALFORMED_HEADER: "invalid authorization header format",
    AuthenticationReason.MALFORMED: "invalid token",
    AuthenticationReason.INVALID_SIGNATURE: "invalid token",
    AuthenticationReason.EXPIRED: "token has expired",
    AuthenticationReason.INVALID_CREDENTIALS: "invalid credentials",
}


class AuthenticationError(PipelineError):
    """Bearer token or credentials could not be verified."""

    http_exception_class = http_exceptions.UnauthorizedException

    def __init__(
        self,
        reason: AuthenticationReason,
        message: str | None = None,
        exception: Exception | None = None,
    ):
        super().__init__(message or AUTHENTICATION_MESSAGES[reason], reason.value, exception)
        self.reason = reason

    @property
    def headers(self) -> dict[str, str]:
        return BEARER_CHALLENGE


class CSRFReason(StrEnum):
    MISSING_ORIGIN_REFERER = "missing_origin_referer"
    DISALLOWED_ORIGIN = "disallowed_origin"
    DISALLOWED_REFERER = "disallowed_referer"
    MISSING_MARKER_HEADER = "missing_marker_header"


CSRF_MESSAGES = {
    CSRFReason.MISSING_ORIGIN_REFERER: "CSRF validation failed: missing origin/referer",
    CSRFReason.DISALLOWED_ORIGIN: "CSRF validation failed: invalid origin",
    CSRFReason.DISALLOWED_REFERER: "CSRF validation failed: invalid referer",
    CSRFReason.MISSING_MARKER_HEADER: "CSRF validation failed: missing X-Requested-With header",
}


class CSRFError(PipelineError):
    """State-changing request without trusted provenance."""

    http_exception_class = http_exceptions.ForbiddenException

    def __init__(self, reason: CSRFReason, exception: Exception | None = None):
        super().__init__(CSRF_MESSAGES[reason], reason.value, exception)
        self.reason = reason


class ValidationReason(StrEnum):
    BAD_INPUT = "bad_input"


class ValidationError(PipelineError):
    """Request input rejected before reaching business logic."""

    http_exception_class = http_exceptions.BadRequestException

    def __init__(self, message: str = "invalid request body", exception: Exception | None = None):
        super().__init__(message, ValidationReason.BAD_INPUT.value, exception)
        self.reason = ValidationReason.BAD_INPUT


class BodyTooLargeError(PipelineError):
    """Request body above the configured limit."""

    http_exception_class = http_exceptions.ContentTooLargeException

    def __init__(self, limit: int, exception: Exception | None = None):
        super().__init__("request body too large", "body_too_large", exception)
        self.limit = limit
