from pydantic import BaseModel


class BadRequestResponse(BaseModel):
    detail: str = "Bad request"
    code: str | None = None


class ForbiddenResponse(BaseModel):
    detail: str = "Forbidden"
    code: str | None = None


class NotFoundResponse(BaseModel):
    detail: str = "Not found"


class TooManyRequestsResponse(BaseModel):
    detail: str = "Too many requests"
    code: str | None = None
    retry_after: int | None = None


class UnauthorizedResponse(BaseModel):
    detail: str = "Unauthorized"
    code: str | None = None


class ContentTooLargeResponse(BaseModel):
    detail: str = "Content too large"
    code: str | None = None


# Shared OpenAPI `responses=` entries for routes behind a per-route chain
PROTECTED_RESPONSES = {
    400: {"model": BadRequestResponse},
    403: {"model": ForbiddenResponse},
    413: {"model": ContentTooLargeResponse},
    429: {"model": TooManyRequestsResponse},
}

AUTHENTICATED_RESPONSES = {
    401: {"model": UnauthorizedResponse},
    429: {"model": TooManyRequestsResponse},
}
