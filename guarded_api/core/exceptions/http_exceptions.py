from starlette import status

from guarded_api.core.exceptions.base import HTTPException


class BadRequestException(HTTPException):
    """
    Malformed request body, or an identifier in the path that is not a
    positive integer.
    """

    default_status = status.HTTP_400_BAD_REQUEST


class UnauthorizedException(HTTPException):
    """
    Credentials are missing or were rejected. Send a `WWW-Authenticate`
    challenge in `headers`.
    """

    default_status = status.HTTP_401_UNAUTHORIZED


class ForbiddenException(HTTPException):
    """State-changing request that failed the cross-site request forgery checks."""

    default_status = status.HTTP_403_FORBIDDEN


class NotFoundException(HTTPException):
    default_status = status.HTTP_404_NOT_FOUND


class ContentTooLargeException(HTTPException):
    """Request body above the configured limit."""

    default_status = status.HTTP_413_CONTENT_TOO_LARGE


class TooManyRequestsException(HTTPException):
    """Client exhausted its request budget for the current window."""

    default_status = status.HTTP_429_TOO_MANY_REQUESTS
