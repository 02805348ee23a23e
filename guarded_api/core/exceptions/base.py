from typing import Any, ClassVar

from fastapi import HTTPException as FastAPIHTTPException
from starlette import status


class CustomException(Exception):
    """
    Base for all custom exceptions

    `exception` keeps the lower level error that caused this one, if any.
    """

    def __init__(self, message: str, exception: Exception | None = None):
        super().__init__(message)
        self.message = message
        self.exception = exception

    def __str__(self) -> str:
        if self.exception is None:
            return self.message

        return f"{self.message}\nException: {self.exception}"


class HTTPException(FastAPIHTTPException):
    """
    HTTP error whose status is fixed by the subclass.

    FastAPI renders it as `{"detail": detail}` with the given headers.
    """

    default_status: ClassVar[int] = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, detail: Any = None, headers: dict[str, str] | None = None) -> None:
        super().__init__(status_code=self.default_status, detail=detail, headers=headers)
