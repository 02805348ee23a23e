from typing import Any

from guarded_api.core.exceptions import http_exceptions
from guarded_api.core.exceptions.base import CustomException
from guarded_api.core.exceptions.pipeline import PipelineError


class RateLimiterException(CustomException):
    """
    Base exception for Rate Limiter
    """

    def __init__(self, message, exception: Exception | None = None):
        super().__init__(message, exception)


class RateLimitExceeded(PipelineError):
    """
    Rate limit exceeded for a client key. Carries the retry hint in seconds.
    """

    http_exception_class = http_exceptions.TooManyRequestsException

    def __init__(self, retry_after: int, exception: Exception | None = None):
        super().__init__("rate limit exceeded", "rate_limited", exception)
        self.retry_after = retry_after

    @property
    def headers(self) -> dict[str, str]:
        return {"Retry-After": str(self.retry_after)}

    def body(self) -> dict[str, Any]:
        return {**super().body(), "retry_after": self.retry_after}


class RateLimitConfigurationError(RateLimiterException):
    """
    Invalid rate limit configuration
    """

    def __init__(self, message, exception: Exception | None = None):
        super().__init__(message, exception)
