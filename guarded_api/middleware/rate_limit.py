from fastapi import Request, Response

from guarded_api.core.exceptions.rate_limiter import RateLimitExceeded
from guarded_api.core.security_events import SecurityEvent, log_security_event
from guarded_api.core.utils import get_client_ip
from guarded_api.middleware.chain import CallNext, Stage
from guarded_api.services.rate_limiter import RateLimiter


class RateLimitStage(Stage):
    """
    Rejects clients above their request budget with 429.

    Clients are keyed by `get_client_ip`. The response carries
    `Retry-After` set to the window length in seconds.
    """

    def __init__(self, limiter: RateLimiter):
        self.limiter = limiter

    def __repr__(self) -> str:
        return f"RateLimitStage(policy={self.limiter.policy!r})"

    async def dispatch(self, request: Request, call_next: CallNext) -> Response:
        client_ip = get_client_ip(request)

        if not self.limiter.allow(client_ip):
            log_security_event(SecurityEvent.RATE_LIMIT_HIT, request, "rate limit exceeded")
            return RateLimitExceeded(retry_after=self.limiter.policy.retry_after).to_response()

        return await call_next(request)
