from fastapi import Request, Response

from guarded_api.core.constants import Headers
from guarded_api.core.exceptions.pipeline import CSRFError
from guarded_api.core.security_events import SecurityEvent, log_security_event
from guarded_api.middleware.chain import CallNext, Stage
from guarded_api.services.csrf_guard import CSRFGuard


class CSRFStage(Stage):
    """Runs `CSRFGuard` on the request headers and answers 403 on rejection."""

    def __init__(self, guard: CSRFGuard):
        self.guard = guard

    def __repr__(self) -> str:
        return f"CSRFStage(strict_mode={self.guard.policy.strict_mode})"

    async def dispatch(self, request: Request, call_next: CallNext) -> Response:
        try:
            self.guard.check(
                method=request.method,
                origin=request.headers.get(Headers.ORIGIN),
                referer=request.headers.get(Headers.REFERER),
                marker_present=bool(request.headers.get(Headers.REQUESTED_WITH)),
            )
        except CSRFError as e:
            log_security_event(SecurityEvent.CSRF_BLOCKED, request, e.reason.value)
            return e.to_response()

        return await call_next(request)
