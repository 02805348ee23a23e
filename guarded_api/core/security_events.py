from enum import StrEnum

from fastapi import Request
from loguru import logger

from guarded_api.core.utils import get_client_ip


class SecurityEvent(StrEnum):
    AUTH_SUCCESS = "AUTH_SUCCESS"
    AUTH_FAILURE = "AUTH_FAILURE"
    UNAUTHORIZED = "UNAUTHORIZED"
    RATE_LIMIT_HIT = "RATE_LIMIT_HIT"
    CSRF_BLOCKED = "CSRF_BLOCKED"
    INVALID_INPUT = "INVALID_INPUT"
    BODY_TOO_LARGE = "BODY_TOO_LARGE"


def log_security_event(event: SecurityEvent, request: Request, details: str = "") -> None:
    """
    Record a security relevant event with the request context.

    Successful authentications are logged at INFO, everything else at WARNING.
    The fields are also bound as extras so structured sinks can index them.

    Args:
        event: Kind of event
        request: Request that triggered it
        details: Short free-form description (never a credential or token)
    """
    client_ip = get_client_ip(request)
    user_agent = request.headers.get("user-agent", "unknown")
    level = "INFO" if event == SecurityEvent.AUTH_SUCCESS else "WARNING"

    logger.bind(
        security_event=event.value,
        client_ip=client_ip,
        method=request.method,
        path=request.url.path,
    ).log(
        level,
        f"[SECURITY] event={event.value} ip={client_ip} method={request.method} "
        f"path={request.url.path} user_agent={user_agent!r} details={details!r}",
    )
