from fastapi import Request, Response

from guarded_api.core.constants import Headers
from guarded_api.core.exceptions.pipeline import AuthenticationError, AuthenticationReason
from guarded_api.core.security_events import SecurityEvent, log_security_event
from guarded_api.middleware.chain import CallNext, Stage
from guarded_api.services.identity import Authenticated
from guarded_api.services.token_authenticator import TokenAuthenticator

# Header problems are reported as UNAUTHORIZED, token problems as AUTH_FAILURE
HEADER_REASONS = {AuthenticationReason.MISSING_HEADER, AuthenticationReason.MALFORMED_HEADER}


class TokenAuthStage(Stage):
    """
    Requires a valid bearer token.

    On success `request.state.identity` holds `Authenticated(claims)`;
    otherwise the request ends here with 401.
    """

    def __init__(self, authenticator: TokenAuthenticator):
        self.authenticator = authenticator

    def __repr__(self) -> str:
        return "TokenAuthStage()"

    async def dispatch(self, request: Request, call_next: CallNext) -> Response:
        try:
            claims = self.authenticator.authenticate_header(
                request.headers.get(Headers.AUTHORIZATION)
            )
        except AuthenticationError as e:
            event = (
                SecurityEvent.UNAUTHORIZED
                if e.reason in HEADER_REASONS
                else SecurityEvent.AUTH_FAILURE
            )
            log_security_event(event, request, e.message)
            return e.to_response()

        request.state.identity = Authenticated(claims)

        return await call_next(request)
