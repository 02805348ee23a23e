from fastapi import APIRouter, Request, status

from guarded_api.api.deps import AuthenticatorDep, IdentityDep
from guarded_api.core import responses
from guarded_api.core.exceptions import http_exceptions
from guarded_api.core.exceptions.pipeline import BEARER_CHALLENGE, AuthenticationError
from guarded_api.core.security_events import SecurityEvent, log_security_event
from guarded_api.middleware.chain import MiddlewareChain, chained_route
from guarded_api.schemas import LoginRequest, MeResponse, RefreshRequest, TokenResponse
from guarded_api.services.identity import Authenticated
from guarded_api.services.token_authenticator import TokenPair


def _token_response(pair: TokenPair) -> TokenResponse:
    return TokenResponse(
        access_token=pair.access_token,
        refresh_token=pair.refresh_token,
        expires_in=pair.expires_in,
    )


async def login(
    request: Request,
    credentials: LoginRequest,
    authenticator: AuthenticatorDep,
) -> TokenResponse:
    """
    Exchange email and password for an access token and a refresh token.
    """
    try:
        pair = authenticator.login(credentials.email, credentials.password.get_secret_value())
    except AuthenticationError as e:
        log_security_event(
            SecurityEvent.AUTH_FAILURE, request, f"login failed for {credentials.email}"
        )
        raise e

    log_security_event(SecurityEvent.AUTH_SUCCESS, request, f"login for {credentials.email}")

    return _token_response(pair)


async def refresh(
    request: Request,
    payload: RefreshRequest,
    authenticator: AuthenticatorDep,
) -> TokenResponse:
    """
    Exchange a valid token for a new pair with the same subject.
    """
    try:
        pair = authenticator.refresh(payload.refresh_token)
    except AuthenticationError as e:
        log_security_event(SecurityEvent.AUTH_FAILURE, request, f"refresh rejected: {e.reason}")
        raise AuthenticationError(e.reason, "invalid refresh token", exception=e) from e

    return _token_response(pair)


async def read_me(identity: IdentityDep) -> MeResponse:
    if not isinstance(identity, Authenticated):
        raise http_exceptions.UnauthorizedException(detail="unauthorized", headers=BEARER_CHALLENGE)

    return MeResponse(user_id=identity.claims.user_id, email=identity.claims.email)


def build_router(protected: MiddlewareChain, authenticated: MiddlewareChain) -> APIRouter:
    """
    Auth routes. Login and refresh run behind `protected`, the identity
    lookup behind `authenticated`.
    """
    router = APIRouter()

    router.add_api_route(
        "/login",
        login,
        methods=["POST"],
        response_model=TokenResponse,
        responses={
            status.HTTP_401_UNAUTHORIZED: {"model": responses.UnauthorizedResponse},
            **responses.PROTECTED_RESPONSES,
        },
        route_class_override=chained_route(protected),
        summary="Login",
    )
    router.add_api_route(
        "/refresh",
        refresh,
        methods=["POST"],
        response_model=TokenResponse,
        responses={
            status.HTTP_401_UNAUTHORIZED: {"model": responses.UnauthorizedResponse},
            **responses.PROTECTED_RESPONSES,
        },
        route_class_override=chained_route(protected),
        summary="Refresh tokens",
    )
    router.add_api_route(
        "/me",
        read_me,
        methods=["GET"],
        response_model=MeResponse,
        responses=responses.AUTHENTICATED_RESPONSES,
        route_class_override=chained_route(authenticated),
        summary="Read current identity",
    )

    return router
