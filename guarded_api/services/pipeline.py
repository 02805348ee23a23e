from dataclasses import dataclass
from datetime import timedelta

from loguru import logger

from guarded_api.core.config import Settings
from guarded_api.middleware.auth import TokenAuthStage
from guarded_api.middleware.body_limit import BodySizeGuardStage
from guarded_api.middleware.chain import MiddlewareChain
from guarded_api.middleware.cors import CORSStage
from guarded_api.middleware.csrf import CSRFStage
from guarded_api.middleware.logging import LoggingStage
from guarded_api.middleware.rate_limit import RateLimitStage
from guarded_api.middleware.security_headers import SecurityHeadersStage
from guarded_api.repos.user import UserStore
from guarded_api.services.credentials import StoreCredentialVerifier
from guarded_api.services.csrf_guard import CSRFGuard, CSRFPolicy
from guarded_api.services.rate_limiter import RateLimiter, RateLimitPolicy
from guarded_api.services.token_authenticator import SigningSecret, TokenAuthenticator


@dataclass(frozen=True)
class Pipeline:
    """
    Every component of the request pipeline, built once per application.

    `global_chain` runs on every request; `protected` and `authenticated`
    are attached to individual routes.
    """

    user_store: UserStore
    rate_limiter: RateLimiter
    authenticator: TokenAuthenticator
    csrf_guard: CSRFGuard
    global_chain: MiddlewareChain
    protected: MiddlewareChain
    authenticated: MiddlewareChain


def build_pipeline(app_settings: Settings, user_store: UserStore | None = None) -> Pipeline:
    """
    Build the pipeline components from settings

    Args:
        app_settings: Application settings
        user_store: Store to use instead of a freshly seeded one

    Returns:
        Pipeline: Components and chains, ready to be mounted

    Raises:
        RateLimitConfigurationError: If the rate limit settings are invalid
    """
    user_store = user_store if user_store is not None else UserStore()

    rate_limiter = RateLimiter(
        RateLimitPolicy(
            limit=app_settings.rate_limit_requests,
            window=app_settings.rate_limit_window,
        )
    )

    authenticator = TokenAuthenticator(
        secret=SigningSecret.from_settings(app_settings),
        credential_verifier=StoreCredentialVerifier(
            user_store, app_settings.test_user_password.get_secret_value()
        ),
        algorithm=app_settings.jwt_algorithm,
        access_lifetime=timedelta(seconds=app_settings.access_token_expire_seconds),
        refresh_lifetime=timedelta(seconds=app_settings.refresh_token_expire_seconds),
    )

    csrf_guard = CSRFGuard(
        CSRFPolicy(
            allowed_origins=tuple(app_settings.csrf_allowed_origins_list),
            strict_mode=app_settings.csrf_strict_mode,
        )
    )

    global_chain = MiddlewareChain(
        LoggingStage(),
        SecurityHeadersStage(app_settings.current_environment),
        RateLimitStage(rate_limiter),
        CORSStage(
            allowed_origins=app_settings.cors_origins_list,
            allowed_methods=app_settings.cors_allowed_methods_list,
            allowed_headers=app_settings.cors_allowed_headers_list,
        ),
    )

    csrf_stage = CSRFStage(csrf_guard)
    protected = MiddlewareChain(BodySizeGuardStage(app_settings.body_limit_bytes), csrf_stage)
    # Token check first; CSRF after it only matters for non-GET identity routes
    authenticated = MiddlewareChain(TokenAuthStage(authenticator)).append(csrf_stage)

    logger.debug(f"Global chain: {global_chain!r}")

    return Pipeline(
        user_store=user_store,
        rate_limiter=rate_limiter,
        authenticator=authenticator,
        csrf_guard=csrf_guard,
        global_chain=global_chain,
        protected=protected,
        authenticated=authenticated,
    )
