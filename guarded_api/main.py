from fastapi import FastAPI, Request
from fastapi.concurrency import asynccontextmanager
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger

from guarded_api.api.routes import build_api_router
from guarded_api.core.config import Environment, Settings, settings
from guarded_api.core.exceptions.pipeline import PipelineError, ValidationError
from guarded_api.core.logger import configure_uvicorn_logging, setup_logger, shutdown_logger
from guarded_api.core.security_events import SecurityEvent, log_security_event
from guarded_api.services.pipeline import Pipeline, build_pipeline

ALLOWED_ENVIRONMENTS = {Environment.LOCAL, Environment.DEV, Environment.STG}


def _log_startup_banner(app_settings: Settings, pipeline: Pipeline):
    policy = pipeline.rate_limiter.policy

    logger.info(
        f"{app_settings.app_title} v{app_settings.app_version} | "
        f"Environment: {app_settings.current_environment.value} | "
        f"Listening on: {app_settings.server_url}"
    )
    logger.info(f"Rate limit: {policy.limit} requests per {policy.window}s per client")
    logger.info(
        f"CSRF: strict mode {'on' if pipeline.csrf_guard.policy.strict_mode else 'off'} | "
        f"Trusted origins: {', '.join(pipeline.csrf_guard.policy.allowed_origins) or '-'}"
    )

    if pipeline.authenticator.secret.insecure_default:
        logger.warning("Tokens are signed with the built-in default secret")


def validation_error_detail(exc: RequestValidationError) -> str:
    """
    Human readable message for the first validation error.

    Messages raised by schema validators are returned as they are.
    """
    errors = exc.errors()
    if not errors:
        return "invalid request"

    error = errors[0]
    location = error.get("loc", ())

    if location and location[0] == "body":
        if error.get("type") == "value_error":
            return str(error["ctx"]["error"])
        return "invalid request body"

    field = location[-1] if location else "request"
    return f"invalid {field}: {error.get('msg', 'invalid value')}"


async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    detail = validation_error_detail(exc)
    log_security_event(SecurityEvent.INVALID_INPUT, request, detail)

    return ValidationError(detail).to_response()


async def pipeline_error_handler(request: Request, exc: PipelineError) -> JSONResponse:
    return exc.to_response()


def create_app(app_settings: Settings = settings) -> FastAPI:
    """
    Application factory.

    Builds the request pipeline from `app_settings`, mounts its global chain
    as middleware and its per-route chains on the routes. The pipeline is
    available as `app.state.pipeline`.
    """
    pipeline = build_pipeline(app_settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager"""

        setup_logger(app_settings)
        configure_uvicorn_logging()

        logger.info("Initializing resources...")
        _log_startup_banner(app_settings, pipeline)
        pipeline.rate_limiter.start()
        logger.success("Resources initialized.")

        yield  # Application runs here

        logger.info("Cleaning up resources...")
        await pipeline.rate_limiter.stop()
        logger.success("Resources cleaned up.")
        shutdown_logger()

    docs_enabled = app_settings.current_environment in ALLOWED_ENVIRONMENTS

    app = FastAPI(
        title=app_settings.app_title,
        version=app_settings.app_version,
        description=app_settings.app_description,
        openapi_url="/openapi.json" if docs_enabled else None,
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        lifespan=lifespan,
        middleware=pipeline.global_chain.as_middleware(),
        exception_handlers={
            RequestValidationError: request_validation_error_handler,
            PipelineError: pipeline_error_handler,
        },
        generate_unique_id_function=lambda route: f"{route.tags[0]}-{route.name}",
    )
    app.state.pipeline = pipeline

    app.include_router(build_api_router(pipeline))

    return app


app = create_app(settings)
