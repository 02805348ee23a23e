from unittest.mock import MagicMock, patch

import pytest
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from guarded_api.core.config import Environment, Settings
from guarded_api.main import ALLOWED_ENVIRONMENTS, app, create_app, validation_error_detail
from guarded_api.services.pipeline import Pipeline


class TestCreateApp:
    """Test the application factory."""

    def test_module_app(self):
        assert isinstance(app, FastAPI)
        assert isinstance(app.state.pipeline, Pipeline)

    def test_each_app_has_its_own_pipeline(self, test_settings: Settings):
        first, second = create_app(test_settings), create_app(test_settings)

        assert first.state.pipeline.user_store is not second.state.pipeline.user_store
        assert first.state.pipeline.rate_limiter is not second.state.pipeline.rate_limiter

    def test_metadata(self, test_settings: Settings):
        test_app = create_app(test_settings)

        assert test_app.title == test_settings.app_title
        assert test_app.version == test_settings.app_version

    def test_allowed_environments(self):
        assert ALLOWED_ENVIRONMENTS == {Environment.LOCAL, Environment.DEV, Environment.STG}

    @pytest.mark.parametrize("environment", sorted(ALLOWED_ENVIRONMENTS))
    def test_docs_enabled(self, test_settings: Settings, environment: Environment):
        test_app = create_app(test_settings.model_copy(update={"current_environment": environment}))

        assert test_app.docs_url == "/docs"
        assert test_app.openapi_url == "/openapi.json"

    def test_docs_disabled_in_production(self, test_settings: Settings):
        test_app = create_app(
            test_settings.model_copy(update={"current_environment": Environment.PRD})
        )

        assert test_app.docs_url is None
        assert test_app.redoc_url is None
        assert test_app.openapi_url is None


@pytest.mark.anyio
class TestLifespan:
    """Test application lifespan events."""

    async def test_starts_and_stops_sweep(self, test_app: FastAPI, pipeline: Pipeline):
        with patch("guarded_api.main.setup_logger") as mock_setup:
            with patch("guarded_api.main.configure_uvicorn_logging"):
                with patch("guarded_api.main.shutdown_logger") as mock_shutdown:
                    async with test_app.router.lifespan_context(test_app):
                        mock_setup.assert_called_once()
                        assert pipeline.rate_limiter.running

                    mock_shutdown.assert_called_once()

        assert not pipeline.rate_limiter.running

    async def test_warns_about_default_secret(self, test_settings: Settings):
        test_app = create_app(test_settings.model_copy(update={"jwt_secret": None}))

        with patch("guarded_api.main.setup_logger"):
            with patch("guarded_api.main.configure_uvicorn_logging"):
                with patch("guarded_api.main.shutdown_logger"):
                    with patch("guarded_api.main.logger") as mock_logger:
                        async with test_app.router.lifespan_context(test_app):
                            pass

        mock_logger.warning.assert_called_once()


class TestValidationErrorDetail:
    """Test the message chosen for request validation errors."""

    def make_error(self, *errors: dict) -> RequestValidationError:
        return RequestValidationError(list(errors))

    def test_validator_message(self):
        exc = self.make_error(
            {"type": "value_error", "loc": ("body", "email"), "ctx": {"error": ValueError("x")}}
        )

        assert validation_error_detail(exc) == "x"

    def test_other_body_errors(self):
        exc = self.make_error({"type": "missing", "loc": ("body", "name"), "msg": "Field required"})

        assert validation_error_detail(exc) == "invalid request body"

    def test_path_error(self):
        exc = self.make_error(
            {
                "type": "int_parsing",
                "loc": ("path", "user_id"),
                "msg": "Input should be a valid integer",
            }
        )

        assert validation_error_detail(exc) == "invalid user_id: Input should be a valid integer"

    def test_first_error_wins(self):
        exc = self.make_error(
            {"type": "missing", "loc": ("body", "name"), "msg": "Field required"},
            {"type": "int_parsing", "loc": ("path", "user_id"), "msg": "bad"},
        )

        assert validation_error_detail(exc) == "invalid request body"

    def test_no_errors(self):
        assert validation_error_detail(self.make_error()) == "invalid request"


@pytest.mark.anyio
class TestValidationErrorResponse:
    async def test_logs_invalid_input(self, client):
        with patch("guarded_api.core.security_events.logger") as mock_logger:
            response = await client.post("/users", json={"name": "Eve"})

        assert response.status_code == 400
        assert mock_logger.bind.call_args.kwargs["security_event"] == "INVALID_INPUT"


class TestEntrypoint:
    """Test the process entrypoint."""

    def test_debug_runs_uvicorn(self):
        import main

        with patch.object(main, "settings", MagicMock(debug=True, workers_count=1)):
            with patch("main.uvicorn.run") as mock_run:
                with patch.dict("os.environ"):
                    main.main()

        assert mock_run.call_args.kwargs["app"] == "guarded_api.main:app"

    def test_linux_runs_gunicorn(self):
        import main

        with patch.object(main, "settings", MagicMock(debug=False)):
            with patch("main.sys.platform", "linux"):
                with patch("guarded_api.web.GunicornApplication") as mock_app:
                    with patch("guarded_api.web.gunicorn_options", return_value={}):
                        main.main()

        mock_app.assert_called_once_with("guarded_api.main:app", {})
        mock_app.return_value.run.assert_called_once()
