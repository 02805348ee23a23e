import logging
import os
import tomllib
from enum import StrEnum
from pathlib import Path

from pydantic import SecretStr, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict
from yarl import URL

from guarded_api.core.constants import TokenLifetime

PROJECT_DIR = Path(__file__).parent.parent.parent
PROJECT_TOML_PATH = PROJECT_DIR / "pyproject.toml"

with open(PROJECT_TOML_PATH, "rb") as f:
    PYPROJECT_CONTENT = tomllib.load(f)["project"]

LOCAL_ORIGINS = (
    "http://localhost:8080,http://localhost:3000,http://127.0.0.1:8080,http://127.0.0.1:3000"
)


class Environment(StrEnum):
    LOCAL = "local"
    DEV = "dev"
    STG = "stg"
    PRD = "prd"


def convert_app_name(s: str) -> str:
    return " ".join(word.capitalize() for word in s.split("-"))


def split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    """
    Application settings.

    These parameters can be configured
    with environment variables.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=False,
        extra="ignore",
    )

    # App variables
    app_name: str = PYPROJECT_CONTENT["name"]
    app_title: str = os.getenv("APP_TITLE", convert_app_name(app_name))
    app_version: str = PYPROJECT_CONTENT["version"]
    app_description: str = PYPROJECT_CONTENT["description"]

    backend_host: str = "0.0.0.0"
    backend_port: int = 8080

    # Number of workers for uvicorn
    workers_count: int = 1

    # Enable uvicorn reloading
    reload_uvicorn: bool = False

    # Current working environment
    current_environment: Environment = Environment.LOCAL
    log_level: int = logging.INFO
    log_to_file: bool = False
    debug: bool = False

    # CORS
    cors_origins: str = LOCAL_ORIGINS
    cors_allowed_methods: str = "GET,POST,PUT,DELETE,OPTIONS"
    cors_allowed_headers: str = "Content-Type,Authorization,X-Requested-With"

    # CSRF: strict mode rejects state-changing requests without Origin/Referer
    csrf_allowed_origins: str = LOCAL_ORIGINS
    csrf_strict_mode: bool = False

    # Rate limiting settings (requests per window, per client)
    rate_limit_requests: int = 100
    rate_limit_window: int = 60  # seconds

    # Request body limit for protected routes
    body_limit_bytes: int = 1024 * 1024

    # Token security settings
    jwt_secret: SecretStr | None = None
    jwt_algorithm: str = "HS256"
    access_token_expire_seconds: int = int(TokenLifetime.ACCESS.total_seconds())
    refresh_token_expire_seconds: int = int(TokenLifetime.REFRESH.total_seconds())

    # Shared password of the seeded test users
    test_user_password: SecretStr = SecretStr("password")

    @computed_field
    @property
    def cors_origins_list(self) -> list[str]:
        """
        Parse CORS origins from a comma-separated string.
        """
        return split_csv(self.cors_origins)

    @computed_field
    @property
    def cors_allowed_methods_list(self) -> list[str]:
        return split_csv(self.cors_allowed_methods)

    @computed_field
    @property
    def cors_allowed_headers_list(self) -> list[str]:
        return split_csv(self.cors_allowed_headers)

    @computed_field
    @property
    def csrf_allowed_origins_list(self) -> list[str]:
        """
        Parse CSRF trusted origins from a comma-separated string.
        A single "*" entry trusts every origin.
        """
        return split_csv(self.csrf_allowed_origins)

    @computed_field
    @property
    def server_url(self) -> URL:
        """
        Assemble the server URL from settings.
        """
        if self.current_environment in {Environment.LOCAL, Environment.DEV}:
            return URL.build(scheme="http", host=self.backend_host, port=self.backend_port)

        return URL.build(scheme="https", host=self.backend_host)


settings = Settings()  # type: ignore
