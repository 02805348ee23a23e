from gunicorn.app.base import BaseApplication
from gunicorn.util import import_app

from guarded_api.core.config import Settings

APP_URI = "guarded_api.main:app"


def gunicorn_options(app_settings: Settings) -> dict:
    """
    Gunicorn options for serving the app with uvicorn workers

    Every worker holds its own rate-limit table, so the effective limit per
    client is multiplied by `workers_count`.
    """
    return {
        "bind": f"{app_settings.backend_host}:{app_settings.backend_port}",
        "workers": app_settings.workers_count,
        "worker_class": "uvicorn.workers.UvicornWorker",
        "loglevel": "debug" if app_settings.debug else "info",
        # Delay endpoints may hold a request for up to 10s
        "graceful_timeout": 15,
    }


class GunicornApplication(BaseApplication):
    """Gunicorn application running the API with uvicorn workers."""

    def __init__(self, app_uri: str = APP_URI, options: dict | None = None):
        self.app_uri = app_uri
        self.options = options or {}
        super().__init__()

    def load_config(self):
        for key, value in self.options.items():
            if key in self.cfg.settings and value is not None:
                self.cfg.set(key.lower(), value)

    def load(self):
        return import_app(self.app_uri)
