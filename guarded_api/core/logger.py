import inspect
import logging
import os
import sys
import uuid
from contextvars import ContextVar
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from loguru import logger

from guarded_api.core.config import Environment, Settings, settings

if TYPE_CHECKING:
    from loguru import Record

# Set by the logging stage for the duration of a request
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

LOG_DIR = Path("logs")
LOG_FILE = LOG_DIR / "guarded_api.log"

VERBOSE_ENVIRONMENTS = {Environment.LOCAL, Environment.DEV}

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<magenta>PID:{extra[process_id]}</magenta> | "
    "<yellow>ReqID:{extra[request_id]}</yellow> | "
    "<cyan>{name}:{function}:{line}</cyan> | "
    "<level>{message}</level>"
)

FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss!UTC} | {level: <8} | "
    "PID:{extra[process_id]} | ReqID:{extra[request_id]} | "
    "{name}:{function}:{line} | {message}"
)


def level_name(level: int) -> str:
    """
    Loguru level name for a stdlib numeric level, e.g. 20 -> "INFO".

    Loguru's TRACE (5) has no stdlib name. Unknown levels fall back to INFO.
    """
    if level == logger.level("TRACE").no:
        return "TRACE"

    name = logging.getLevelName(level)
    return name if isinstance(name, str) and not name.startswith("Level ") else "INFO"


def correlation_filter(record: "Record") -> bool:
    """
    Enrich every record with the current request id and the worker PID.

    Records logged outside a request get a fresh id so the format never
    misses the field.
    """
    record["extra"]["request_id"] = request_id_var.get() or uuid.uuid4().hex[:8]
    record["extra"]["process_id"] = os.getpid()

    return True


class InterceptHandler(logging.Handler):
    """
    Route records of stdlib loggers (uvicorn, gunicorn) into loguru.
    """

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Report the caller of the stdlib logger, not the logging module itself
        frame, depth = inspect.currentframe(), 0
        while frame and (depth == 0 or frame.f_code.co_filename == logging.__file__):
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logger(app_settings: Settings = settings):
    """
    Configure loguru sinks.

    - Console: colored, DEBUG in local/dev, INFO elsewhere
    - File (when `log_to_file`): `logs/guarded_api.log` at `log_level`,
      rotated at 10 MB, kept 3 months, gzip compressed

    Both sinks are queue based (`enqueue=True`) so gunicorn workers and
    threads can share them. Called once from the application lifespan.
    """
    logger.remove()

    logger.add(
        sys.stdout,
        format=CONSOLE_FORMAT,
        level=(
            logging.DEBUG
            if app_settings.current_environment in VERBOSE_ENVIRONMENTS
            else logging.INFO
        ),
        colorize=True,
        enqueue=True,
        filter=correlation_filter,
    )

    file_level = level_name(app_settings.log_level)

    if app_settings.log_to_file:
        LOG_DIR.mkdir(exist_ok=True)
        logger.add(
            LOG_FILE,
            format=FILE_FORMAT,
            level=file_level,
            rotation="10 MB",
            retention="3 months",
            compression="gz",
            enqueue=True,
            filter=correlation_filter,
            backtrace=True,
            # Local variables may hold tokens or passwords
            diagnose=False,
        )

    logger.info(
        f"Logger initialized | Environment: {app_settings.current_environment.value} | "
        f"File sink: {file_level if app_settings.log_to_file else 'off'}"
    )


def configure_uvicorn_logging():
    """
    Send uvicorn and gunicorn logs through loguru. Call after `setup_logger()`.
    """
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    for name in list(logging.root.manager.loggerDict):
        if name.split(".")[0] in {"uvicorn", "gunicorn"}:
            stdlib_logger = logging.getLogger(name)
            stdlib_logger.handlers = [InterceptHandler()]
            stdlib_logger.propagate = False

    logger.debug("Uvicorn logging configured to use Loguru")


def shutdown_logger():
    """Flush records still queued in the sinks."""
    logger.info("Shutting down logger...")
    logger.complete()
