# bundlereco/core/logging.py
import logging
import sys
import colorlog

from bundlereco.core.config import Settings

LOG_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"

# third-party loggers kept at WARNING: one line per Mongo/HTTP/LLM call is noise
QUIET_LOGGERS = ("pymongo", "motor", "httpx", "httpcore", "openai")

def _formatter(colored: bool) -> logging.Formatter:
    if not colored:
        # production logs go to a collector, no ANSI codes
        return logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S")
    return colorlog.ColoredFormatter(
        "%(log_color)s%(asctime)s %(levelname)-8s [%(name)s]%(reset)s %(message)s",
        datefmt="%H:%M:%S",
        log_colors={
            "DEBUG": "cyan",
            "INFO": "green",
            "WARNING": "yellow",
            "ERROR": "red",
            "CRITICAL": "bold_red",
        },
    )

def configure_logging(settings: Settings) -> int:
    """Root logger setup for the API process. Returns the effective level."""
    level = logging.DEBUG if settings.DEBUG else logging.INFO
    handler = colorlog.StreamHandler(sys.stdout)
    handler.setFormatter(_formatter(colored=settings.APP_ENV == "development"))

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]

    logging.getLogger("uvicorn.error").setLevel(level)
    logging.getLogger("uvicorn.access").setLevel(level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return level
