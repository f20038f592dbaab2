import logging
import logging.config
from typing import Any, Dict

from pythonjsonlogger import jsonlogger

from citypulse.middleware.request_id import request_id_ctx_var

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s %(request_id)s"


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_ctx_var.get()  # type: ignore[attr-defined]
        return True


def configure_logging(level: str = "INFO", *, sql_echo: bool = False) -> None:
    """Route all application logs through one JSON console handler.

    httpx logs every outbound request at INFO, which drowns the reverse
    geocoding traffic, so it is held at WARNING unless the root level is
    lower than that.
    """
    root_level = level.upper()
    logging_config: Dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "request_id": {
                "()": RequestIdFilter,
            }
        },
        "formatters": {
            "json": {
                "()": jsonlogger.JsonFormatter,
                "fmt": LOG_FORMAT,
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "json",
                "filters": ["request_id"],
            }
        },
        "loggers": {
            "httpx": {"level": "DEBUG" if root_level == "DEBUG" else "WARNING"},
            "sqlalchemy.engine": {"level": "INFO" if sql_echo else "WARNING"},
        },
        "root": {
            "level": root_level,
            "handlers": ["console"],
        },
    }
    logging.config.dictConfig(logging_config)
