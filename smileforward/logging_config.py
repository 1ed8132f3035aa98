"""One-line JSON logs that Cloud Logging parses into structured entries."""

import json
import logging
import sys
from datetime import datetime, timezone

from smileforward.core.request_context import get_request_id
from smileforward.settings import settings

# Attributes every LogRecord has; anything else came in through ``extra``
_STANDARD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "taskName"}

_QUIET_LOGGERS = ("sqlalchemy.engine", "httpx", "httpcore", "google_genai", "urllib3")


class ContextFilter(logging.Filter):
    """Stamps records with the current request id."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id() or ""
        return True


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "severity": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        for key, value in vars(record).items():
            if key in _STANDARD_ATTRS or key.startswith("_") or key in entry:
                continue
            if key == "request_id" and not value:
                continue
            entry[key] = value

        return json.dumps(entry, default=str, ensure_ascii=False)


def setup_logging() -> None:
    """Route all logging to stdout as JSON at the configured level."""
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    handler.addFilter(ContextFilter())

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    # Request lines are useful in production, noise in development
    logging.getLogger("uvicorn.access").setLevel(
        logging.INFO if settings.environment == "production" else logging.WARNING
    )
