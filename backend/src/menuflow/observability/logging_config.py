"""Structured logging for the API and the Celery workers.

Each record is rendered as one JSON object per line. Pipeline code passes
identifiers through `extra=`; records emitted inside `bind_ingestion()` or
an HTTP request also pick up the bound ingestion and request ids.
"""

import json
import logging
import sys
from datetime import datetime, timezone

from .context import get_ingestion_id, get_request_id

CONTEXT_FIELDS = ("ingestion_id", "tenant_id", "location_id", "menu_id", "user_id", "event")

QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "httpx", "httpcore", "botocore", "openai", "celery.redirected")

PLAIN_FORMAT = "%(asctime)s %(levelname)-7s [%(request_id)s] %(name)s: %(message)s"


class CorrelationFilter(logging.Filter):
    """Stamp request and ingestion ids onto records."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            record.request_id = get_request_id()
        if getattr(record, "ingestion_id", None) is None:
            record.ingestion_id = get_ingestion_id()
        return True


class JSONFormatter(logging.Formatter):

    def format(self, record: logging.LogRecord) -> str:
        document = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", None),
        }
        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                document[name] = str(value)

        if record.exc_info and record.exc_info[0] is not None:
            document["error_type"] = record.exc_info[0].__name__
            document["traceback"] = self.formatException(record.exc_info)

        return json.dumps(document, default=str)


def configure_logging(level: str = "INFO", json_format: bool = True) -> None:
    """Install a single stdout handler on the root logger.

    Args:
        level: Root log level name
        json_format: JSON lines when True, human-readable lines otherwise
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(CorrelationFilter())
    handler.setFormatter(JSONFormatter() if json_format else logging.Formatter(PLAIN_FORMAT))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(numeric_level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))
