"""Observability: structured logging, log correlation, metrics and health."""

from .context import bind_ingestion, get_request_id
from .logging_config import configure_logging
from .middleware import CorrelationMiddleware

__all__ = [
    "bind_ingestion",
    "configure_logging",
    "get_request_id",
    "CorrelationMiddleware",
]
