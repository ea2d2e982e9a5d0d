"""Log correlation context.

Two context variables travel with every log record: the HTTP request id
(set by CorrelationMiddleware) and the ingestion being worked on (bound by
background tasks). Both survive `await` and `asyncio.to_thread`, since the
context is copied into the worker thread.
"""

import re
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Iterator, Optional

NO_REQUEST_ID = "no-request-id"

# Inbound ids are echoed back in headers and logs
_VALID_REQUEST_ID = re.compile(r"[A-Za-z0-9._-]{1,128}")

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
ingestion_id_var: ContextVar[Optional[str]] = ContextVar("ingestion_id", default=None)


def new_request_id() -> str:
    return uuid.uuid4().hex


def accept_request_id(candidate: Optional[str]) -> str:
    """Reuse a caller-supplied request id when it is safe, otherwise mint one.

    Example:
        >>> accept_request_id("edge-7f3a")
        'edge-7f3a'
        >>> len(accept_request_id("bad id\\n"))
        32
    """
    if candidate and _VALID_REQUEST_ID.fullmatch(candidate):
        return candidate
    return new_request_id()


def get_request_id() -> str:
    return request_id_var.get() or NO_REQUEST_ID


def get_ingestion_id() -> Optional[str]:
    return ingestion_id_var.get()


@contextmanager
def bind_ingestion(ingestion_id: Any) -> Iterator[None]:
    """Tag every log record emitted inside the block with an ingestion id."""
    token = ingestion_id_var.set(str(ingestion_id))
    try:
        yield
    finally:
        ingestion_id_var.reset(token)
