"""Error taxonomy for the menu ingestion pipeline.

Every failure surfaced to a caller carries an ErrorKind (the taxonomy bucket
used for HTTP status mapping and metrics) plus a stable machine-readable code
and a human-readable message. Messages never contain stack traces or
internal identifiers.
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    CONVERSION_FAILURE = "conversion_failure"
    EXTRACTION_TRANSPORT_FAILURE = "extraction_transport_failure"
    STORAGE_FAILURE = "storage_failure"
    PUBLISH_FAILURE = "publish_failure"
    TENANT_MISMATCH = "tenant_mismatch"
    TRANSIENT = "transient"
    UNHANDLED = "unhandled"


HTTP_STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.TENANT_MISMATCH: 403,
    ErrorKind.CONVERSION_FAILURE: 502,
    ErrorKind.EXTRACTION_TRANSPORT_FAILURE: 502,
    ErrorKind.TRANSIENT: 502,
    ErrorKind.STORAGE_FAILURE: 500,
    ErrorKind.PUBLISH_FAILURE: 500,
    ErrorKind.UNHANDLED: 500,
}

# Errors in these buckets are rejected before any state is mutated
PRECONDITION_KINDS = frozenset({
    ErrorKind.VALIDATION,
    ErrorKind.NOT_FOUND,
    ErrorKind.FORBIDDEN,
    ErrorKind.TENANT_MISMATCH,
})


class IngestionError(Exception):
    """Base exception for ingestion pipeline failures."""

    kind: ErrorKind = ErrorKind.UNHANDLED
    default_code: str = "unhandled_error"

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code

    @property
    def http_status(self) -> int:
        return HTTP_STATUS_BY_KIND[self.kind]

    @property
    def is_precondition(self) -> bool:
        return self.kind in PRECONDITION_KINDS

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}

    def __repr__(self):
        return f"<{type(self).__name__}(kind={self.kind.value}, code={self.code})>"


class ValidationError(IngestionError):
    kind = ErrorKind.VALIDATION
    default_code = "validation_error"


class NotFoundError(IngestionError):
    kind = ErrorKind.NOT_FOUND
    default_code = "not_found"


class ForbiddenError(IngestionError):
    kind = ErrorKind.FORBIDDEN
    default_code = "forbidden"


class ConversionError(IngestionError):
    kind = ErrorKind.CONVERSION_FAILURE
    default_code = "converter_failed"


class ExtractionTransportError(IngestionError):
    kind = ErrorKind.EXTRACTION_TRANSPORT_FAILURE
    default_code = "vision_failed"


class StorageFailure(IngestionError):
    kind = ErrorKind.STORAGE_FAILURE
    default_code = "storage_failed"


class PublishError(IngestionError):
    kind = ErrorKind.PUBLISH_FAILURE
    default_code = "publish_failed"


class TenantMismatchError(IngestionError):
    kind = ErrorKind.TENANT_MISMATCH
    default_code = "tenant_mismatch"


class TransientError(IngestionError):
    """Timeouts and other retryable upstream conditions."""
    kind = ErrorKind.TRANSIENT
    default_code = "upstream_timeout"


def as_ingestion_error(exc: BaseException) -> IngestionError:
    """Wrap an arbitrary exception so it can be recorded and returned.

    Unknown exceptions become a generic `unhandled` error; their text is
    deliberately not exposed.
    """
    if isinstance(exc, IngestionError):
        return exc
    return IngestionError("Unexpected error", code="unhandled_error")
