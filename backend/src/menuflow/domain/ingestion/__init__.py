"""Ingestion domain: lifecycle states, errors, value objects and ports."""

from .status import IngestionStatus, can_transition, get_allowed_transitions, requires_rerun
from .errors import (
    ErrorKind,
    IngestionError,
    ValidationError,
    NotFoundError,
    ForbiddenError,
    ConversionError,
    ExtractionTransportError,
    StorageFailure,
    PublishError,
    TenantMismatchError,
    TransientError,
    as_ingestion_error,
)
from .models import (
    PageAsset,
    PagePreview,
    PageResult,
    StagingRow,
    MergeOptions,
    MergeResult,
    IntakeRequest,
    IntakeResult,
    ProcessOutcome,
    PublishResult,
    empty_menu_payload,
)

__all__ = [
    "IngestionStatus",
    "can_transition",
    "get_allowed_transitions",
    "requires_rerun",
    "ErrorKind",
    "IngestionError",
    "ValidationError",
    "NotFoundError",
    "ForbiddenError",
    "ConversionError",
    "ExtractionTransportError",
    "StorageFailure",
    "PublishError",
    "TenantMismatchError",
    "TransientError",
    "as_ingestion_error",
    "PageAsset",
    "PagePreview",
    "PageResult",
    "StagingRow",
    "MergeOptions",
    "MergeResult",
    "IntakeRequest",
    "IntakeResult",
    "ProcessOutcome",
    "PublishResult",
    "empty_menu_payload",
]
