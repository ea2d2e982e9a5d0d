"""Unit tests for the ingestion error taxonomy"""

import pytest

from menuflow.domain.ingestion.errors import (
    ConversionError,
    ErrorKind,
    ExtractionTransportError,
    ForbiddenError,
    IngestionError,
    NotFoundError,
    PublishError,
    StorageFailure,
    TenantMismatchError,
    TransientError,
    ValidationError,
    as_ingestion_error,
)


@pytest.mark.parametrize("error_class,kind,status", [
    (ValidationError, ErrorKind.VALIDATION, 400),
    (NotFoundError, ErrorKind.NOT_FOUND, 404),
    (ForbiddenError, ErrorKind.FORBIDDEN, 403),
    (TenantMismatchError, ErrorKind.TENANT_MISMATCH, 403),
    (ConversionError, ErrorKind.CONVERSION_FAILURE, 502),
    (ExtractionTransportError, ErrorKind.EXTRACTION_TRANSPORT_FAILURE, 502),
    (TransientError, ErrorKind.TRANSIENT, 502),
    (StorageFailure, ErrorKind.STORAGE_FAILURE, 500),
    (PublishError, ErrorKind.PUBLISH_FAILURE, 500),
])
def test_kind_and_http_status(error_class, kind, status):
    error = error_class("boom")
    assert error.kind == kind
    assert error.http_status == status


def test_explicit_code_overrides_default():
    error = ValidationError("File type must be PDF or image", code="unsupported_mime")
    assert error.to_dict() == {"code": "unsupported_mime", "message": "File type must be PDF or image"}
    assert ConversionError("x").code == "converter_failed"


def test_precondition_kinds():
    assert NotFoundError("x").is_precondition
    assert not ConversionError("x").is_precondition


def test_unknown_exception_is_wrapped_without_details():
    error = as_ingestion_error(RuntimeError("password=hunter2"))
    assert error.kind == ErrorKind.UNHANDLED
    assert error.code == "unhandled_error"
    assert "hunter2" not in error.message


def test_ingestion_errors_pass_through():
    original = TransientError("Vision model timed out", code="openai_timeout")
    assert as_ingestion_error(original) is original
    assert isinstance(original, IngestionError)
