"""Request and response schemas for the ingestion API"""

from typing import Any, Optional, Union
from uuid import UUID

from pydantic import BaseModel, Field


class StartIngestionRequest(BaseModel):
    """Create a new ingestion (filename + MIME) or resume one (ingestion_id)."""
    location_id: UUID
    ingestion_id: Optional[UUID] = None
    original_filename: Optional[str] = Field(None, max_length=512)
    file_mime: Optional[str] = Field(None, max_length=128)
    request_signed_upload: Optional[Union[bool, str]] = None


class StartIngestionResponse(BaseModel):
    ingestion_id: UUID
    status: str
    storage_path: str
    upload_url: Optional[str] = None
    file_mime: Optional[str] = None
    original_filename: Optional[str] = None
    currency: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None


class ProcessIngestionRequest(BaseModel):
    ingestion_id: UUID
    rerun: Optional[Union[bool, str]] = False


class ProcessIngestionResponse(BaseModel):
    ok: bool
    items_count: int
    pages_processed: int
    errors: list[dict[str, Any]] = Field(default_factory=list)


class PublishIngestionRequest(BaseModel):
    ingestion_id: UUID
    menu_id: UUID


class PublishIngestionResponse(BaseModel):
    published: bool
    items_upserted: int
    categories_created: int
    version: int


class ErrorBody(BaseModel):
    code: str
    message: str


class ErrorResponse(BaseModel):
    """Error envelope returned by every endpoint on failure"""
    error: ErrorBody
