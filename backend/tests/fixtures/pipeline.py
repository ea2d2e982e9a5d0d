"""In-process fakes for the pipeline ports and small data builders."""

import time
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from menuflow.domain.ingestion.errors import IngestionError, StorageFailure
from menuflow.domain.ingestion.models import PageAsset, PageResult, empty_menu_payload
from menuflow.domain.ingestion.ports import (
    MenuExtractorPort,
    ObjectStoragePort,
    PageConverterPort,
    ReindexPort,
)
from menuflow.infrastructure.repositories.ingestion_repository import IngestionRepository
from menuflow.models import Location, MenuIngestion


def create_ingestion(
    db: Session,
    location: Location,
    uploaded_by: UUID,
    file_mime: str = "application/pdf",
    status: Optional[str] = None,
) -> MenuIngestion:
    """Insert an ingestion directly, bypassing the intake service."""
    ingestion_id = uuid4()
    ingestion = IngestionRepository(db).create(
        ingestion_id=ingestion_id,
        tenant_id=location.tenant_id,
        location_id=location.id,
        uploaded_by=uploaded_by,
        original_filename="menu.pdf",
        storage_path=f"{location.tenant_id}/{ingestion_id}/menu.pdf",
        file_mime=file_mime,
        currency=location.currency,
        metadata={"source": "merchant_portal"},
    )
    if status is not None:
        ingestion.status = status
    db.commit()
    return ingestion



def menu_page(*categories: tuple, currency: str = "EUR") -> dict:
    """Build an extraction payload: menu_page(("Mains", [{"name": "Pizza", "price": 10}]))"""
    return {
        "currency": currency,
        "categories": [{"name": name, "items": items} for name, items in categories],
    }


class FakeStorage(ObjectStoragePort):
    def __init__(self):
        self.previews: dict[str, tuple[bytes, str]] = {}
        self.signed_uploads: list[tuple[str, str, int]] = []
        self.signed_downloads: list[tuple[str, int]] = []
        self.fail_upload_signing = False
        self.fail_download_signing = False

    async def generate_presigned_upload_url(self, storage_key, content_type, expires_in_seconds=900):
        if self.fail_upload_signing:
            raise StorageFailure("Unable to create upload URL", code="signed_upload_failed")
        self.signed_uploads.append((storage_key, content_type, expires_in_seconds))
        return f"https://uploads.test/{storage_key}?expires={expires_in_seconds}"

    async def generate_presigned_url(self, storage_key, expires_in_seconds=600):
        if self.fail_download_signing:
            raise StorageFailure("Uploaded menu document not found", code="document_missing")
        self.signed_downloads.append((storage_key, expires_in_seconds))
        return f"https://uploads.test/{storage_key}?download=1"

    async def store_preview(self, storage_key, data, content_type):
        self.previews[storage_key] = (data, content_type)
        return storage_key


class FakeConverter(PageConverterPort):
    def __init__(self, page_count: int = 1, content_type: str = "image/png", error: Optional[Exception] = None):
        self.page_count = page_count
        self.content_type = content_type
        self.error = error
        self.calls: list[tuple[str, str]] = []
        self.closed = False

    def convert(self, download_url, file_mime):
        self.calls.append((download_url, file_mime))
        if self.error is not None:
            raise self.error
        return [
            PageAsset(page=page, data=f"page-{page}".encode(), content_type=self.content_type)
            for page in range(1, self.page_count + 1)
        ]

    def close(self):
        self.closed = True


class FakeExtractor(MenuExtractorPort):
    """Returns canned payloads per page number; unknown pages degrade."""

    def __init__(
        self,
        payloads: Optional[dict[int, dict]] = None,
        error: Optional[IngestionError] = None,
        page_errors: Optional[dict[int, IngestionError]] = None,
        delays: Optional[dict[int, float]] = None,
    ):
        self.payloads = payloads or {}
        self.error = error
        self.page_errors = page_errors or {}
        self.delays = delays or {}
        self.pages_seen: list[int] = []

    def extract_page(self, asset):
        time.sleep(self.delays.get(asset.page, 0))
        self.pages_seen.append(asset.page)
        if self.error is not None:
            raise self.error
        if asset.page in self.page_errors:
            raise self.page_errors[asset.page]
        if asset.page not in self.payloads:
            return PageResult(page=asset.page, payload=empty_menu_payload(), degraded=True)
        return PageResult(page=asset.page, payload=self.payloads[asset.page])


class FakeReindex(ReindexPort):
    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.calls: list[tuple[list[UUID], bool]] = []

    def trigger(self, item_ids, force=True):
        if self.error is not None:
            raise self.error
        self.calls.append((list(item_ids), force))
        return "job-1"


