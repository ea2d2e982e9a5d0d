"""In-memory value objects passed between pipeline stages."""

from dataclasses import dataclass, field
from typing import Any, Optional
from uuid import UUID

from .errors import IngestionError


EMPTY_MENU_PAYLOAD = {"currency": "XXX", "categories": []}


def empty_menu_payload() -> dict:
    return {"currency": EMPTY_MENU_PAYLOAD["currency"], "categories": []}


@dataclass
class PageAsset:
    """One rendered page of a menu document.

    Attributes:
        page: 1-based page number
        data: Raw image bytes
        content_type: MIME type of the image (image/png, image/jpeg, image/webp)
        preview_path: Storage key of the persisted preview, once stored
    """
    page: int
    data: bytes
    content_type: str = "image/png"
    preview_path: Optional[str] = None


@dataclass
class PagePreview:
    page: int
    path: str
    content_type: str

    def to_dict(self) -> dict:
        return {"page": self.page, "path": self.path, "content_type": self.content_type}


@dataclass
class PageResult:
    """Extraction output for a single page.

    `degraded` is set when the model response could not be parsed and the
    payload was replaced with the empty menu.
    """
    page: int
    payload: dict = field(default_factory=empty_menu_payload)
    degraded: bool = False


@dataclass
class StagingRow:
    """Candidate menu item produced by the merge, pending human review."""
    name: str
    category_name: Optional[str] = None
    description: Optional[str] = None
    price_cents: Optional[int] = None
    currency: Optional[str] = None
    allergens: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    is_alcohol: bool = False
    confidence: Optional[float] = None
    media_url: Optional[str] = None
    flags: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class MergeOptions:
    ingestion_currency: Optional[str] = None
    min_confidence: float = 0.55
    price_ceiling_cents: int = 150_000


@dataclass
class MergeResult:
    """Canonical, deduplicated dataset for one ingestion run.

    Attributes:
        items: Sorted, flagged staging rows
        items_count: len(items)
        raw_text: One human-readable line per item
        structured: {currency, categories: [{name, items: [...]}]}
        confidence_buckets: Histogram with keys ge_90, ge_75, ge_55, lt_55
        max_price_cents: Highest price among items, 0 when no item is priced
    """
    items: list[StagingRow]
    items_count: int
    raw_text: str
    structured: dict
    confidence_buckets: dict[str, int]
    max_price_cents: int


@dataclass
class IntakeRequest:
    location_id: UUID
    ingestion_id: Optional[UUID] = None
    original_filename: Optional[str] = None
    file_mime: Optional[str] = None
    request_signed_upload: Any = True


@dataclass
class IntakeResult:
    ingestion_id: UUID
    status: str
    storage_path: str
    created: bool
    upload_url: Optional[str] = None
    file_mime: Optional[str] = None
    original_filename: Optional[str] = None
    currency: Optional[str] = None
    metadata: Optional[dict] = None


@dataclass
class ProcessOutcome:
    """Result of one processing run.

    Failed runs carry the typed error instead of raising, so callers can
    map it to a response while the ingestion row already records the failure.
    """
    ok: bool
    ingestion_id: UUID
    items_count: int = 0
    pages_processed: int = 0
    errors: list[dict] = field(default_factory=list)
    error: Optional[IngestionError] = None


@dataclass
class PublishResult:
    ingestion_id: UUID
    menu_id: UUID
    items_upserted: int
    categories_created: int
    version: int
    item_ids: list[UUID] = field(default_factory=list)
