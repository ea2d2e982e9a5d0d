"""Input validation and path helpers for menu ingestion.

MIME allow-list, filename sanitisation and the deterministic storage paths
for originals and page previews.
"""

import re
import time
from typing import Any, Optional


ALLOWED_MIME_TYPES = frozenset({
    'application/pdf',
    'image/png',
    'image/jpeg',
    'image/jpg',
    'image/webp',
})

PDF_MIME_TYPE = 'application/pdf'

IMAGE_MIME_TYPES = ALLOWED_MIME_TYPES - {PDF_MIME_TYPE}

_TRUTHY_FLAGS = {"true", "1", "yes", "y"}

_UNSAFE_FILENAME_CHARS = re.compile(r'[^a-z0-9_.-]+')
_UNSAFE_PATH_SEGMENT_CHARS = re.compile(r'[^a-z0-9-]+', re.IGNORECASE)


def normalize_mime(mime: Optional[str]) -> str:
    """Lower-case a declared MIME type; None becomes an empty string."""
    return (mime or "").strip().lower()


def is_supported_mime_type(mime_type: Optional[str]) -> bool:
    """Check if MIME type may be ingested

    Example:
        >>> is_supported_mime_type('image/PNG')
        True
        >>> is_supported_mime_type('application/msword')
        False
    """
    return normalize_mime(mime_type) in ALLOWED_MIME_TYPES


def sanitize_filename(original: Optional[str], now_ms: Optional[int] = None) -> str:
    """Sanitize an uploaded filename for use in a storage path

    Keeps the last path segment, lower-cases it, collapses anything outside
    [a-z0-9_.-] to a single dash and trims leading/trailing dashes. Names
    that end up empty fall back to ``menu-<epoch millis>``.

    Example:
        >>> sanitize_filename('Dinner Menu (Spring).PDF')
        'dinner-menu-spring-.pdf'
        >>> sanitize_filename('../../etc/passwd')
        'passwd'
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    fallback = f"menu-{now_ms}"

    base = (original or "").strip() or fallback
    segment = base.split("/")[-1] or fallback

    normalized = _UNSAFE_FILENAME_CHARS.sub("-", segment.lower())
    normalized = re.sub(r'-+', '-', normalized).strip("-")
    return normalized or fallback


def _safe_segment(value: Any) -> str:
    return _UNSAFE_PATH_SEGMENT_CHARS.sub("", str(value))


def build_storage_path(tenant_id: Any, ingestion_id: Any, filename: str) -> str:
    """Storage key for an original document: ``<tenant>/<ingestion>/<filename>``"""
    return f"{_safe_segment(tenant_id)}/{_safe_segment(ingestion_id)}/{filename}"


def preview_extension(content_type: str) -> str:
    """File extension for a rendered page preview."""
    if "png" in content_type:
        return "png"
    if "jpeg" in content_type or "jpg" in content_type:
        return "jpg"
    return "webp"


def build_preview_path(tenant_id: Any, ingestion_id: Any, page: int, extension: str = "png") -> str:
    """Storage key for a page preview: ``<tenant>/<ingestion>/page-003.png``"""
    return (
        f"{_safe_segment(tenant_id)}/{_safe_segment(ingestion_id)}/"
        f"page-{page:03d}.{extension}"
    )


def parse_boolean_flag(value: Any, fallback: bool = False) -> bool:
    """Interpret loosely typed boolean request flags

    Example:
        >>> parse_boolean_flag("Yes")
        True
        >>> parse_boolean_flag(None, fallback=True)
        True
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY_FLAGS
    return fallback
