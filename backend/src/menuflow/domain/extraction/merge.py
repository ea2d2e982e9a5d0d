"""Merge per-page extraction results into one canonical menu.

Pages of the same document frequently repeat items (continued sections,
duplicated specials). Items are deduplicated on
(lower-cased name, price in cents, currency); the candidate with the higher
confidence wins and flags of both candidates are kept.

Pure and deterministic: no I/O, no clock, no randomness.
"""

import locale
from typing import Dict, Iterable, List, Optional

from ..ingestion.models import MergeOptions, MergeResult, PageResult, StagingRow
from .pricing import (
    UNCATEGORISED,
    UNKNOWN_CURRENCY,
    apply_price_flags,
    generate_raw_text,
    normalise_menu_payload,
)

# Null categories sort after named ones
_NULL_CATEGORY_SORT_KEY = "zzz"

CONFIDENCE_BUCKETS = (
    ("ge_90", 0.90),
    ("ge_75", 0.75),
    ("ge_55", 0.55),
)


def build_dedupe_key(row: StagingRow, fallback_currency: Optional[str] = None) -> str:
    """Identity of an item across pages.

    Example:
        >>> build_dedupe_key(StagingRow(name=" Pizza ", price_cents=1000, currency="EUR"))
        'pizza::1000::EUR'
    """
    price = row.price_cents if row.price_cents is not None else -1
    currency = row.currency or fallback_currency or ""
    return f"{row.name.strip().lower()}::{price}::{currency}"


def _sort_key(row: StagingRow):
    return (
        locale.strxfrm(row.category_name if row.category_name is not None else _NULL_CATEGORY_SORT_KEY),
        locale.strxfrm(row.name),
    )


def bucket_for_confidence(confidence: Optional[float]) -> str:
    value = confidence if confidence is not None else 0.0
    for bucket, lower_bound in CONFIDENCE_BUCKETS:
        if value >= lower_bound:
            return bucket
    return "lt_55"


def confidence_histogram(items: Iterable[StagingRow]) -> Dict[str, int]:
    histogram = {"ge_90": 0, "ge_75": 0, "ge_55": 0, "lt_55": 0}
    for item in items:
        histogram[bucket_for_confidence(item.confidence)] += 1
    return histogram


def _structured_item(item: StagingRow, options: MergeOptions) -> dict:
    entry = {
        "name": item.name,
        "price": item.price_cents / 100 if item.price_cents is not None else 0,
        "currency": item.currency or options.ingestion_currency or UNKNOWN_CURRENCY,
        "is_alcohol": item.is_alcohol,
    }
    if item.description:
        entry["description"] = item.description
    if item.allergens:
        entry["allergens"] = list(item.allergens)
    if item.tags:
        entry["tags"] = list(item.tags)
    if item.confidence is not None:
        entry["confidence"] = item.confidence
    return entry


def _document_currency(pages: List[PageResult], options: MergeOptions) -> str:
    if options.ingestion_currency:
        return options.ingestion_currency
    if pages and isinstance(pages[0].payload, dict):
        currency = pages[0].payload.get("currency")
        if isinstance(currency, str) and currency.strip():
            return currency.strip().upper()
    return UNKNOWN_CURRENCY


def build_structured(items: List[StagingRow], pages: List[PageResult], options: MergeOptions) -> dict:
    """Group sorted items by category, preserving sorted order."""
    categories: Dict[str, List[dict]] = {}
    for item in items:
        name = item.category_name or UNCATEGORISED
        categories.setdefault(name, []).append(_structured_item(item, options))

    return {
        "currency": _document_currency(pages, options),
        "categories": [
            {"name": name, "items": category_items}
            for name, category_items in categories.items()
        ],
    }


def merge_page_results(
    pages: List[PageResult],
    options: Optional[MergeOptions] = None,
) -> MergeResult:
    """Merge page payloads into the canonical staged dataset.

    Steps: normalise every page, deduplicate across pages, sort by
    (category, name), flag price anomalies, then derive the confidence
    histogram, raw text and structured projection.

    Args:
        pages: Extraction results, any order
        options: Currency fallback, confidence floor and price ceiling

    Returns:
        MergeResult with sorted, flagged items

    Example:
        >>> pages = [
        ...     PageResult(page=1, payload={"currency": "EUR", "categories": [
        ...         {"name": "Mains", "items": [{"name": "Pizza", "price": 10, "confidence": 0.6}]}]}),
        ...     PageResult(page=2, payload={"currency": "EUR", "categories": [
        ...         {"name": "Mains", "items": [{"name": "pizza", "price": 10, "confidence": 0.9}]}]}),
        ... ]
        >>> merge_page_results(pages).items_count
        1
    """
    options = options or MergeOptions()
    ordered_pages = sorted(pages, key=lambda page: page.page)

    merged: Dict[str, StagingRow] = {}
    for page in ordered_pages:
        for row in normalise_menu_payload(page.payload, options):
            key = build_dedupe_key(row, options.ingestion_currency)
            existing = merged.get(key)
            if existing is None:
                merged[key] = row
                continue

            combined_flags = {**existing.flags, **row.flags}
            if (row.confidence or 0.0) > (existing.confidence or 0.0):
                row.flags = combined_flags
                merged[key] = row
            else:
                existing.flags = combined_flags

    items = sorted(merged.values(), key=_sort_key)
    apply_price_flags(items, options)

    max_price_cents = max(
        (item.price_cents for item in items if item.price_cents is not None),
        default=0,
    )

    return MergeResult(
        items=items,
        items_count=len(items),
        raw_text=generate_raw_text(items),
        structured=build_structured(items, ordered_pages, options),
        confidence_buckets=confidence_histogram(items),
        max_price_cents=max_price_cents,
    )
