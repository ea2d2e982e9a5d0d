"""Normalisation and price anomaly flagging for extracted menu items.

Prices arrive from the vision model as major-unit numbers and are stored as
integer minor units (cents). Anomaly detection is statistical and per
document:

- threshold = min(mean + 3 * sample_stddev, price_ceiling_cents)
- items priced above the threshold get the `high_price` flag
- items without a price get the `missing_price` flag and are left out of the
  statistics
"""

import math
import statistics
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable, List, Optional

from ..ingestion.models import MergeOptions, StagingRow

UNKNOWN_CURRENCY = "XXX"
UNCATEGORISED = "Uncategorised"


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero.

    Example:
        >>> round_half_up(1250.5)
        1251
    """
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _clean_text(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped or None


def _clean_currency(value: Any) -> Optional[str]:
    text = _clean_text(value)
    return text.upper() if text else None


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [entry.strip() for entry in value if isinstance(entry, str) and entry.strip()]


def price_to_cents(price: Any) -> Optional[int]:
    """Convert a major-unit price to integer cents, None when not numeric."""
    if not _is_number(price):
        return None
    return round_half_up(Decimal(str(price)) * 100)


def normalise_menu_payload(payload: Any, options: MergeOptions) -> List[StagingRow]:
    """Flatten one page payload into staging rows.

    Items without a name are dropped. An item without its own currency takes
    the ingestion currency; the page currency only feeds the structured
    projection.

    Args:
        payload: Page payload as returned by the extractor
        options: Merge options (ingestion currency, min confidence)

    Returns:
        Rows in payload order, with `low_confidence` flagged where applicable
    """
    if not isinstance(payload, dict):
        return []

    categories = payload.get("categories")
    if not isinstance(categories, list):
        return []

    rows: List[StagingRow] = []
    for category in categories:
        if not isinstance(category, dict):
            continue
        category_name = _clean_text(category.get("name"))
        items = category.get("items")
        if not isinstance(items, list):
            continue

        for item in items:
            if not isinstance(item, dict):
                continue
            name = _clean_text(item.get("name"))
            if not name:
                continue

            confidence = item.get("confidence")
            if _is_number(confidence):
                confidence = min(1.0, max(0.0, float(confidence)))
            else:
                confidence = None

            flags = {}
            if confidence is not None and confidence < options.min_confidence:
                flags["low_confidence"] = True

            rows.append(StagingRow(
                name=name,
                category_name=category_name,
                description=_clean_text(item.get("description")),
                price_cents=price_to_cents(item.get("price")),
                currency=_clean_currency(item.get("currency")) or options.ingestion_currency,
                allergens=_string_list(item.get("allergens")),
                tags=_string_list(item.get("tags")),
                is_alcohol=item.get("is_alcohol") is True,
                confidence=confidence,
                media_url=_clean_text(item.get("media_url")),
                flags=flags,
            ))

    return rows


def compute_price_threshold(prices: List[int], ceiling_cents: int) -> Optional[float]:
    """Unrounded outlier threshold for a document's prices, None when nothing is priced.

    Example:
        >>> compute_price_threshold([1000, 1000, 1000, 50000], 150000)
        86750.0
    """
    if not prices:
        return None
    mean = statistics.fmean(prices)
    stddev = statistics.stdev(prices) if len(prices) > 1 else 0.0
    return float(min(mean + 3 * stddev, ceiling_cents))


def apply_price_flags(items: List[StagingRow], options: MergeOptions) -> Optional[int]:
    """Flag missing and anomalously high prices in place.

    Returns:
        The threshold in whole cents, or None when no item carries a price.
        Comparison uses the unrounded threshold.
    """
    prices = [item.price_cents for item in items if item.price_cents is not None]
    raw_threshold = compute_price_threshold(prices, options.price_ceiling_cents)
    threshold = round_half_up(raw_threshold) if raw_threshold is not None else None

    for item in items:
        if item.price_cents is None:
            item.flags["missing_price"] = True
        elif raw_threshold is not None and item.price_cents > raw_threshold:
            item.flags["high_price"] = True
            item.flags["price_threshold_cents"] = threshold

    return threshold


def format_price(price_cents: Optional[int], currency: Optional[str]) -> str:
    if price_cents is None:
        return "n/a"
    amount = f"{price_cents / 100:.2f}"
    return f"{amount} {currency}" if currency else amount


def generate_raw_text(items: Iterable[StagingRow]) -> str:
    """Render one line per item: ``category :: name :: price currency``

    Example:
        >>> generate_raw_text([StagingRow(name="Ale", category_name="Drinks", price_cents=450, currency="EUR")])
        'Drinks :: Ale :: 4.50 EUR'
    """
    lines = [
        f"{item.category_name or UNCATEGORISED} :: {item.name} :: "
        f"{format_price(item.price_cents, item.currency)}"
        for item in items
    ]
    return "\n".join(lines)
