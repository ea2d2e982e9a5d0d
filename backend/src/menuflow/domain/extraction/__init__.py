"""Menu extraction domain: schema, normalisation, merge and anomaly flags."""

from .merge import merge_page_results, build_dedupe_key, confidence_histogram
from .pricing import (
    normalise_menu_payload,
    apply_price_flags,
    generate_raw_text,
    compute_price_threshold,
)
from .menu_schema import MENU_SCHEMA, SCHEMA_NAME, SYSTEM_PROMPT, USER_PROMPT

__all__ = [
    "merge_page_results",
    "build_dedupe_key",
    "confidence_histogram",
    "normalise_menu_payload",
    "apply_price_flags",
    "generate_raw_text",
    "compute_price_threshold",
    "MENU_SCHEMA",
    "SCHEMA_NAME",
    "SYSTEM_PROMPT",
    "USER_PROMPT",
]
