"""Prometheus metrics for the menu ingestion pipeline."""

from prometheus_client import Counter, Histogram

ingestions_started_total = Counter(
    "menuflow_ingestions_started_total",
    "Total ingestions created through intake",
    ["file_mime"]
)

processing_runs_total = Counter(
    "menuflow_processing_runs_total",
    "Total processing runs by outcome",
    ["status", "error_kind"]  # status: success|failed, error_kind: '' on success
)

processing_duration_seconds = Histogram(
    "menuflow_processing_duration_seconds",
    "Wall time of a processing run in seconds",
    buckets=[1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0, 600.0]
)

pages_extracted_total = Counter(
    "menuflow_pages_extracted_total",
    "Total pages sent to the vision model",
    ["outcome"]  # outcome: parsed|degraded
)

extraction_latency_seconds = Histogram(
    "menuflow_extraction_latency_seconds",
    "Vision extraction latency per page in seconds",
    buckets=[0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 40.0, 90.0, 120.0]
)

staged_items_total = Counter(
    "menuflow_staged_items_total",
    "Total staged items written, by confidence bucket",
    ["bucket"]  # bucket: ge_90|ge_75|ge_55|lt_55
)

publishes_total = Counter(
    "menuflow_publishes_total",
    "Total publish attempts by outcome",
    ["status"]  # status: success|failed
)

reindex_items_total = Counter(
    "menuflow_reindex_items_total",
    "Menu items processed by the embedding worker",
    ["status"]  # status: embedded|skipped|failed
)
