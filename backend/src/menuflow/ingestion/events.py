"""Lifecycle events for menu ingestions.

One append-only IngestionEvent row per major transition. Events are written
in the same transaction as the state change they describe.
"""

import logging
from typing import Any, Optional

from sqlalchemy.orm import Session

from ..models.ingestion_event import IngestionEvent
from ..models.menu_ingestion import MenuIngestion

logger = logging.getLogger(__name__)

EVENT_STARTED = "started"
EVENT_PROCESSING = "processing"
EVENT_AWAITING_REVIEW = "awaiting_review"
EVENT_PUBLISHED = "published"
EVENT_FAILED = "failed"

LIFECYCLE_EVENTS = (
    EVENT_STARTED,
    EVENT_PROCESSING,
    EVENT_AWAITING_REVIEW,
    EVENT_PUBLISHED,
    EVENT_FAILED,
)


def emit_ingestion_event(
    db: Session,
    ingestion: MenuIngestion,
    event: str,
    status: Optional[str] = None,
    **details: Any,
) -> IngestionEvent:
    """Record a lifecycle event for an ingestion.

    Args:
        db: Database session (caller commits)
        ingestion: Ingestion the event belongs to
        event: One of LIFECYCLE_EVENTS
        status: Ingestion status to record (defaults to the current status)
        **details: Extra payload keys (items_count, pages_processed, errors,
            confidence); None values are dropped

    Returns:
        IngestionEvent: The created event

    Example:
        emit_ingestion_event(db, ingestion, "awaiting_review",
                             items_count=12, pages_processed=2,
                             confidence={"ge_90": 10, "ge_75": 2, "ge_55": 0, "lt_55": 0})
    """
    if event not in LIFECYCLE_EVENTS:
        raise ValueError(f"Unknown ingestion event: {event}")

    payload = {
        "ingestion_id": str(ingestion.id),
        "status": status or ingestion.status,
    }
    payload.update({key: value for key, value in details.items() if value is not None})

    record = IngestionEvent(
        ingestion_id=ingestion.id,
        tenant_id=ingestion.tenant_id,
        location_id=ingestion.location_id,
        event=event,
        payload_json=payload,
    )
    db.add(record)
    db.flush()

    logger.info(
        f"Ingestion event {event}",
        extra={"ingestion_id": ingestion.id, "tenant_id": ingestion.tenant_id, "event": event},
    )
    return record
