"""IngestionStatus state machine for the menu ingestion lifecycle"""

from enum import Enum
from typing import Optional, Dict, List


class IngestionStatus(str, Enum):
    """Menu ingestion status enum

    State flow:
    uploaded → processing → awaiting_review → published
    processing and awaiting_review can fail; failed and awaiting_review
    can be re-run back into processing.
    """
    UPLOADED = "uploaded"                # Record created, document upload pending/complete
    PROCESSING = "processing"            # Conversion + extraction run in progress
    AWAITING_REVIEW = "awaiting_review"  # Staged rows ready for human review
    PUBLISHED = "published"              # Promoted into the live catalog (terminal)
    FAILED = "failed"                    # Last run failed (can re-run)


ALLOWED_TRANSITIONS: Dict[Optional[IngestionStatus], List[IngestionStatus]] = {
    None: [IngestionStatus.UPLOADED],
    IngestionStatus.UPLOADED: [IngestionStatus.PROCESSING],
    IngestionStatus.PROCESSING: [IngestionStatus.AWAITING_REVIEW, IngestionStatus.FAILED],
    IngestionStatus.AWAITING_REVIEW: [
        IngestionStatus.PUBLISHED,
        IngestionStatus.PROCESSING,
        IngestionStatus.FAILED,
    ],
    IngestionStatus.PUBLISHED: [],
    IngestionStatus.FAILED: [IngestionStatus.PROCESSING],
}

# Entering processing from these states is a re-run and must be requested explicitly
RERUN_ONLY_SOURCES = frozenset({IngestionStatus.FAILED, IngestionStatus.AWAITING_REVIEW})


def can_transition(from_status: Optional[IngestionStatus], to_status: IngestionStatus) -> bool:
    """Validate if status transition is allowed

    Args:
        from_status: Current status (None for new ingestions)
        to_status: Target status

    Returns:
        True if transition is allowed, False otherwise

    Example:
        >>> can_transition(IngestionStatus.UPLOADED, IngestionStatus.PROCESSING)
        True
        >>> can_transition(IngestionStatus.PUBLISHED, IngestionStatus.PROCESSING)
        False
    """
    allowed = ALLOWED_TRANSITIONS.get(from_status, [])
    return to_status in allowed


def get_allowed_transitions(from_status: Optional[IngestionStatus]) -> List[IngestionStatus]:
    """Get list of allowed transitions from current status

    Example:
        >>> get_allowed_transitions(IngestionStatus.FAILED)
        [<IngestionStatus.PROCESSING: 'processing'>]
    """
    return ALLOWED_TRANSITIONS.get(from_status, [])


def requires_rerun(from_status: IngestionStatus) -> bool:
    """Whether starting a processing run from this status needs rerun=True."""
    return from_status in RERUN_ONLY_SOURCES
