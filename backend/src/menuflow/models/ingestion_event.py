"""IngestionEvent SQLAlchemy model"""

from uuid import uuid4

from sqlalchemy import Column, Text, DateTime, Index, Uuid, func

from .base import Base, PortableJSONB


class IngestionEvent(Base):
    """Append-only lifecycle record for a menu ingestion.

    One row per major state transition (started, processing, awaiting_review,
    published, failed). Entries are never updated or deleted.
    """
    __tablename__ = "ingestion_event"
    __table_args__ = (
        Index("ix_ingestion_event_ingestion_id", "ingestion_id"),
        Index("ix_ingestion_event_tenant_created_at", "tenant_id", "created_at"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    ingestion_id = Column(Uuid, nullable=False)
    tenant_id = Column(Uuid, nullable=False)
    location_id = Column(Uuid, nullable=False)
    event = Column(Text, nullable=False)
    payload_json = Column(PortableJSONB, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    def to_dict(self):
        """Convert event to dictionary representation"""
        return {
            "id": str(self.id),
            "ingestion_id": str(self.ingestion_id),
            "tenant_id": str(self.tenant_id),
            "location_id": str(self.location_id),
            "event": self.event,
            "payload": self.payload_json,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
