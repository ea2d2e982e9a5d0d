"""MenuIngestion SQLAlchemy model

One row per uploaded menu document. Tracks the storage location of the
original, the lifecycle status, and the derived outputs of the last
successful processing run.

State flow: uploaded → processing → awaiting_review → published (or failed)
"""

from uuid import uuid4

from sqlalchemy import Column, Text, String, Integer, DateTime, Index, Uuid, func
from sqlalchemy.orm import relationship

from .base import Base, PortableJSONB, utcnow


class MenuIngestion(Base):
    """Ingestion record for one menu document.

    `metadata_json` holds free-form context (page previews, confidence
    buckets, timestamps). `errors_json` is the ordered list of failures that
    caused the last transition to `failed`.
    """
    __tablename__ = "menu_ingestion"
    __table_args__ = (
        Index("ix_menu_ingestion_tenant_id", "tenant_id"),
        Index("ix_menu_ingestion_location_status", "location_id", "status"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    tenant_id = Column(Uuid, nullable=False)
    location_id = Column(Uuid, nullable=False)
    uploaded_by = Column(Uuid, nullable=True)
    original_filename = Column(Text, nullable=True)
    storage_path = Column(Text, nullable=False)
    file_mime = Column(Text, nullable=False)
    status = Column(Text, nullable=False, default="uploaded")
    currency = Column(String(3), nullable=True)
    metadata_json = Column(PortableJSONB, nullable=False, default=dict)
    errors_json = Column(PortableJSONB, nullable=False, default=list)
    items_count = Column(Integer, nullable=True)
    pages_processed = Column(Integer, nullable=True)
    raw_text = Column(Text, nullable=True)
    structured_json = Column(PortableJSONB, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=utcnow,
    )

    staged_items = relationship(
        "MenuItemStaging",
        back_populates="ingestion",
        cascade="all, delete-orphan",
        order_by="MenuItemStaging.position",
    )

    def __repr__(self):
        return (
            f"<MenuIngestion(id={self.id}, status='{self.status}', "
            f"file_mime='{self.file_mime}')>"
        )

    def to_dict(self):
        """Convert ingestion to dictionary representation"""
        return {
            "id": str(self.id),
            "tenant_id": str(self.tenant_id),
            "location_id": str(self.location_id),
            "original_filename": self.original_filename,
            "storage_path": self.storage_path,
            "file_mime": self.file_mime,
            "status": self.status,
            "currency": self.currency,
            "metadata": self.metadata_json or {},
            "errors": self.errors_json or [],
            "items_count": self.items_count,
            "pages_processed": self.pages_processed,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
