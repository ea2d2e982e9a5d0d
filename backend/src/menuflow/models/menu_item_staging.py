"""MenuItemStaging SQLAlchemy model

Candidate menu items extracted from an ingestion, pending human review.
Rows are replaced wholesale by each processing run and cleared by publish.
"""

from uuid import uuid4

from sqlalchemy import Column, Text, String, Integer, Boolean, Numeric, ForeignKey, Index, Uuid
from sqlalchemy.orm import relationship

from .base import Base, PortableJSONB


class MenuItemStaging(Base):
    __tablename__ = "menu_item_staging"
    __table_args__ = (
        Index("ix_menu_item_staging_ingestion_id", "ingestion_id"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    ingestion_id = Column(
        Uuid,
        ForeignKey("menu_ingestion.id", ondelete="CASCADE"),
        nullable=False,
    )
    position = Column(Integer, nullable=False, default=0, comment="Sorted merge order")
    category_name = Column(Text, nullable=True)
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    price_cents = Column(Integer, nullable=True)
    currency = Column(String(3), nullable=True)
    allergens = Column(PortableJSONB, nullable=False, default=list)
    tags = Column(PortableJSONB, nullable=False, default=list)
    is_alcohol = Column(Boolean, nullable=False, default=False)
    confidence = Column(Numeric(4, 3), nullable=True)
    media_url = Column(Text, nullable=True)
    flags = Column(PortableJSONB, nullable=False, default=dict)

    ingestion = relationship("MenuIngestion", back_populates="staged_items")

    def __repr__(self):
        return (
            f"<MenuItemStaging(name='{self.name}', category='{self.category_name}', "
            f"price_cents={self.price_cents})>"
        )
