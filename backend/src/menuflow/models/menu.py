"""Live catalog models: Menu, MenuCategory, MenuItem

The authoritative, versioned menu structure. The ingestion pipeline writes
here only inside the publish transaction and the embedding worker.
"""

from uuid import uuid4

from sqlalchemy import (
    Column, Text, String, Integer, Boolean, DateTime, ForeignKey, Index, Uuid, func
)
from sqlalchemy.orm import relationship

from .base import Base, PortableJSONB, utcnow


class Menu(Base):
    __tablename__ = "menu"
    __table_args__ = (
        Index("ix_menu_tenant_location", "tenant_id", "location_id"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    tenant_id = Column(Uuid, nullable=False)
    location_id = Column(Uuid, nullable=False)
    name = Column(Text, nullable=False)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=utcnow,
    )

    categories = relationship(
        "MenuCategory",
        back_populates="menu",
        cascade="all, delete-orphan",
        order_by="MenuCategory.position",
    )

    def __repr__(self):
        return f"<Menu(id={self.id}, name='{self.name}', version={self.version})>"


class MenuCategory(Base):
    __tablename__ = "menu_category"
    __table_args__ = (
        Index("ix_menu_category_menu_id", "menu_id"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    menu_id = Column(Uuid, ForeignKey("menu.id", ondelete="CASCADE"), nullable=False)
    name = Column(Text, nullable=False)
    position = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    menu = relationship("Menu", back_populates="categories")
    items = relationship("MenuItem", back_populates="category", cascade="all, delete-orphan")


class MenuItem(Base):
    """Published menu item.

    `embedding` and `embedding_text_hash` are maintained by the
    menu.embed_items worker after each publish.
    """
    __tablename__ = "menu_item"
    __table_args__ = (
        Index("ix_menu_item_menu_id", "menu_id"),
        Index("ix_menu_item_category_id", "category_id"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    menu_id = Column(Uuid, ForeignKey("menu.id", ondelete="CASCADE"), nullable=False)
    category_id = Column(Uuid, ForeignKey("menu_category.id", ondelete="CASCADE"), nullable=False)
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    price_cents = Column(Integer, nullable=True)
    currency = Column(String(3), nullable=True)
    allergens = Column(PortableJSONB, nullable=False, default=list)
    tags = Column(PortableJSONB, nullable=False, default=list)
    is_alcohol = Column(Boolean, nullable=False, default=False)
    media_url = Column(Text, nullable=True)
    embedding = Column(PortableJSONB, nullable=True)
    embedding_model = Column(Text, nullable=True)
    embedding_text_hash = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=utcnow,
    )

    category = relationship("MenuCategory", back_populates="items")

    def __repr__(self):
        return f"<MenuItem(id={self.id}, name='{self.name}', price_cents={self.price_cents})>"
