"""Location and StaffRole SQLAlchemy models

Locations belong to a tenant and carry the default currency for menus
ingested there. StaffRole rows grant a user access to every location of a
tenant. Both tables are owned by the tenancy layer; the ingestion pipeline
only reads them.
"""

from uuid import uuid4

from sqlalchemy import Column, Text, String, DateTime, Index, Uuid, func

from .base import Base


STAFF_ROLES = ("owner", "manager", "admin", "support")


class Location(Base):
    """A venue of a tenant (restaurant, bar, outlet)."""
    __tablename__ = "location"
    __table_args__ = (
        Index("ix_location_tenant_id", "tenant_id"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    tenant_id = Column(Uuid, nullable=False)
    name = Column(Text, nullable=False)
    currency = Column(String(3), nullable=True, comment="ISO 4217 default for menus")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    def __repr__(self):
        return f"<Location(id={self.id}, tenant_id={self.tenant_id}, name='{self.name}')>"


class StaffRole(Base):
    """Role grant of a user within a tenant."""
    __tablename__ = "staff_role"
    __table_args__ = (
        Index("ix_staff_role_user_tenant", "user_id", "tenant_id"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    user_id = Column(Uuid, nullable=False)
    tenant_id = Column(Uuid, nullable=False)
    role = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
