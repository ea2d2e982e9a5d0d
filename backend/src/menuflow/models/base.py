"""Declarative base and shared column helpers for MenuFlow models"""

from datetime import datetime, timezone

from sqlalchemy.orm import declarative_base
from sqlalchemy import TypeDecorator, JSON
from sqlalchemy.dialects.postgresql import JSONB


class PortableJSONB(TypeDecorator):
    """JSONB on PostgreSQL, plain JSON on every other dialect.

    Ingestion metadata, flags and structured menus are stored as JSON. The
    test suite runs against SQLite, which has no JSONB.
    """
    impl = JSON
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == 'postgresql':
            return dialect.type_descriptor(JSONB())
        return dialect.type_descriptor(JSON())


def utcnow() -> datetime:
    """Timezone-aware UTC now, used for onupdate columns and metadata stamps."""
    return datetime.now(timezone.utc)


Base = declarative_base()
