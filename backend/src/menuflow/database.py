"""Database engine and session management.

The engine is created on first use so importing the package never opens a
connection; tests bind their own SQLite engine instead.
"""

from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session

from .config import get_settings

_engine: Optional[Engine] = None

SessionLocal = sessionmaker(autocommit=False, autoflush=False)


def get_engine() -> Engine:
    """Return the process-wide engine, creating it from DATABASE_URL once."""
    global _engine
    if _engine is None:
        database_url = get_settings().DATABASE_URL
        engine_kwargs = {
            "pool_pre_ping": True,
            "echo": False,
        }
        # Pool settings only apply to PostgreSQL (not SQLite)
        if not database_url.startswith("sqlite"):
            engine_kwargs["pool_size"] = 5
            engine_kwargs["max_overflow"] = 10
        _engine = create_engine(database_url, **engine_kwargs)
        SessionLocal.configure(bind=_engine)
    return _engine


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """Context manager for database sessions.

    Usage:
        with get_db_session() as session:
            session.query(MenuIngestion).all()

    Automatically commits on success, rolls back on exception.
    """
    get_engine()
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_db() -> Generator[Session, None, None]:
    """Dependency for FastAPI endpoints.

    Usage:
        @router.post("/ingestions/process")
        def process(db: Session = Depends(get_db)):
            ...
    """
    get_engine()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
