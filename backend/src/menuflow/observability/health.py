"""Component health checks for the /health endpoint."""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


@dataclass
class ComponentHealth:
    status: HealthStatus
    message: Optional[str] = None
    latency_ms: Optional[float] = None


def check_database_health(db: Session) -> ComponentHealth:
    """Run a trivial query against the database."""
    start_time = time.time()
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        return ComponentHealth(status=HealthStatus.UNHEALTHY, message=f"Database unavailable: {type(e).__name__}")
    latency_ms = round((time.time() - start_time) * 1000, 2)
    return ComponentHealth(status=HealthStatus.HEALTHY, latency_ms=latency_ms)
