"""Location and staff role lookups for access checks"""

from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ...models.location import Location, StaffRole, STAFF_ROLES


class StaffAccessRepository:
    """Read-only access to locations and staff role grants."""

    def __init__(self, db: Session):
        self.db = db

    def get_location(self, location_id: UUID) -> Optional[Location]:
        return self.db.get(Location, location_id)

    def has_staff_role(self, user_id: UUID, tenant_id: UUID) -> bool:
        """Check whether the user holds any staff role within the tenant.

        Args:
            user_id: Acting user
            tenant_id: Tenant owning the location

        Returns:
            True when a role in STAFF_ROLES is granted
        """
        query = (
            select(StaffRole.id)
            .where(
                StaffRole.user_id == user_id,
                StaffRole.tenant_id == tenant_id,
                StaffRole.role.in_(STAFF_ROLES),
            )
            .limit(1)
        )
        return self.db.execute(query).first() is not None
