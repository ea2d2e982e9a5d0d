"""Staff access checks shared by the ingestion services"""

from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from ..domain.ingestion.errors import ForbiddenError, NotFoundError, StorageFailure
from ..infrastructure.repositories.staff_access_repository import StaffAccessRepository
from ..models.location import Location


def ensure_staff_for_location(
    staff_access: StaffAccessRepository,
    actor_id: UUID,
    location_id: UUID,
) -> Location:
    """Resolve a location and verify the actor is staff of its tenant.

    Raises:
        NotFoundError: location_not_found
        ForbiddenError: the actor holds no staff role in the tenant
        StorageFailure: the lookup itself failed
    """
    try:
        location = staff_access.get_location(location_id)
        if location is None:
            raise NotFoundError("Location not found", code="location_not_found")
        allowed = staff_access.has_staff_role(actor_id, location.tenant_id)
    except SQLAlchemyError:
        raise StorageFailure("Unable to verify access", code="access_lookup_failed")

    if not allowed:
        raise ForbiddenError("You do not have access to this location")
    return location
