"""Publish Transaction - promote reviewed staged rows into the live menu.

All catalog writes, the ingestion status change and the `published` event
commit together. Re-indexing of the touched items is triggered after commit
and never fails a publish.
"""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..domain.ingestion.errors import (
    IngestionError,
    NotFoundError,
    PublishError,
    StorageFailure,
    TenantMismatchError,
    ValidationError,
)
from ..domain.ingestion.models import PublishResult
from ..domain.ingestion.ports import ReindexPort
from ..domain.ingestion.status import IngestionStatus
from ..infrastructure.repositories.catalog_repository import CatalogRepository
from ..infrastructure.repositories.ingestion_repository import IngestionRepository
from ..infrastructure.repositories.staff_access_repository import StaffAccessRepository
from ..models.base import utcnow
from ..models.menu import Menu
from ..models.menu_ingestion import MenuIngestion
from ..observability.metrics import publishes_total
from .access import ensure_staff_for_location
from .events import EVENT_FAILED, EVENT_PUBLISHED, emit_ingestion_event

logger = logging.getLogger(__name__)


class PublishService:
    """Atomic promotion of an ingestion's staged items into a menu.

    Example:
        service = PublishService(db, reindex=CeleryReindexTrigger())
        result = service.publish(actor_id, ingestion_id, menu_id)
        result.version  # new menu version
    """

    def __init__(self, db: Session, reindex: Optional[ReindexPort] = None):
        self.db = db
        self.reindex = reindex
        self.ingestions = IngestionRepository(db)
        self.catalog = CatalogRepository(db)
        self.staff_access = StaffAccessRepository(db)

    def publish(self, actor_id: UUID, ingestion_id: UUID, menu_id: UUID) -> PublishResult:
        """Publish staged items of an ingestion into a menu.

        Args:
            actor_id: Authenticated user
            ingestion_id: Ingestion in `awaiting_review`
            menu_id: Target menu of the same tenant and location

        Returns:
            PublishResult with upsert counts, new menu version and item ids

        Raises:
            NotFoundError: ingestion_not_found, menu_not_found, location_not_found
            ForbiddenError: actor is not staff of the location's tenant
            TenantMismatchError: menu belongs to another tenant or location
            ValidationError: invalid_status (ingestion not awaiting review)
            PublishError: database failure inside the transaction; the
                ingestion is left `failed`
        """
        ingestion, menu = self._load(actor_id, ingestion_id, menu_id)
        log_extra = {"ingestion_id": ingestion.id, "tenant_id": ingestion.tenant_id, "menu_id": menu.id}

        try:
            staged = self.ingestions.list_staged_items(ingestion.id)
            stats = self.catalog.publish_staged_items(menu, staged)

            metadata = dict(ingestion.metadata_json or {})
            metadata["published_at"] = utcnow().isoformat()
            metadata["published_menu_id"] = str(menu.id)
            published = self.ingestions.compare_and_set_status(
                ingestion,
                IngestionStatus.AWAITING_REVIEW.value,
                IngestionStatus.PUBLISHED,
                metadata,
            )
            if not published:
                self.db.rollback()
                raise ValidationError("Ingestion changed while publishing", code="invalid_status")

            emit_ingestion_event(
                self.db,
                ingestion,
                EVENT_PUBLISHED,
                items_count=stats.items_upserted,
            )
            self.db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Publish transaction failed: {type(e).__name__}", extra=log_extra)
            error = PublishError("Unable to publish menu items")
            self._record_failure(ingestion_id, error)
            publishes_total.labels(status="failed").inc()
            raise error

        publishes_total.labels(status="success").inc()
        logger.info(
            f"Published {stats.items_upserted} items into menu version {stats.version}",
            extra=log_extra,
        )

        self._trigger_reindex(stats.item_ids, log_extra)

        return PublishResult(
            ingestion_id=ingestion_id,
            menu_id=menu_id,
            items_upserted=stats.items_upserted,
            categories_created=stats.categories_created,
            version=stats.version,
            item_ids=list(stats.item_ids),
        )

    def _load(self, actor_id: UUID, ingestion_id: UUID, menu_id: UUID) -> tuple[MenuIngestion, Menu]:
        try:
            ingestion = self.ingestions.get(ingestion_id)
        except SQLAlchemyError:
            raise StorageFailure("Unable to load ingestion", code="ingestion_lookup_failed")
        if ingestion is None:
            raise NotFoundError("Ingestion not found", code="ingestion_not_found")

        ensure_staff_for_location(self.staff_access, actor_id, ingestion.location_id)

        try:
            menu = self.catalog.get_menu(menu_id)
        except SQLAlchemyError:
            raise StorageFailure("Unable to load menu", code="menu_lookup_failed")
        if menu is None:
            raise NotFoundError("Menu not found", code="menu_not_found")

        if menu.tenant_id != ingestion.tenant_id or menu.location_id != ingestion.location_id:
            raise TenantMismatchError("Menu does not belong to the ingestion's location")

        if ingestion.status != IngestionStatus.AWAITING_REVIEW.value:
            raise ValidationError(
                f"Only ingestions awaiting review can be published (status: {ingestion.status})",
                code="invalid_status",
            )
        return ingestion, menu

    def _record_failure(self, ingestion_id: UUID, error: IngestionError) -> None:
        self.db.rollback()
        try:
            ingestion = self.ingestions.get(ingestion_id)
            if ingestion is None:
                return
            self.ingestions.append_error(ingestion, error.code, error.message)
            emit_ingestion_event(
                self.db,
                ingestion,
                EVENT_FAILED,
                status=IngestionStatus.FAILED.value,
                errors=[error.to_dict()],
            )
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to record publish failure", extra={"ingestion_id": ingestion_id})

    def _trigger_reindex(self, item_ids: list[UUID], log_extra: dict) -> None:
        if self.reindex is None or not item_ids:
            return
        try:
            job_id = self.reindex.trigger(item_ids, force=True)
        except Exception as e:
            # Embeddings catch up on the next publish or a manual re-index
            logger.warning(f"Re-index trigger failed: {type(e).__name__}: {e}", extra=log_extra)
            return
        logger.info(f"Re-index scheduled for {len(item_ids)} items (job {job_id})", extra=log_extra)
