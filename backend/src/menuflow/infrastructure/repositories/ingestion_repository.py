"""Ingestion repository for menu_ingestion and menu_item_staging rows"""

from typing import Optional
from uuid import UUID

from sqlalchemy import select, update, delete
from sqlalchemy.orm import Session

from ...domain.ingestion.models import StagingRow
from ...domain.ingestion.status import IngestionStatus
from ...models.base import utcnow
from ...models.menu_ingestion import MenuIngestion
from ...models.menu_item_staging import MenuItemStaging


class IngestionRepository:
    """Repository for menu ingestion persistence.

    Methods only flush; transaction boundaries belong to the calling service.
    """

    def __init__(self, db: Session):
        """Initialize repository with database session.

        Args:
            db: SQLAlchemy database session
        """
        self.db = db

    def get(self, ingestion_id: UUID) -> Optional[MenuIngestion]:
        return self.db.get(MenuIngestion, ingestion_id)

    def create(
        self,
        tenant_id: UUID,
        location_id: UUID,
        uploaded_by: UUID,
        original_filename: Optional[str],
        storage_path: str,
        file_mime: str,
        currency: Optional[str],
        metadata: dict,
        ingestion_id: Optional[UUID] = None,
    ) -> MenuIngestion:
        ingestion = MenuIngestion(
            tenant_id=tenant_id,
            location_id=location_id,
            uploaded_by=uploaded_by,
            original_filename=original_filename,
            storage_path=storage_path,
            file_mime=file_mime,
            status=IngestionStatus.UPLOADED.value,
            currency=currency,
            metadata_json=metadata,
            errors_json=[],
        )
        if ingestion_id is not None:
            ingestion.id = ingestion_id

        self.db.add(ingestion)
        self.db.flush()
        return ingestion

    def compare_and_set_status(
        self,
        ingestion: MenuIngestion,
        expected_status: str,
        new_status: IngestionStatus,
        metadata: dict,
    ) -> bool:
        """Change status only if the row is still in expected_status.

        The conditional UPDATE is the admission check for concurrent
        requests: exactly one of them sees a matched row.

        Args:
            ingestion: Ingestion as loaded by the caller
            expected_status: Status observed when the ingestion was loaded
            new_status: Target status
            metadata: Full metadata document to store with the change

        Returns:
            True if this caller won
        """
        result = self.db.execute(
            update(MenuIngestion)
            .where(
                MenuIngestion.id == ingestion.id,
                MenuIngestion.status == expected_status,
            )
            .values(
                status=new_status.value,
                metadata_json=metadata,
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        changed = result.rowcount == 1
        if changed:
            self.db.expire(ingestion)
        return changed

    def claim_for_processing(self, ingestion: MenuIngestion, expected_status: str, metadata: dict) -> bool:
        return self.compare_and_set_status(
            ingestion, expected_status, IngestionStatus.PROCESSING, metadata
        )

    def list_staged_items(self, ingestion_id: UUID) -> list[MenuItemStaging]:
        query = (
            select(MenuItemStaging)
            .where(MenuItemStaging.ingestion_id == ingestion_id)
            .order_by(MenuItemStaging.position)
        )
        return list(self.db.execute(query).scalars().all())

    def delete_staged_items(self, ingestion_id: UUID) -> int:
        result = self.db.execute(
            delete(MenuItemStaging)
            .where(MenuItemStaging.ingestion_id == ingestion_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def replace_staged_items(
        self,
        ingestion_id: UUID,
        rows: list[StagingRow],
        fallback_currency: Optional[str] = None,
    ) -> list[MenuItemStaging]:
        """Replace all staged rows of an ingestion (delete-then-insert).

        Runs inside the caller's transaction so a failure leaves the previous
        rows in place.
        """
        self.delete_staged_items(ingestion_id)

        staged = [
            MenuItemStaging(
                ingestion_id=ingestion_id,
                position=position,
                category_name=row.category_name,
                name=row.name,
                description=row.description,
                price_cents=row.price_cents,
                currency=row.currency or fallback_currency,
                allergens=list(row.allergens),
                tags=list(row.tags),
                is_alcohol=row.is_alcohol,
                confidence=row.confidence,
                media_url=row.media_url,
                flags=dict(row.flags),
            )
            for position, row in enumerate(rows)
        ]
        self.db.add_all(staged)
        self.db.flush()
        return staged

    def append_error(self, ingestion: MenuIngestion, code: str, message: str) -> None:
        """Mark the ingestion failed and record the error."""
        errors = list(ingestion.errors_json or [])
        errors.append({"code": code, "message": message, "at": utcnow().isoformat()})
        ingestion.errors_json = errors
        ingestion.status = IngestionStatus.FAILED.value
        self.db.flush()
