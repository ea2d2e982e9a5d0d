"""Intake Service - create or resume a menu ingestion.

Creates the ingestion record for a new upload and hands the client a
time-boxed upload URL for the original document. Resuming an ingestion that
is still `uploaded` reissues the upload URL for the same storage path.
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import PipelineConfig
from ..domain.ingestion.errors import (
    ForbiddenError,
    NotFoundError,
    StorageFailure,
    ValidationError,
)
from ..domain.ingestion.models import IntakeRequest, IntakeResult
from ..domain.ingestion.ports import ObjectStoragePort
from ..domain.ingestion.status import IngestionStatus
from ..domain.ingestion.validation import (
    build_storage_path,
    is_supported_mime_type,
    normalize_mime,
    parse_boolean_flag,
    sanitize_filename,
)
from ..infrastructure.repositories.ingestion_repository import IngestionRepository
from ..infrastructure.repositories.staff_access_repository import StaffAccessRepository
from ..models.menu_ingestion import MenuIngestion
from ..observability.metrics import ingestions_started_total
from .access import ensure_staff_for_location
from .events import EVENT_STARTED, emit_ingestion_event

logger = logging.getLogger(__name__)

INGESTION_SOURCE = "merchant_portal"


class IntakeService:
    """Entry point of the pipeline.

    Example:
        service = IntakeService(db, storage, PipelineConfig())
        result = await service.start(actor_id, IntakeRequest(
            location_id=location.id,
            original_filename="Dinner Menu.pdf",
            file_mime="application/pdf",
        ))
        # PUT the file to result.upload_url, then call process
    """

    def __init__(self, db: Session, storage: ObjectStoragePort, config: PipelineConfig):
        self.db = db
        self.storage = storage
        self.config = config
        self.ingestions = IngestionRepository(db)
        self.staff_access = StaffAccessRepository(db)

    async def start(self, actor_id: UUID, request: IntakeRequest) -> IntakeResult:
        """Create a new ingestion or resume an existing one.

        Args:
            actor_id: Authenticated user
            request: Target location plus either ingestion_id (resume) or
                original_filename/file_mime (fresh)

        Returns:
            IntakeResult; `created` tells a fresh ingestion from a resume

        Raises:
            ValidationError: unsupported_mime
            NotFoundError: location_not_found, ingestion_not_found
            ForbiddenError: no staff role, or resumed ingestion belongs elsewhere
            StorageFailure: database unavailable (nothing is created)
        """
        if request.ingestion_id is not None:
            location = ensure_staff_for_location(self.staff_access, actor_id, request.location_id)
            return await self._resume(location, request)

        mime = normalize_mime(request.file_mime)
        if not is_supported_mime_type(mime):
            raise ValidationError("File type must be PDF or image", code="unsupported_mime")

        location = ensure_staff_for_location(self.staff_access, actor_id, request.location_id)
        return await self._create(actor_id, location, mime, request)

    async def _resume(self, location, request: IntakeRequest) -> IntakeResult:
        try:
            ingestion = self.ingestions.get(request.ingestion_id)
        except SQLAlchemyError:
            raise StorageFailure("Unable to load ingestion", code="ingestion_lookup_failed")

        if ingestion is None:
            raise NotFoundError("Ingestion not found", code="ingestion_not_found")
        if ingestion.tenant_id != location.tenant_id or ingestion.location_id != location.id:
            raise ForbiddenError("Ingestion does not belong to this location")

        upload_url = None
        wants_upload = parse_boolean_flag(request.request_signed_upload, fallback=True)
        if ingestion.status == IngestionStatus.UPLOADED.value and wants_upload:
            upload_url = await self._sign_upload(ingestion)

        logger.info(
            f"Resumed ingestion in status {ingestion.status}",
            extra={"ingestion_id": ingestion.id, "tenant_id": ingestion.tenant_id},
        )
        return self._result(ingestion, created=False, upload_url=upload_url)

    async def _create(
        self,
        actor_id: UUID,
        location,
        mime: str,
        request: IntakeRequest,
    ) -> IntakeResult:
        ingestion_id = uuid4()
        filename = sanitize_filename(request.original_filename)
        storage_path = build_storage_path(location.tenant_id, ingestion_id, filename)

        try:
            ingestion = self.ingestions.create(
                ingestion_id=ingestion_id,
                tenant_id=location.tenant_id,
                location_id=location.id,
                uploaded_by=actor_id,
                original_filename=request.original_filename,
                storage_path=storage_path,
                file_mime=mime,
                currency=location.currency,
                metadata={
                    "source": INGESTION_SOURCE,
                    "original_filename": request.original_filename,
                    "location_id": str(location.id),
                },
            )
            emit_ingestion_event(self.db, ingestion, EVENT_STARTED)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to create ingestion: {type(e).__name__}")
            raise StorageFailure("Unable to create ingestion", code="ingestion_create_failed")

        ingestions_started_total.labels(file_mime=mime).inc()
        logger.info(
            f"Created ingestion for {mime}",
            extra={"ingestion_id": ingestion.id, "tenant_id": ingestion.tenant_id, "location_id": location.id},
        )

        upload_url = None
        if parse_boolean_flag(request.request_signed_upload, fallback=True):
            upload_url = await self._sign_upload(ingestion)
        return self._result(ingestion, created=True, upload_url=upload_url)

    async def _sign_upload(self, ingestion: MenuIngestion) -> Optional[str]:
        # A missing handle is recoverable: the client resumes to get a new one
        try:
            return await self.storage.generate_presigned_upload_url(
                ingestion.storage_path,
                ingestion.file_mime,
                expires_in_seconds=self.config.signed_upload_ttl_seconds,
            )
        except StorageFailure as e:
            logger.warning(
                f"Failed to sign upload URL: {e.code}",
                extra={"ingestion_id": ingestion.id},
            )
            return None

    @staticmethod
    def _result(ingestion: MenuIngestion, created: bool, upload_url: Optional[str]) -> IntakeResult:
        return IntakeResult(
            ingestion_id=ingestion.id,
            status=ingestion.status,
            storage_path=ingestion.storage_path,
            created=created,
            upload_url=upload_url,
            file_mime=ingestion.file_mime,
            original_filename=ingestion.original_filename,
            currency=ingestion.currency,
            metadata=dict(ingestion.metadata_json or {}),
        )
