"""Processing Orchestrator - drive one processing run of an ingestion.

Run flow:
1. Admission: load, access check, state machine check
2. Claim the ingestion (compare-and-set to `processing`), emit `processing`
3. Download URL → page conversion → preview persistence
4. Vision extraction per page (sequential or bounded concurrency)
5. Merge, then replace staged rows and update the ingestion in one transaction
6. Emit `awaiting_review`

Any failure after the claim marks the ingestion `failed`, appends the error,
emits `failed` and is returned in the ProcessOutcome. Staged rows of a
previous successful run are only replaced by a successful run.
"""

import asyncio
import logging
import time
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import PipelineConfig
from ..domain.extraction.merge import merge_page_results
from ..domain.ingestion.errors import (
    ConversionError,
    IngestionError,
    NotFoundError,
    StorageFailure,
    ValidationError,
    as_ingestion_error,
)
from ..domain.ingestion.models import (
    MergeOptions,
    MergeResult,
    PageAsset,
    PagePreview,
    PageResult,
    ProcessOutcome,
)
from ..domain.ingestion.ports import MenuExtractorPort, ObjectStoragePort, PageConverterPort
from ..domain.ingestion.status import IngestionStatus, can_transition, requires_rerun
from ..domain.ingestion.validation import build_preview_path, preview_extension
from ..infrastructure.repositories.ingestion_repository import IngestionRepository
from ..infrastructure.repositories.staff_access_repository import StaffAccessRepository
from ..models.base import utcnow
from ..models.menu_ingestion import MenuIngestion
from ..observability.metrics import (
    extraction_latency_seconds,
    pages_extracted_total,
    processing_duration_seconds,
    processing_runs_total,
    staged_items_total,
)
from .access import ensure_staff_for_location
from .events import EVENT_AWAITING_REVIEW, EVENT_FAILED, EVENT_PROCESSING, emit_ingestion_event

logger = logging.getLogger(__name__)

UNKNOWN_CURRENCY = "XXX"


class ProcessingService:
    """Runs the conversion → extraction → merge pipeline for one ingestion.

    Example:
        service = ProcessingService(db, storage, converter, extractor, PipelineConfig())
        outcome = await service.run(actor_id, ingestion_id)
        if not outcome.ok:
            log(outcome.error.code)
    """

    def __init__(
        self,
        db: Session,
        storage: ObjectStoragePort,
        converter: PageConverterPort,
        extractor: MenuExtractorPort,
        config: PipelineConfig,
    ):
        self.db = db
        self.storage = storage
        self.converter = converter
        self.extractor = extractor
        self.config = config
        self.ingestions = IngestionRepository(db)
        self.staff_access = StaffAccessRepository(db)

    async def run(self, actor_id: UUID, ingestion_id: UUID, rerun: bool = False) -> ProcessOutcome:
        """Process an ingestion end-to-end.

        Args:
            actor_id: Authenticated user triggering the run
            ingestion_id: Ingestion to process
            rerun: Required to re-process `failed` or `awaiting_review` ingestions

        Returns:
            ProcessOutcome: ok with counts, or the typed error. Admission
            errors (not found, forbidden, wrong status) leave the ingestion
            untouched; later errors leave it `failed`.
        """
        try:
            ingestion = self._admit(actor_id, ingestion_id, rerun)
        except IngestionError as e:
            logger.info(
                f"Processing rejected: {e.code}",
                extra={"ingestion_id": ingestion_id, "user_id": actor_id},
            )
            return ProcessOutcome(ok=False, ingestion_id=ingestion_id, errors=[e.to_dict()], error=e)

        started = time.monotonic()
        log_extra = {"ingestion_id": ingestion.id, "tenant_id": ingestion.tenant_id}

        try:
            merge, previews, degraded_pages, pages_processed = await self._execute(ingestion)
            self._complete(ingestion, merge, previews, degraded_pages, pages_processed)
        except Exception as exc:
            error = as_ingestion_error(exc)
            if isinstance(exc, IngestionError):
                logger.warning(f"Processing failed: {error.kind.value}/{error.code}", extra=log_extra)
            else:
                logger.exception("Processing failed with unexpected error", extra=log_extra)
            self._record_failure(ingestion_id, error)
            processing_runs_total.labels(status="failed", error_kind=error.kind.value).inc()
            processing_duration_seconds.observe(time.monotonic() - started)
            return ProcessOutcome(ok=False, ingestion_id=ingestion_id, errors=[error.to_dict()], error=error)

        processing_runs_total.labels(status="success", error_kind="").inc()
        processing_duration_seconds.observe(time.monotonic() - started)
        logger.info(
            f"Processing completed: {merge.items_count} items from {pages_processed} pages",
            extra=log_extra,
        )
        return ProcessOutcome(
            ok=True,
            ingestion_id=ingestion_id,
            items_count=merge.items_count,
            pages_processed=pages_processed,
        )

    def _admit(self, actor_id: UUID, ingestion_id: UUID, rerun: bool) -> MenuIngestion:
        """Validate the request and claim the ingestion for this run."""
        try:
            ingestion = self.ingestions.get(ingestion_id)
        except SQLAlchemyError:
            raise StorageFailure("Unable to load ingestion", code="ingestion_lookup_failed")
        if ingestion is None:
            raise NotFoundError("Ingestion not found", code="ingestion_not_found")

        ensure_staff_for_location(self.staff_access, actor_id, ingestion.location_id)

        current = IngestionStatus(ingestion.status)
        if not can_transition(current, IngestionStatus.PROCESSING):
            raise ValidationError(
                f"Ingestion cannot be processed while {current.value}",
                code="invalid_status",
            )
        if requires_rerun(current) and not rerun:
            raise ValidationError(
                f"Ingestion is {current.value}; pass rerun=true to process it again",
                code="rerun_required",
            )

        metadata = dict(ingestion.metadata_json or {})
        metadata["process_started_at"] = utcnow().isoformat()
        metadata["process_started_by"] = str(actor_id)

        try:
            if not self.ingestions.claim_for_processing(ingestion, current.value, metadata):
                self.db.rollback()
                raise ValidationError("Ingestion is already being processed", code="invalid_status")
            emit_ingestion_event(self.db, ingestion, EVENT_PROCESSING, status=IngestionStatus.PROCESSING.value)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise StorageFailure("Unable to flag ingestion as processing", code="ingestion_update_failed")

        return ingestion

    async def _execute(self, ingestion: MenuIngestion):
        download_url = await self.storage.generate_presigned_url(
            ingestion.storage_path,
            expires_in_seconds=self.config.signed_download_ttl_seconds,
        )

        assets = await asyncio.to_thread(self.converter.convert, download_url, ingestion.file_mime)
        if not assets:
            raise ConversionError("Document produced no pages", code="converter_no_pages")

        previews = await self._persist_previews(ingestion, assets)
        results = await self._extract_pages(assets)

        degraded_pages = [result.page for result in results if result.degraded]
        pages_extracted_total.labels(outcome="parsed").inc(len(results) - len(degraded_pages))
        if degraded_pages:
            pages_extracted_total.labels(outcome="degraded").inc(len(degraded_pages))

        merge = merge_page_results(
            results,
            MergeOptions(
                ingestion_currency=ingestion.currency,
                min_confidence=self.config.min_confidence,
                price_ceiling_cents=self.config.price_ceiling_cents,
            ),
        )
        return merge, previews, degraded_pages, len(assets)

    async def _persist_previews(self, ingestion: MenuIngestion, assets: list[PageAsset]) -> list[PagePreview]:
        previews = []
        for asset in assets:
            path = build_preview_path(
                ingestion.tenant_id,
                ingestion.id,
                asset.page,
                preview_extension(asset.content_type),
            )
            await self.storage.store_preview(path, asset.data, asset.content_type)
            asset.preview_path = path
            previews.append(PagePreview(page=asset.page, path=path, content_type=asset.content_type))
        return previews

    async def _extract_pages(self, assets: list[PageAsset]) -> list[PageResult]:
        if self.config.extraction_concurrency <= 1:
            return [await self._extract_one(asset) for asset in assets]

        semaphore = asyncio.Semaphore(self.config.extraction_concurrency)

        async def bounded(asset: PageAsset) -> PageResult:
            async with semaphore:
                return await self._extract_one(asset)

        ordered = sorted(assets, key=lambda asset: asset.page)
        results = await asyncio.gather(*(bounded(asset) for asset in ordered), return_exceptions=True)
        # The earliest failing page is reported regardless of completion order
        for result in results:
            if isinstance(result, BaseException):
                raise result
        return list(results)

    async def _extract_one(self, asset: PageAsset) -> PageResult:
        started = time.monotonic()
        result = await asyncio.to_thread(self.extractor.extract_page, asset)
        extraction_latency_seconds.observe(time.monotonic() - started)
        return result

    def _complete(
        self,
        ingestion: MenuIngestion,
        merge: MergeResult,
        previews: list[PagePreview],
        degraded_pages: list[int],
        pages_processed: int,
    ) -> None:
        """Replace staged rows and move the ingestion to awaiting_review atomically."""
        try:
            self.ingestions.replace_staged_items(
                ingestion.id,
                merge.items,
                fallback_currency=ingestion.currency,
            )

            structured_currency = merge.structured.get("currency")
            if structured_currency and structured_currency != UNKNOWN_CURRENCY:
                ingestion.currency = structured_currency

            metadata = dict(ingestion.metadata_json or {})
            metadata.update({
                "process_completed_at": utcnow().isoformat(),
                "page_previews": [preview.to_dict() for preview in previews],
                "confidence_buckets": merge.confidence_buckets,
                "degraded_pages": degraded_pages,
                "max_price_cents": merge.max_price_cents,
            })

            ingestion.status = IngestionStatus.AWAITING_REVIEW.value
            ingestion.items_count = merge.items_count
            ingestion.pages_processed = pages_processed
            ingestion.raw_text = merge.raw_text
            ingestion.structured_json = merge.structured
            ingestion.metadata_json = metadata
            ingestion.errors_json = []

            emit_ingestion_event(
                self.db,
                ingestion,
                EVENT_AWAITING_REVIEW,
                items_count=merge.items_count,
                pages_processed=pages_processed,
                confidence=merge.confidence_buckets,
            )
            self.db.commit()
        except SQLAlchemyError:
            raise StorageFailure("Unable to store ingestion results", code="staging_write_failed")

        for bucket, count in merge.confidence_buckets.items():
            if count:
                staged_items_total.labels(bucket=bucket).inc(count)

    def _record_failure(self, ingestion_id: UUID, error: IngestionError) -> None:
        self.db.rollback()
        try:
            ingestion: Optional[MenuIngestion] = self.ingestions.get(ingestion_id)
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
            logger.exception(
                "Failed to record processing failure",
                extra={"ingestion_id": ingestion_id},
            )
