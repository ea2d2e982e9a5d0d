"""Menu ingestion API endpoints

POST /ingestions/start    create or resume an ingestion, issue an upload URL
POST /ingestions/process  run conversion, extraction and merge
POST /ingestions/publish  promote staged items into a menu

Errors are raised as IngestionError and rendered as
{"error": {"code", "message"}} by the application exception handler.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from ..auth.dependencies import get_current_user_id
from ..domain.ingestion.models import IntakeRequest
from ..domain.ingestion.validation import parse_boolean_flag
from .dependencies import get_intake_service, get_processing_service, get_publish_service
from .intake_service import IntakeService
from .processing_service import ProcessingService
from .publish_service import PublishService
from .schemas import (
    ErrorResponse,
    ProcessIngestionRequest,
    ProcessIngestionResponse,
    PublishIngestionRequest,
    PublishIngestionResponse,
    StartIngestionRequest,
    StartIngestionResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/ingestions",
    tags=["Menu Ingestion"],
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)


@router.post(
    "/start",
    response_model=StartIngestionResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def start_ingestion(
    body: StartIngestionRequest,
    response: Response,
    actor_id: UUID = Depends(get_current_user_id),
    service: IntakeService = Depends(get_intake_service),
):
    """Create an ingestion (201) or resume an existing one (200)."""
    result = await service.start(
        actor_id,
        IntakeRequest(
            location_id=body.location_id,
            ingestion_id=body.ingestion_id,
            original_filename=body.original_filename,
            file_mime=body.file_mime,
            request_signed_upload=body.request_signed_upload,
        ),
    )
    if not result.created:
        response.status_code = status.HTTP_200_OK

    return StartIngestionResponse(
        ingestion_id=result.ingestion_id,
        status=result.status,
        storage_path=result.storage_path,
        upload_url=result.upload_url,
        file_mime=result.file_mime,
        original_filename=result.original_filename,
        currency=result.currency,
        metadata=result.metadata,
    )


@router.post("/process", response_model=ProcessIngestionResponse)
async def process_ingestion(
    body: ProcessIngestionRequest,
    actor_id: UUID = Depends(get_current_user_id),
    service: ProcessingService = Depends(get_processing_service),
):
    """Run the processing pipeline synchronously.

    Failures are already recorded on the ingestion when the error response
    is returned.
    """
    outcome = await service.run(
        actor_id,
        body.ingestion_id,
        rerun=parse_boolean_flag(body.rerun, fallback=False),
    )
    if not outcome.ok:
        raise outcome.error

    return ProcessIngestionResponse(
        ok=True,
        items_count=outcome.items_count,
        pages_processed=outcome.pages_processed,
        errors=[],
    )


@router.post("/publish", response_model=PublishIngestionResponse)
def publish_ingestion(
    body: PublishIngestionRequest,
    actor_id: UUID = Depends(get_current_user_id),
    service: PublishService = Depends(get_publish_service),
):
    """Publish staged items of an ingestion awaiting review into a menu."""
    result = service.publish(actor_id, body.ingestion_id, body.menu_id)
    return PublishIngestionResponse(
        published=True,
        items_upserted=result.items_upserted,
        categories_created=result.categories_created,
        version=result.version,
    )
