"""Processing Worker - run an ingestion's processing pipeline in the background.

Task Signature:
    ingestion.process_menu(ingestion_id: str, actor_id: str, rerun: bool = False)

The orchestrator records failures on the ingestion itself, so the task
returns the outcome instead of raising; retries are left to the caller
(re-submitting with rerun=True).
"""

import asyncio
import logging
from typing import Any, Dict
from uuid import UUID

from ..config import get_pipeline_config, get_settings
from ..database import get_db_session
from ..infrastructure.ai.openai_menu_extractor import OpenAIMenuExtractor
from ..infrastructure.conversion.http_page_converter import HttpPageConverter
from ..ingestion.dependencies import get_object_storage
from ..ingestion.processing_service import ProcessingService
from ..observability import bind_ingestion
from .celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(name="ingestion.process_menu", bind=True)
def process_menu_task(self, ingestion_id: str, actor_id: str, rerun: bool = False) -> Dict[str, Any]:
    """Process an ingestion outside the request cycle.

    Args:
        ingestion_id: UUID string of the ingestion
        actor_id: UUID string of the user who requested the run
        rerun: Allow re-processing of failed / awaiting_review ingestions

    Returns:
        Dict with keys: ingestion_id, ok, items_count, pages_processed, errors

    Example:
        >>> process_menu_task.delay(ingestion_id=str(ingestion.id), actor_id=str(user_id))
    """
    ingestion_uuid = UUID(ingestion_id)
    actor_uuid = UUID(actor_id)
    config = get_pipeline_config()

    logger.info(
        f"Processing task {self.request.id} started",
        extra={"ingestion_id": ingestion_id, "user_id": actor_id},
    )

    converter = HttpPageConverter(config)
    try:
        with bind_ingestion(ingestion_id), get_db_session() as session:
            service = ProcessingService(
                session,
                storage=get_object_storage(),
                converter=converter,
                extractor=OpenAIMenuExtractor(config, api_key=get_settings().OPENAI_API_KEY),
                config=config,
            )
            outcome = asyncio.run(service.run(actor_uuid, ingestion_uuid, rerun=rerun))
    finally:
        converter.close()

    return {
        "ingestion_id": ingestion_id,
        "ok": outcome.ok,
        "items_count": outcome.items_count,
        "pages_processed": outcome.pages_processed,
        "errors": outcome.errors,
    }
