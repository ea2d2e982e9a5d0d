"""Adapter factories shared by the HTTP layer and background workers."""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from ..config import PipelineConfig, get_pipeline_config, get_settings
from ..database import get_db
from ..domain.ingestion.ports import (
    MenuExtractorPort,
    ObjectStoragePort,
    PageConverterPort,
    ReindexPort,
)
from ..infrastructure.ai.openai_menu_extractor import OpenAIMenuExtractor
from ..infrastructure.conversion.http_page_converter import HttpPageConverter
from ..infrastructure.storage.s3_storage_adapter import S3StorageAdapter
from ..infrastructure.storage.storage_config import load_storage_config
from .intake_service import IntakeService
from .processing_service import ProcessingService
from .publish_service import PublishService


@lru_cache()
def get_object_storage() -> ObjectStoragePort:
    return S3StorageAdapter(load_storage_config(get_settings()))


@lru_cache()
def get_page_converter() -> PageConverterPort:
    return HttpPageConverter(get_pipeline_config())


def get_menu_extractor(config: PipelineConfig = Depends(get_pipeline_config)) -> MenuExtractorPort:
    return OpenAIMenuExtractor(config, api_key=get_settings().OPENAI_API_KEY)


def get_reindex_trigger() -> ReindexPort:
    from ..workers.embed_menu_items_worker import CeleryReindexTrigger

    return CeleryReindexTrigger()


def get_intake_service(
    db: Session = Depends(get_db),
    storage: ObjectStoragePort = Depends(get_object_storage),
    config: PipelineConfig = Depends(get_pipeline_config),
) -> IntakeService:
    return IntakeService(db, storage, config)


def get_processing_service(
    db: Session = Depends(get_db),
    storage: ObjectStoragePort = Depends(get_object_storage),
    converter: PageConverterPort = Depends(get_page_converter),
    extractor: MenuExtractorPort = Depends(get_menu_extractor),
    config: PipelineConfig = Depends(get_pipeline_config),
) -> ProcessingService:
    return ProcessingService(db, storage, converter, extractor, config)


def get_publish_service(
    db: Session = Depends(get_db),
    reindex: ReindexPort = Depends(get_reindex_trigger),
) -> PublishService:
    return PublishService(db, reindex=reindex)
