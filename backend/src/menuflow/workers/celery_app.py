"""Celery application for MenuFlow background tasks.

Start a worker with:
    celery -A menuflow.workers.celery_app worker --loglevel=INFO
"""

from celery import Celery

from ..config import get_settings

settings = get_settings()

celery_app = Celery(
    "menuflow",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=[
        "menuflow.workers.processing_worker",
        "menuflow.workers.embed_menu_items_worker",
    ],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    timezone="UTC",
)
