"""Menu Item Embedding Worker - regenerate search embeddings after publish.

Task Signature:
    menu.embed_items(item_ids: list[str], force: bool = True,
                     embedding_model: str = "text-embedding-3-small")

Idempotent: items whose canonical text hash is unchanged are skipped unless
force is set.
"""

import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from celery import Task

from ..config import get_settings
from ..database import get_db_session
from ..domain.ai.ports import EmbeddingProviderPort, RetryableEmbeddingError
from ..domain.ingestion.ports import ReindexPort
from ..infrastructure.ai.openai_embeddings import OpenAIEmbeddingProvider
from ..infrastructure.repositories.catalog_repository import CatalogRepository
from ..observability.metrics import reindex_items_total
from ..services.embedding import calculate_text_hash, generate_menu_item_embedding_text
from .celery_app import celery_app

logger = logging.getLogger(__name__)

BATCH_SIZE = 32
DEFAULT_EMBEDDING_MODEL = "text-embedding-3-small"


class EmbedMenuItemsTask(Task):
    """Retries transient provider failures with jittered exponential backoff.

    Permanent failures (credentials, rejected input) are not retried.
    """
    autoretry_for = (RetryableEmbeddingError,)
    retry_kwargs = {"max_retries": 3, "countdown": 5}
    retry_backoff = True
    retry_backoff_max = 600
    retry_jitter = True


def embed_menu_items(
    session,
    provider: EmbeddingProviderPort,
    item_ids: List[UUID],
    force: bool = True,
    embedding_model: str = DEFAULT_EMBEDDING_MODEL,
) -> Dict[str, Any]:
    """Embed menu items in batches of BATCH_SIZE and store the vectors.

    Args:
        session: Database session (caller commits)
        provider: Embedding provider
        item_ids: Items to (re-)embed
        force: Re-embed even when the text hash is unchanged
        embedding_model: Embedding model name

    Returns:
        Dict with counts: requested, embedded, skipped, missing
    """
    items = CatalogRepository(session).get_items(item_ids)
    pending = []
    skipped = 0

    for item in items:
        text = generate_menu_item_embedding_text(item.name, item.description, item.tags)
        text_hash = calculate_text_hash(text)
        unchanged = (
            item.embedding is not None
            and item.embedding_text_hash == text_hash
            and item.embedding_model == embedding_model
        )
        if unchanged and not force:
            skipped += 1
            continue
        pending.append((item, text, text_hash))

    embedded = 0
    for start in range(0, len(pending), BATCH_SIZE):
        batch = pending[start:start + BATCH_SIZE]
        results = provider.embed([text for _, text, _ in batch], model=embedding_model)
        for (item, _, text_hash), result in zip(batch, results):
            item.embedding = result.vector
            item.embedding_model = result.model
            item.embedding_text_hash = text_hash
            embedded += 1
        session.flush()

    reindex_items_total.labels(status="embedded").inc(embedded)
    reindex_items_total.labels(status="skipped").inc(skipped)

    return {
        "requested": len(item_ids),
        "embedded": embedded,
        "skipped": skipped,
        "missing": len(item_ids) - len(items),
    }


@celery_app.task(name="menu.embed_items", base=EmbedMenuItemsTask, bind=True)
def embed_menu_items_task(
    self: Task,
    item_ids: List[str],
    force: bool = True,
    embedding_model: str = DEFAULT_EMBEDDING_MODEL,
) -> Dict[str, Any]:
    """Generate embeddings for published menu items.

    Example:
        >>> embed_menu_items_task.delay(item_ids=[str(i) for i in ids], force=True)
    """
    ids = [UUID(item_id) for item_id in item_ids]
    provider = OpenAIEmbeddingProvider(api_key=get_settings().OPENAI_API_KEY)

    with get_db_session() as session:
        summary = embed_menu_items(session, provider, ids, force=force, embedding_model=embedding_model)

    logger.info(
        f"Embedded {summary['embedded']} menu items, skipped {summary['skipped']} "
        f"(task {self.request.id})"
    )
    return summary


class CeleryReindexTrigger(ReindexPort):
    """ReindexPort that enqueues the menu.embed_items task."""

    def trigger(self, item_ids: list[UUID], force: bool = True) -> Optional[str]:
        result = embed_menu_items_task.delay(
            item_ids=[str(item_id) for item_id in item_ids],
            force=force,
        )
        return result.id
