"""OpenAI embeddings adapter for menu item re-indexing."""

import logging
from typing import Optional, Sequence

from openai import (
    APIConnectionError,
    APIError,
    APITimeoutError,
    InternalServerError,
    OpenAI,
    RateLimitError,
)

from ...domain.ai.ports import (
    Embedding,
    EmbeddingError,
    EmbeddingProviderPort,
    RetryableEmbeddingError,
)

logger = logging.getLogger(__name__)

# Per-request input cap of the embeddings endpoint
MAX_INPUTS_PER_REQUEST = 2048

_TRANSIENT_ERRORS = (RateLimitError, APITimeoutError, APIConnectionError, InternalServerError)


class OpenAIEmbeddingProvider(EmbeddingProviderPort):
    """Calls `embeddings.create` and maps SDK errors onto the port's errors.

    Example:
        provider = OpenAIEmbeddingProvider(api_key=settings.OPENAI_API_KEY)
        provider.embed(["Margherita\\n\\nTomato, mozzarella"], model="text-embedding-3-small")
    """

    def __init__(self, api_key: Optional[str] = None, timeout: float = 30, client=None):
        if client is None and not api_key:
            raise EmbeddingError("OPENAI_API_KEY is not configured")
        self.client = client or OpenAI(api_key=api_key, timeout=timeout)

    def embed(self, texts: Sequence[str], model: str) -> list[Embedding]:
        if not texts:
            return []
        if any(not text or not text.strip() for text in texts):
            raise ValueError("Cannot embed blank text")
        if len(texts) > MAX_INPUTS_PER_REQUEST:
            raise ValueError(f"At most {MAX_INPUTS_PER_REQUEST} texts per request")

        try:
            response = self.client.embeddings.create(model=model, input=list(texts))
        except _TRANSIENT_ERRORS as e:
            raise RetryableEmbeddingError(f"{type(e).__name__}: {e}") from e
        except APIError as e:
            raise EmbeddingError(f"{type(e).__name__}: {e}") from e

        data = sorted(response.data or [], key=lambda entry: entry.index)
        if len(data) != len(texts):
            raise RetryableEmbeddingError(f"Expected {len(texts)} embeddings, received {len(data)}")

        usage = getattr(response, "usage", None)
        logger.debug(
            f"Embedded {len(texts)} texts with {model} "
            f"({usage.total_tokens if usage else 'unknown'} tokens)"
        )
        return [Embedding(vector=list(entry.embedding), model=model) for entry in data]
