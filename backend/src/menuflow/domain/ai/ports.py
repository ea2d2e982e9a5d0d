"""Embedding provider port used by menu search re-indexing."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Sequence


@dataclass(frozen=True)
class Embedding:
    vector: list[float]
    model: str

    @property
    def dimension(self) -> int:
        return len(self.vector)


class EmbeddingError(Exception):
    """Permanent provider failure (bad credentials, rejected input)."""


class RetryableEmbeddingError(EmbeddingError):
    """Transient provider failure (timeouts, throttling, 5xx)."""


class EmbeddingProviderPort(ABC):

    @abstractmethod
    def embed(self, texts: Sequence[str], model: str) -> list[Embedding]:
        """Embed texts, returning one Embedding per input in input order.

        Raises:
            ValueError: a text is blank
            RetryableEmbeddingError: the call may succeed when repeated
            EmbeddingError: any other provider failure
        """
