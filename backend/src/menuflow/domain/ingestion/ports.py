"""Ports for the collaborators of the ingestion pipeline.

Hexagonal Architecture: the services in menuflow.ingestion depend only on
these interfaces. Adapters live in menuflow.infrastructure.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from .models import PageAsset, PageResult


class ObjectStoragePort(ABC):
    """S3-compatible storage for original documents and page previews.

    Originals are uploaded by clients directly through presigned PUT URLs and
    read back by the page converter through presigned GET URLs. Previews are
    written by the pipeline itself.
    """

    @abstractmethod
    async def generate_presigned_upload_url(
        self,
        storage_key: str,
        content_type: str,
        expires_in_seconds: int = 900,
    ) -> str:
        """Create a time-boxed upload handle for an original document.

        Raises:
            StorageError: If URL generation fails
        """
        pass

    @abstractmethod
    async def generate_presigned_url(
        self,
        storage_key: str,
        expires_in_seconds: int = 600,
    ) -> str:
        """Create a time-boxed download URL for an original document.

        Raises:
            StorageError: If URL generation fails
        """
        pass

    @abstractmethod
    async def store_preview(self, storage_key: str, data: bytes, content_type: str) -> str:
        """Write a rendered page image to the preview bucket.

        Returns:
            str: The storage key written

        Raises:
            StorageError: If the upload fails
        """
        pass


class PageConverterPort(ABC):
    """Turns a stored document into page images."""

    @abstractmethod
    def convert(self, download_url: str, file_mime: str) -> list[PageAsset]:
        """Render or fetch the pages of a document.

        Args:
            download_url: Time-boxed URL of the original document
            file_mime: Declared MIME type of the original

        Returns:
            Pages ordered by page number, at most max_pages entries

        Raises:
            ConversionError: Converter unavailable, rejected the document or
                returned an unreadable payload
            TransientError: Converter or image fetch timed out
        """
        pass

    def close(self) -> None:
        """Release transport resources held by the converter."""


class MenuExtractorPort(ABC):
    """Vision-language extraction of menu content from a page image."""

    @abstractmethod
    def extract_page(self, asset: PageAsset) -> PageResult:
        """Extract the menu payload of one page.

        Unparseable model output is not an error: it yields the empty payload
        with `degraded=True`.

        Raises:
            ExtractionTransportError: Provider rejected the request
            TransientError: Request timed out
        """
        pass


class ReindexPort(ABC):
    """Triggers regeneration of search embeddings for published items."""

    @abstractmethod
    def trigger(self, item_ids: list[UUID], force: bool = True) -> Optional[str]:
        """Schedule re-indexing. Returns a job identifier when available."""
        pass
