"""HTTP Page Converter - PageConverterPort over an external PDF rasteriser.

PDFs are posted (as a download URL) to the rasteriser service, which answers
with base64-encoded page images. Single images are fetched directly and
passed through as page 1.

Architecture: Hexagonal - Infrastructure adapter implementing domain port
"""

import base64
import binascii
import logging
from typing import Optional

import httpx

from ...config import PipelineConfig
from ...domain.ingestion.errors import ConversionError, TransientError
from ...domain.ingestion.models import PageAsset
from ...domain.ingestion.ports import PageConverterPort
from ...domain.ingestion.validation import IMAGE_MIME_TYPES, PDF_MIME_TYPE, normalize_mime

logger = logging.getLogger(__name__)

DEFAULT_PAGE_CONTENT_TYPE = "image/png"


class HttpPageConverter(PageConverterPort):
    """Converts stored menu documents into page images.

    Request to the rasteriser:
        POST {converter_url}
        {"source_url": "...", "max_pages": 25, "max_edge": 1200}

    Expected response:
        {"images": [{"page": 1, "base64": "...", "content_type": "image/png"}]}

    `imageData` and `contentType` are accepted as aliases.

    Example Usage:
        converter = HttpPageConverter(PipelineConfig(converter_url="https://raster.internal/convert"))
        pages = converter.convert(download_url, "application/pdf")
    """

    def __init__(self, config: PipelineConfig, client: Optional[httpx.Client] = None):
        self.config = config
        self._owns_client = client is None
        self.client = client or httpx.Client(timeout=config.http_timeout_seconds)

    def close(self) -> None:
        # An injected client belongs to the caller
        if self._owns_client:
            self.client.close()

    def convert(self, download_url: str, file_mime: str) -> list[PageAsset]:
        mime = normalize_mime(file_mime)
        if mime == PDF_MIME_TYPE:
            return self._convert_pdf(download_url)
        if mime in IMAGE_MIME_TYPES:
            return self._load_image(download_url, mime)
        raise ConversionError("File type must be PDF or image", code="unsupported_mime")

    def _convert_pdf(self, download_url: str) -> list[PageAsset]:
        if not self.config.converter_url:
            raise ConversionError(
                "PDF conversion service is not configured",
                code="converter_not_configured",
            )

        headers = {"Content-Type": "application/json"}
        if self.config.converter_token:
            headers["Authorization"] = f"Bearer {self.config.converter_token}"

        body = {
            "source_url": download_url,
            "max_pages": self.config.max_pages,
            "max_edge": self.config.max_image_edge,
        }

        try:
            response = self.client.post(
                self.config.converter_url,
                json=body,
                headers=headers,
                timeout=self.config.http_timeout_seconds,
            )
        except httpx.TimeoutException as e:
            logger.warning(f"PDF converter timed out: {e}")
            raise TransientError("PDF conversion timed out", code="converter_timeout")
        except httpx.HTTPError as e:
            logger.error(f"PDF converter unreachable: {e}")
            raise ConversionError("PDF conversion service is unreachable", code="converter_unreachable")

        if not response.is_success:
            logger.error(f"PDF converter returned HTTP {response.status_code}: {response.text[:500]}")
            raise ConversionError("PDF conversion failed")

        try:
            payload = response.json()
        except ValueError:
            raise ConversionError("PDF converter returned invalid JSON", code="converter_invalid_payload")

        images = payload.get("images") if isinstance(payload, dict) else None
        if not isinstance(images, list):
            raise ConversionError("PDF converter returned no images", code="converter_invalid_payload")

        pages = [self._decode_image(index, entry) for index, entry in enumerate(images)]
        pages.sort(key=lambda asset: asset.page)
        pages = pages[: self.config.max_pages]

        logger.info(f"PDF converted into {len(pages)} page image(s)")
        return pages

    @staticmethod
    def _decode_image(index: int, entry: dict) -> PageAsset:
        if not isinstance(entry, dict):
            raise ConversionError("PDF converter returned a malformed page", code="converter_invalid_payload")

        encoded = entry.get("base64") or entry.get("imageData")
        if not isinstance(encoded, str) or not encoded:
            raise ConversionError("PDF converter returned a page without image data", code="converter_invalid_payload")

        try:
            data = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError):
            raise ConversionError("PDF converter returned undecodable image data", code="converter_invalid_payload")

        page = entry.get("page")
        if isinstance(page, bool) or not isinstance(page, int):
            page = index + 1

        content_type = entry.get("content_type") or entry.get("contentType") or DEFAULT_PAGE_CONTENT_TYPE
        return PageAsset(page=page, data=data, content_type=content_type)

    def _load_image(self, download_url: str, mime: str) -> list[PageAsset]:
        try:
            response = self.client.get(download_url, timeout=self.config.http_timeout_seconds)
        except httpx.TimeoutException as e:
            logger.warning(f"Image download timed out: {e}")
            raise TransientError("Image download timed out", code="image_fetch_timeout")
        except httpx.HTTPError as e:
            logger.error(f"Image download failed: {e}")
            raise ConversionError("Unable to download uploaded image", code="image_fetch_failed")

        if not response.is_success:
            logger.error(f"Image download returned HTTP {response.status_code}")
            raise ConversionError("Unable to download uploaded image", code="image_fetch_failed")

        return [PageAsset(page=1, data=response.content, content_type=mime)]
