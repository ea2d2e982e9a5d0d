"""OpenAI Menu Extractor - MenuExtractorPort on the OpenAI Responses API.

One vision call per page. The page image is sent inline as a data URL and
the model is asked for strict JSON-schema output. Parsing is defensive: a
response that cannot be parsed degrades to the empty menu payload instead of
failing the run.

Architecture: Hexagonal - Infrastructure adapter implementing domain port
"""

import base64
import json
import logging
import time
from typing import Any, Optional

from openai import OpenAI, APIError, APITimeoutError

from ...config import PipelineConfig
from ...domain.extraction.menu_schema import MENU_SCHEMA, SCHEMA_NAME, SYSTEM_PROMPT, USER_PROMPT
from ...domain.ingestion.errors import ExtractionTransportError, TransientError
from ...domain.ingestion.models import PageAsset, PageResult, empty_menu_payload
from ...domain.ingestion.ports import MenuExtractorPort

logger = logging.getLogger(__name__)


def _loads_object(text: str) -> Optional[dict]:
    try:
        parsed = json.loads(text)
    except (TypeError, ValueError):
        return None
    return parsed if isinstance(parsed, dict) else None


def extract_payload(response: Any) -> Optional[dict]:
    """Pull the menu payload out of a Responses API result.

    Tries, in order:
    1. the flat `output_text` field (string, or list of strings joined by newlines)
    2. `output_text` entries in the `content` of each `output` (or `data`) entry

    Returns:
        The parsed payload, or None when nothing parseable was found
    """
    if not isinstance(response, dict):
        return None

    output_text = response.get("output_text")
    if isinstance(output_text, list):
        output_text = "\n".join(part for part in output_text if isinstance(part, str))
    if isinstance(output_text, str) and output_text:
        parsed = _loads_object(output_text)
        if parsed is not None:
            return parsed
        logger.warning("Failed to parse output_text, falling back to nested content")

    output = response.get("output") or response.get("data") or []
    if not isinstance(output, list):
        return None

    for entry in output:
        if not isinstance(entry, dict):
            continue
        content = entry.get("content")
        if not isinstance(content, list):
            continue
        for part in content:
            if not isinstance(part, dict) or part.get("type") != "output_text":
                continue
            text = part.get("text")
            if isinstance(text, str):
                parsed = _loads_object(text)
                if parsed is not None:
                    return parsed
                logger.warning("Failed to parse nested output_text")

    return None


def _response_to_dict(response: Any) -> Any:
    if isinstance(response, dict):
        return response
    data = response.model_dump() if hasattr(response, "model_dump") else {}
    # `output_text` is a convenience property on SDK responses, not a field
    output_text = getattr(response, "output_text", None)
    if output_text and "output_text" not in data:
        data["output_text"] = output_text
    return data


class OpenAIMenuExtractor(MenuExtractorPort):
    """Vision extraction of menu pages with OpenAI models.

    Example Usage:
        extractor = OpenAIMenuExtractor(PipelineConfig(), api_key=settings.OPENAI_API_KEY)
        result = extractor.extract_page(PageAsset(page=1, data=png_bytes))
        result.payload["categories"]
    """

    def __init__(
        self,
        config: PipelineConfig,
        api_key: Optional[str] = None,
        client: Optional[OpenAI] = None,
    ):
        self.config = config
        if client is None and api_key:
            client = OpenAI(api_key=api_key, timeout=config.extraction_timeout_seconds)
        self.client = client

    def build_request(self, asset: PageAsset) -> dict:
        encoded = base64.b64encode(asset.data).decode("ascii")
        return {
            "model": self.config.openai_model,
            "input": [
                {
                    "role": "system",
                    "content": [{"type": "input_text", "text": SYSTEM_PROMPT}],
                },
                {
                    "role": "user",
                    "content": [
                        {"type": "input_text", "text": USER_PROMPT},
                        {
                            "type": "input_image",
                            "image_url": f"data:{asset.content_type};base64,{encoded}",
                            "detail": "high",
                        },
                    ],
                },
            ],
            "temperature": 0.1,
            "text": {
                "format": {
                    "type": "json_schema",
                    "name": SCHEMA_NAME,
                    "schema": MENU_SCHEMA,
                    "strict": True,
                },
            },
        }

    def extract_page(self, asset: PageAsset) -> PageResult:
        if self.client is None:
            raise ExtractionTransportError(
                "OpenAI API key is not configured",
                code="openai_not_configured",
            )

        start_time = time.time()
        try:
            response = self.client.responses.create(
                **self.build_request(asset),
                timeout=self.config.extraction_timeout_seconds,
            )
        except APITimeoutError as e:
            logger.warning(f"Vision extraction timed out on page {asset.page}: {e}")
            raise TransientError("Vision model timed out", code="openai_timeout")
        except APIError as e:
            logger.error(f"Vision extraction failed on page {asset.page}: {e}")
            raise ExtractionTransportError("Vision model failed to process page", code="openai_failure")

        latency_ms = int((time.time() - start_time) * 1000)
        payload = extract_payload(_response_to_dict(response))

        if payload is None:
            logger.warning(f"Page {asset.page} extraction unparseable after {latency_ms}ms, using empty payload")
            return PageResult(page=asset.page, payload=empty_menu_payload(), degraded=True)

        logger.info(f"Page {asset.page} extracted in {latency_ms}ms")
        return PageResult(page=asset.page, payload=payload)
