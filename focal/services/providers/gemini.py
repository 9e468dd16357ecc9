"""Google Gemini extraction through the ``google-genai`` SDK."""

from __future__ import annotations

import logging
from typing import Any, Sequence

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from focal.core.exceptions import ProviderTransportError
from focal.models.enums import DEFAULT_CATEGORIES, ProviderType
from focal.utils.prompts import get_receipt_instruction

from .base import ReceiptImage, ReceiptProvider, load_json_payload

logger = logging.getLogger(__name__)

GEMINI_DEFAULT_MODEL = "gemini-2.5-flash"


def gemini_draft_schema(categories: Sequence[str]) -> dict[str, Any]:
    """Response schema in the OpenAPI subset Gemini accepts."""
    return {
        "type": "OBJECT",
        "properties": {
            "merchant": {"type": "STRING", "description": "Store or restaurant name"},
            "date": {"type": "STRING", "description": "Transaction date in YYYY-MM-DD format"},
            "total": {"type": "NUMBER", "description": "Total amount (number only, no currency symbols)"},
            "category": {"type": "STRING", "enum": list(categories or DEFAULT_CATEGORIES)},
            "lineItems": {
                "type": "ARRAY",
                "items": {
                    "type": "OBJECT",
                    "properties": {
                        "description": {"type": "STRING"},
                        "quantity": {"type": "NUMBER"},
                        "price": {"type": "NUMBER"},
                    },
                    "required": ["description", "quantity", "price"],
                },
            },
        },
        "required": ["merchant", "date", "total", "category", "lineItems"],
    }


async def generate_json(
    api_key: str,
    *,
    model: str,
    contents: list[Any],
    system_instruction: str,
    response_schema: dict[str, Any],
    provider: str = ProviderType.GEMINI.value,
) -> Any:
    """Run one structured ``generate_content`` call and parse the JSON answer.

    SDK and network failures are raised as ``ProviderTransportError``;
    an empty or non-JSON answer as ``ProviderDataError``.
    """
    client = genai.Client(api_key=api_key)
    try:
        response = await client.aio.models.generate_content(
            model=model,
            contents=contents,
            config=types.GenerateContentConfig(
                system_instruction=system_instruction,
                response_mime_type="application/json",
                response_schema=response_schema,
            ),
        )
    except genai_errors.APIError as exc:
        raise ProviderTransportError(f"Gemini API error: {exc.code} - {exc.message}", provider=provider) from exc
    except httpx.HTTPError as exc:
        raise ProviderTransportError(f"Gemini request failed: {exc}", provider=provider) from exc
    return load_json_payload(response.text, provider)


class GeminiProvider(ReceiptProvider):
    provider_type = ProviderType.GEMINI
    default_model = GEMINI_DEFAULT_MODEL

    async def request_extraction(self, api_key: str, image: ReceiptImage, categories: Sequence[str]) -> Any:
        return await generate_json(
            api_key,
            model=self.model,
            contents=[
                types.Part.from_bytes(data=image.data, mime_type=image.mime_type),
                "Extract the receipt data from this image.",
            ],
            system_instruction=get_receipt_instruction(categories, self.today()),
            response_schema=gemini_draft_schema(categories),
        )
