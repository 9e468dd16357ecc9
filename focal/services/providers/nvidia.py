"""NVIDIA NIM vision model over plain HTTP."""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

import httpx

from focal.core.exceptions import ProviderDataError, ProviderTransportError
from focal.models.enums import ProviderType
from focal.utils.prompts import get_receipt_instruction

from .base import ReceiptImage, ReceiptProvider, draft_json_schema, load_json_payload, raise_for_status

logger = logging.getLogger(__name__)

NVIDIA_CHAT_URL = "https://integrate.api.nvidia.com/v1/chat/completions"


class NvidiaProvider(ReceiptProvider):
    """Chat completions with ``guided_json``.

    The model does not always honour guided decoding, so the answer goes
    through the tolerant JSON loader (code fences, surrounding prose).
    """

    provider_type = ProviderType.NVIDIA
    default_model = "meta/llama-3.2-90b-vision-instruct"

    def __init__(self, *args: Any, transport: Optional[httpx.AsyncBaseTransport] = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.transport = transport

    def build_payload(self, image: ReceiptImage, categories: Sequence[str]) -> dict[str, Any]:
        schema = draft_json_schema(categories)
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": get_receipt_instruction(categories, self.today())},
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": "Extract the receipt data from this image as JSON."},
                        {"type": "image_url", "image_url": {"url": image.as_data_uri()}},
                    ],
                },
            ],
            "max_tokens": 2048,
            "temperature": 0.1,
            "top_p": 0.95,
            "stream": False,
            "extra_body": {"nvext": {"guided_json": schema}},
        }

    async def request_extraction(self, api_key: str, image: ReceiptImage, categories: Sequence[str]) -> Any:
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(NVIDIA_CHAT_URL, json=self.build_payload(image, categories), headers=headers)
        except httpx.HTTPError as exc:
            raise ProviderTransportError(f"NVIDIA request failed: {exc}", provider=self.name) from exc
        raise_for_status(response, self.name)

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise ProviderDataError("No response from NVIDIA API", provider=self.name) from exc
        logger.debug("[provider:nvidia] raw content length=%d", len(content or ""))
        return load_json_payload(content, self.name)
