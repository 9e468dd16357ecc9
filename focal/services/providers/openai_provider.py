"""OpenAI-compatible extraction through GitHub Models."""

from __future__ import annotations

from typing import Any, Sequence

from openai import APIError, AsyncOpenAI

from focal.core.exceptions import ProviderTransportError
from focal.models.enums import ProviderType
from focal.utils.prompts import get_receipt_instruction

from .base import ReceiptImage, ReceiptProvider, draft_json_schema, load_json_payload

GITHUB_MODELS_BASE_URL = "https://models.github.ai/inference"


class OpenAIProvider(ReceiptProvider):
    """Vision chat completion with a strict JSON schema response format."""

    provider_type = ProviderType.OPENAI
    default_model = "gpt-4o"
    base_url = GITHUB_MODELS_BASE_URL

    def _client(self, api_key: str) -> AsyncOpenAI:
        # Retries are the fallback executor's job.
        return AsyncOpenAI(base_url=self.base_url, api_key=api_key, max_retries=0)

    async def request_extraction(self, api_key: str, image: ReceiptImage, categories: Sequence[str]) -> Any:
        client = self._client(api_key)
        try:
            response = await client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": get_receipt_instruction(categories, self.today())},
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": "Extract the receipt data from this image."},
                            {"type": "image_url", "image_url": {"url": image.as_data_uri()}},
                        ],
                    },
                ],
                response_format={
                    "type": "json_schema",
                    "json_schema": {
                        "name": "receipt_extraction",
                        "strict": True,
                        "schema": draft_json_schema(categories),
                    },
                },
            )
        except APIError as exc:
            raise ProviderTransportError(f"OpenAI API error: {exc.message}", provider=self.name) from exc
        finally:
            await client.close()

        content = response.choices[0].message.content if response.choices else None
        return load_json_payload(content, self.name)
