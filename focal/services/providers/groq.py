"""OCR-assisted extraction: Azure Read text recognition, then Groq structuring.

The two stages fail independently.  An OCR failure short-circuits before
any Groq call and is attributed to the ``ocr`` stage; structuring runs
through the normal credential fallback over the Groq keys and failures
there are attributed to ``structuring``.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

import httpx

from focal.core.exceptions import OCRError, ProviderDataError, ProviderTransportError
from focal.models.enums import ExtractionStage, ProviderType
from focal.models.schemas import ExpenseDraft
from focal.services.fallback import execute_with_fallback
from focal.services.ocr_service import AzureReadOCR
from focal.utils.prompts import get_ocr_structuring_prompt, get_ocr_user_prompt

from .base import ExtractionResult, ReceiptImage, ReceiptProvider, load_json_payload, parse_draft, raise_for_status

logger = logging.getLogger(__name__)

GROQ_CHAT_URL = "https://api.groq.com/openai/v1/chat/completions"


class GroqProvider(ReceiptProvider):
    provider_type = ProviderType.GROQ
    default_model = "openai/gpt-oss-20b"

    def __init__(
        self,
        *args: Any,
        ocr: Optional[AzureReadOCR] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(*args, **kwargs)
        self.ocr = ocr or AzureReadOCR(transport=transport)
        self.transport = transport

    async def process_receipt(self, image: ReceiptImage, categories: Sequence[str]) -> ExtractionResult:
        logger.info("[provider:groq] processing receipt model=%s keys=%d", self.model, len(self.credentials))
        try:
            ocr_text = await self.ocr.extract_text(image.data)
        except OCRError as exc:
            logger.warning("[provider:groq] OCR stage failed: %s", exc)
            return ExtractionResult(success=False, error=f"OCR failed: {exc}", stage=ExtractionStage.OCR)

        async def _structure(api_key: str) -> ExpenseDraft:
            payload = await self.structure_text(api_key, ocr_text)
            return parse_draft(payload, self.name)

        outcome = await execute_with_fallback(self.credentials, _structure, label=self.name, timeout=self.timeout)
        return ExtractionResult.from_outcome(outcome, stage=ExtractionStage.STRUCTURING)

    async def request_extraction(self, api_key: str, image: ReceiptImage, categories: Sequence[str]) -> Any:
        """Not used: OCR runs once per request, outside the per-key attempts."""
        raise NotImplementedError("GroqProvider runs its stages in process_receipt")

    async def structure_text(self, api_key: str, ocr_text: str) -> Any:
        """Ask the Groq model to turn raw OCR text into the draft schema."""
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": get_ocr_structuring_prompt(self.today())},
                {"role": "user", "content": get_ocr_user_prompt(ocr_text)},
            ],
            "temperature": 0.2,
            "max_tokens": 4000,
            "response_format": {"type": "json_object"},
        }
        headers = {"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(GROQ_CHAT_URL, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            raise ProviderTransportError(f"Groq request failed: {exc}", provider=self.name) from exc
        raise_for_status(response, self.name)

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise ProviderDataError("No response from Groq API", provider=self.name) from exc
        return load_json_payload(content, self.name)
