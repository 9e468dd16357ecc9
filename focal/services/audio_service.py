"""Voice-note expense extraction.

A recording may describe several purchases, so the model answers with
``{"receipts": [...]}`` and every entry is validated like an image draft.
Uses the Gemini credential set.
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import Any, Optional, Sequence

from google.genai import types

from focal.core.config import get_provider_credentials, settings
from focal.core.exceptions import ProviderDataError
from focal.models.enums import ProviderType
from focal.models.schemas import ExpenseDraft
from focal.services.fallback import execute_with_fallback
from focal.services.providers.base import ExtractionResult, parse_draft
from focal.services.providers.gemini import GEMINI_DEFAULT_MODEL, gemini_draft_schema, generate_json
from focal.utils.prompts import get_audio_instruction

logger = logging.getLogger(__name__)


def parse_receipts(payload: Any, provider: str) -> list[ExpenseDraft]:
    if not isinstance(payload, dict) or not isinstance(payload.get("receipts"), list):
        raise ProviderDataError("Response is missing the receipts list", provider=provider)
    return [parse_draft(item, provider) for item in payload["receipts"]]


class AudioExtractionService:
    name = ProviderType.GEMINI.value

    def __init__(
        self,
        credentials: Optional[Sequence[str]] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.credentials = list(credentials) if credentials is not None else get_provider_credentials(ProviderType.GEMINI)
        self.model = model or GEMINI_DEFAULT_MODEL
        self.timeout = timeout if timeout is not None else settings.PROVIDER_TIMEOUT_SECONDS

    async def process_audio(
        self,
        audio: bytes,
        mime_type: str,
        categories: Sequence[str],
        local_date: dt.date,
        currency: str,
    ) -> ExtractionResult:
        logger.info("[audio] processing %d bytes (%s) keys=%d", len(audio), mime_type, len(self.credentials))
        instruction = get_audio_instruction(categories, local_date, currency)
        schema = {
            "type": "OBJECT",
            "properties": {"receipts": {"type": "ARRAY", "items": gemini_draft_schema(categories)}},
            "required": ["receipts"],
        }

        async def _attempt(api_key: str) -> list[ExpenseDraft]:
            payload = await self.request_extraction(api_key, audio, mime_type, instruction, schema)
            return parse_receipts(payload, self.name)

        outcome = await execute_with_fallback(self.credentials, _attempt, label=f"{self.name}-audio", timeout=self.timeout)
        return ExtractionResult.from_outcome(outcome)

    async def request_extraction(
        self, api_key: str, audio: bytes, mime_type: str, instruction: str, schema: dict[str, Any]
    ) -> Any:
        return await generate_json(
            api_key,
            model=self.model,
            contents=[types.Part.from_bytes(data=audio, mime_type=mime_type), "Extract the expenses from this recording."],
            system_instruction=instruction,
            response_schema=schema,
        )
