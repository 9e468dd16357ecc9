from __future__ import annotations

import datetime as dt
import json

import pytest

from focal.core.exceptions import ProviderDataError, ProviderTransportError
from focal.services.audio_service import AudioExtractionService, parse_receipts

ITEM = {"merchant": "Bakery", "date": "2024-05-01", "total": 30, "category": "Food & Drink"}


def test_parse_receipts_validates_every_entry():
    drafts = parse_receipts({"receipts": [ITEM, {**ITEM, "merchant": "Fuel", "total": 500}]}, "gemini")
    assert [d.merchant for d in drafts] == ["Bakery", "Fuel"]
    assert parse_receipts({"receipts": []}, "gemini") == []
    with pytest.raises(ProviderDataError):
        parse_receipts({"receipts": [{"merchant": "No total"}]}, "gemini")
    with pytest.raises(ProviderDataError):
        parse_receipts({"expenses": [ITEM]}, "gemini")


class ScriptedAudio(AudioExtractionService):
    def __init__(self, answers):
        super().__init__(credentials=list(answers), timeout=5)
        self.answers = answers
        self.instructions = []

    async def request_extraction(self, api_key, audio, mime_type, instruction, schema):
        self.instructions.append(instruction)
        answer = self.answers[api_key]
        if isinstance(answer, Exception):
            raise answer
        return json.loads(answer)


@pytest.mark.asyncio
async def test_audio_uses_local_date_currency_and_key_fallback():
    service = ScriptedAudio({"k1": ProviderTransportError("429"), "k2": json.dumps({"receipts": [ITEM]})})
    result = await service.process_audio(b"OggS", "audio/ogg", ["Food & Drink"], dt.date(2024, 5, 1), "EGP")
    assert result.success
    assert result.drafts[0].merchant == "Bakery"
    assert result.attempts == 2
    assert "2024-05-01" in service.instructions[0]
    assert "EGP" in service.instructions[0]
