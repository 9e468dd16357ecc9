"""Azure Computer Vision Read API client.

The Read API is asynchronous: the image is submitted, the service answers
``202`` with an ``Operation-Location`` header, and the result is polled
until the operation has ``succeeded`` or ``failed``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import httpx

from focal.core.config import settings
from focal.core.exceptions import OCRError

logger = logging.getLogger(__name__)

READ_API_PATH = "/vision/v3.2/read/analyze"


class AzureReadOCR:
    def __init__(
        self,
        endpoint: Optional[str] = None,
        key: Optional[str] = None,
        *,
        max_polls: int = 10,
        poll_interval: float = 1.0,
        timeout: Optional[float] = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.endpoint = (endpoint if endpoint is not None else settings.AZURE_VISION_ENDPOINT or "").rstrip("/")
        self.key = key if key is not None else settings.AZURE_VISION_KEY
        self.max_polls = max_polls
        self.poll_interval = poll_interval
        self.timeout = timeout
        self.transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.endpoint and self.key)

    async def extract_text(self, image_bytes: bytes) -> str:
        """Return the recognised lines of ``image_bytes`` joined by newlines.

        :raises OCRError: on missing configuration, HTTP failure, a failed
            operation, polling exhaustion or when no text is found
        """
        if not self.configured:
            raise OCRError("Azure Vision endpoint and key must be configured", provider="azure-ocr")

        headers = {"Ocp-Apim-Subscription-Key": self.key}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                submit = await client.post(
                    f"{self.endpoint}{READ_API_PATH}",
                    content=image_bytes,
                    headers={**headers, "Content-Type": "application/octet-stream"},
                )
                if submit.status_code != 202:
                    raise OCRError(f"Azure OCR submit failed: {submit.status_code} - {submit.text[:300]}", provider="azure-ocr")
                operation_url = submit.headers.get("Operation-Location")
                if not operation_url:
                    raise OCRError("No Operation-Location header in OCR response", provider="azure-ocr")

                result = await self._poll(client, operation_url, headers)
        except httpx.HTTPError as exc:
            raise OCRError(f"Azure OCR request failed: {exc}", provider="azure-ocr") from exc

        text = self.collect_lines(result)
        if not text.strip():
            raise OCRError("No text found in image", provider="azure-ocr")
        logger.info("[ocr] extracted %d characters", len(text))
        return text

    async def _poll(self, client: httpx.AsyncClient, url: str, headers: dict[str, str]) -> dict[str, Any]:
        for attempt in range(1, self.max_polls + 1):
            await asyncio.sleep(self.poll_interval)
            response = await client.get(url, headers=headers)
            if not response.is_success:
                raise OCRError(f"Azure OCR poll failed: {response.status_code}", provider="azure-ocr")
            try:
                body = response.json()
            except ValueError as exc:
                raise OCRError("Azure OCR poll returned a non-JSON body", provider="azure-ocr") from exc
            status = body.get("status")
            logger.debug("[ocr] poll %d/%d status=%s", attempt, self.max_polls, status)
            if status == "succeeded":
                return body
            if status == "failed":
                raise OCRError("OCR operation failed", provider="azure-ocr")
        raise OCRError(f"OCR did not complete after {self.max_polls} polls", provider="azure-ocr")

    @staticmethod
    def collect_lines(result: dict[str, Any]) -> str:
        pages = (result.get("analyzeResult") or {}).get("readResults") or []
        lines = [line.get("text", "") for page in pages for line in page.get("lines") or []]
        return "\n".join(line for line in lines if line)
