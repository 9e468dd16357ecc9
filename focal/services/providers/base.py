"""Shared contract for receipt extraction providers.

Every provider turns a receipt image plus the user's category vocabulary
into an ``ExpenseDraft``.  Providers differ only in how they call their
remote model (``request_extraction``); credential fallback, output
validation and result shaping live here so all of them behave the same.
"""

from __future__ import annotations

import base64
import datetime as dt
import json
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar, List, Optional, Sequence

import httpx
from pydantic import ValidationError as PydanticValidationError

from focal.core.exceptions import ProviderDataError, ProviderError, ProviderTransportError
from focal.models.enums import DEFAULT_CATEGORIES, ExtractionStage, ProviderType
from focal.models.schemas import ExpenseDraft
from focal.services.fallback import Outcome, execute_with_fallback

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("merchant", "date", "total", "category")

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)
_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)


@dataclass(frozen=True)
class ReceiptImage:
    """Decoded receipt image."""

    mime_type: str
    data: bytes

    @property
    def b64(self) -> str:
        return base64.b64encode(self.data).decode("utf-8")

    def as_data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.b64}"


@dataclass
class ExtractionResult:
    """What a provider hands back to the orchestrator."""

    success: bool
    drafts: List[ExpenseDraft] = field(default_factory=list)
    error: Optional[str] = None
    stage: Optional[ExtractionStage] = None
    attempts: int = 0

    @property
    def draft(self) -> Optional[ExpenseDraft]:
        return self.drafts[0] if self.drafts else None

    @classmethod
    def from_outcome(cls, outcome: Outcome, stage: ExtractionStage = ExtractionStage.EXTRACTION) -> "ExtractionResult":
        if outcome.ok:
            value = outcome.value
            drafts = list(value) if isinstance(value, list) else [value]
            return cls(success=True, drafts=drafts, attempts=outcome.attempts)
        return cls(
            success=False,
            error=str(outcome.error) or "Failed to process receipt",
            stage=stage,
            attempts=outcome.attempts,
        )


# ---------------------------------------------------------------------------
# Output parsing


def load_json_payload(text: Optional[str], provider: str) -> Any:
    """Parse a model's JSON answer.

    Markdown code fences are stripped and, when the model wrapped the
    object in prose, the outermost ``{...}`` block is used.
    """
    if not text or not text.strip():
        raise ProviderDataError(f"No response from {provider}", provider=provider)
    candidate = _FENCE_RE.sub("", text.strip()).strip()
    if not candidate.startswith("{"):
        match = _OBJECT_RE.search(candidate)
        if not match:
            raise ProviderDataError("Could not extract valid JSON from response", provider=provider)
        candidate = match.group(0)
    try:
        return json.loads(candidate)
    except json.JSONDecodeError as exc:
        raise ProviderDataError(f"Invalid JSON from {provider}: {exc}", provider=provider) from exc


def parse_draft(payload: Any, provider: str) -> ExpenseDraft:
    """Validate a raw provider payload into an ``ExpenseDraft``.

    Missing required fields are a ``ProviderDataError``.  A missing or
    non-list ``lineItems`` becomes an empty list and line items without a
    quantity get quantity 1.
    """
    if not isinstance(payload, dict):
        raise ProviderDataError("Structured data is not a JSON object", provider=provider)
    missing = [name for name in REQUIRED_FIELDS if payload.get(name) in (None, "")]
    if missing:
        raise ProviderDataError(f"Missing required fields in structured data: {', '.join(missing)}", provider=provider)
    data = dict(payload)
    data.pop("currency", None)
    items = data.get("lineItems", data.get("line_items"))
    data.pop("line_items", None)
    if not isinstance(items, list):
        items = []
    data["lineItems"] = [
        {**item, "quantity": 1} if isinstance(item, dict) and item.get("quantity") in (None, "") else item
        for item in items
    ]
    try:
        return ExpenseDraft.model_validate(data)
    except PydanticValidationError as exc:
        raise ProviderDataError(f"Structured data failed validation: {exc.error_count()} error(s)", provider=provider) from exc


def raise_for_status(response: httpx.Response, provider: str) -> None:
    """Turn a non-2xx HTTP response into a ``ProviderTransportError``."""
    if response.is_success:
        return
    raise ProviderTransportError(
        f"{provider} API error: {response.status_code} - {response.text[:500]}",
        provider=provider,
    )


def draft_json_schema(categories: Sequence[str]) -> dict[str, Any]:
    """JSON schema of the expense draft for strict structured-output APIs."""
    return {
        "type": "object",
        "properties": {
            "merchant": {"type": "string", "description": "Store or restaurant name"},
            "date": {"type": "string", "description": "Transaction date in YYYY-MM-DD format"},
            "total": {"type": "number", "description": "Total amount (number only, no currency symbols)"},
            "category": {
                "type": "string",
                "description": "Expense category",
                "enum": list(categories or DEFAULT_CATEGORIES),
            },
            "lineItems": {
                "type": "array",
                "description": "Individual items from the receipt",
                "items": {
                    "type": "object",
                    "properties": {
                        "description": {"type": "string", "description": "Item description"},
                        "quantity": {"type": "number", "description": "Item quantity"},
                        "price": {"type": "number", "description": "Item price"},
                    },
                    "required": ["description", "quantity", "price"],
                    "additionalProperties": False,
                },
            },
        },
        "required": ["merchant", "date", "total", "category", "lineItems"],
        "additionalProperties": False,
    }


# ---------------------------------------------------------------------------
# Provider base class


class ReceiptProvider(ABC):
    """Base class for the closed set of extraction providers."""

    provider_type: ClassVar[ProviderType]
    default_model: ClassVar[str]

    def __init__(
        self,
        credentials: Sequence[str],
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        today: Callable[[], dt.date] = dt.date.today,
    ) -> None:
        self.credentials = list(credentials)
        self.model = model or self.default_model
        self.timeout = timeout
        self.today = today

    @property
    def name(self) -> str:
        return self.provider_type.value

    async def process_receipt(self, image: ReceiptImage, categories: Sequence[str]) -> ExtractionResult:
        """Extract an expense draft, trying each configured credential in order."""
        logger.info("[provider:%s] processing receipt model=%s keys=%d", self.name, self.model, len(self.credentials))

        async def _attempt(api_key: str) -> ExpenseDraft:
            payload = await self.request_extraction(api_key, image, categories)
            return parse_draft(payload, self.name)

        outcome = await execute_with_fallback(self.credentials, _attempt, label=self.name, timeout=self.timeout)
        return ExtractionResult.from_outcome(outcome)

    @abstractmethod
    async def request_extraction(self, api_key: str, image: ReceiptImage, categories: Sequence[str]) -> Any:
        """Call the remote model with one credential and return its raw JSON payload.

        Implementations raise ``ProviderTransportError`` for network, auth
        and HTTP failures and ``ProviderDataError`` for unusable output.
        """


__all__ = [
    "ExtractionResult",
    "ProviderError",
    "ReceiptImage",
    "ReceiptProvider",
    "draft_json_schema",
    "load_json_payload",
    "parse_draft",
    "raise_for_status",
]
