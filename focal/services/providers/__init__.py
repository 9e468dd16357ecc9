"""Receipt extraction providers.

The set of providers is closed: ``PROVIDERS`` maps every ``ProviderType``
to its implementation and ``build_provider`` wires one up with its
configured credentials.
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import Callable, Optional

from focal.core.config import get_provider_credentials, settings
from focal.models.enums import ProviderType

from .base import ExtractionResult, ReceiptImage, ReceiptProvider, parse_draft
from .gemini import GeminiProvider
from .groq import GroqProvider
from .nvidia import NvidiaProvider
from .openai_provider import OpenAIProvider

logger = logging.getLogger(__name__)

PROVIDERS: dict[ProviderType, type[ReceiptProvider]] = {
    ProviderType.GEMINI: GeminiProvider,
    ProviderType.OPENAI: OpenAIProvider,
    ProviderType.NVIDIA: NvidiaProvider,
    ProviderType.GROQ: GroqProvider,
}


def _coerce(value: Optional[str]) -> Optional[ProviderType]:
    if not value:
        return None
    try:
        return ProviderType(value.strip().lower())
    except ValueError:
        logger.warning("[providers] ignoring unknown provider %r", value)
        return None


def resolve_provider_type(preference: Optional[str] = None) -> ProviderType:
    """User preference, then ``AI_PROVIDER``, then Gemini."""
    return _coerce(preference) or _coerce(settings.AI_PROVIDER) or ProviderType.GEMINI


def build_provider(
    provider_type: ProviderType,
    model: Optional[str] = None,
    today: Callable[[], dt.date] = dt.date.today,
) -> ReceiptProvider:
    # AI_MODEL only applies to the configured default provider.
    if model is None and settings.AI_MODEL and _coerce(settings.AI_PROVIDER) == provider_type:
        model = settings.AI_MODEL
    cls = PROVIDERS[provider_type]
    return cls(
        get_provider_credentials(provider_type),
        model=model,
        timeout=settings.PROVIDER_TIMEOUT_SECONDS,
        today=today,
    )


__all__ = [
    "PROVIDERS",
    "ExtractionResult",
    "GeminiProvider",
    "GroqProvider",
    "NvidiaProvider",
    "OpenAIProvider",
    "ReceiptImage",
    "ReceiptProvider",
    "build_provider",
    "parse_draft",
    "resolve_provider_type",
]
