"""Domain-specific exceptions.

Route handlers do not catch these; ``focal.api.error_handlers`` maps each
family to an HTTP status and the ``{"success": false, "error": ...}``
envelope.
"""

from __future__ import annotations

from typing import Optional


class FocalError(Exception):
    """Base exception for the receipts domain."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(FocalError):
    """Request payload or uploaded media rejected before any remote call."""


class AuthenticationError(FocalError):
    """Missing or invalid bearer token."""


class QuotaExceededError(FocalError):
    """Sliding-window usage count reached the configured limit."""

    def __init__(self, message: str, *, limit: int, used: int, reset_at: float) -> None:
        super().__init__(message)
        self.limit = limit
        self.used = used
        self.reset_at = reset_at


class ProviderError(FocalError):
    """A remote extraction call failed."""

    def __init__(self, message: str, provider: Optional[str] = None) -> None:
        super().__init__(message)
        self.provider = provider


class ProviderTransportError(ProviderError):
    """Network, timeout, authorization or rate-limit failure for one credential."""


class ProviderDataError(ProviderError):
    """The remote call succeeded but its output is unusable."""


class OCRError(ProviderDataError):
    """Text recognition stage of the OCR-assisted provider failed."""


class ProviderConfigurationError(ProviderError):
    """The provider has no usable credentials or endpoint configured."""


class ExtractionFailedError(FocalError):
    """Extraction failed after every credential was tried."""

    def __init__(self, message: str, provider: Optional[str] = None, stage: Optional[str] = None) -> None:
        super().__init__(message)
        self.provider = provider
        self.stage = stage
