"""Enumeration types used throughout the receipts API.

Enumerations make it easier to constrain the values that can be
stored in the database or passed through the API.  When modifying
these enums update any corresponding database columns or Pydantic
validators so that new values are accepted where appropriate.
"""

from enum import Enum


class ProviderType(str, Enum):
    """Structured-extraction backends a user can choose from."""

    GEMINI = "gemini"
    OPENAI = "openai"
    NVIDIA = "nvidia"
    GROQ = "groq"


class ExtractionStage(str, Enum):
    """Pipeline stage an extraction failure is attributed to."""

    EXTRACTION = "extraction"
    OCR = "ocr"
    STRUCTURING = "structuring"


class NotificationType(str, Enum):
    """Kinds of in-app notifications."""

    SYSTEM = "system"
    BUDGET_ALERT = "budget_alert"
    ACHIEVEMENT = "achievement"
    INFO = "info"


class QuotaAction(str, Enum):
    """Actions tracked by the usage quota."""

    AI_RECEIPT_PROCESSING = "ai_receipt_processing"


DEFAULT_CATEGORIES: tuple[str, ...] = (
    "Food & Drink",
    "Groceries",
    "Travel",
    "Shopping",
    "Utilities",
    "Entertainment",
    "Health & Fitness",
    "Housing",
    "Transportation",
    "Education",
    "Personal Care",
    "Other",
)

# Short list the OCR structuring prompt chooses from.
OCR_CATEGORIES: tuple[str, ...] = (
    "Food & Drink",
    "Groceries",
    "Travel",
    "Shopping",
    "Utilities",
    "Other",
)
