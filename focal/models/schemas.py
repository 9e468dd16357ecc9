"""Pydantic schemas for request and response models.

This module defines both the domain schemas produced by the extraction
providers (``ExpenseDraft``) and the API facing schemas.  JSON field
names follow the web client's camelCase convention through aliases;
Python code uses the snake_case attribute names.
"""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Annotated, Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, field_validator

from .enums import NotificationType, ProviderType

# Decimals travel as JSON numbers, matching what the web client sends back.
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]
CurrencyCode = Annotated[str, Field(min_length=3, max_length=3, pattern=r"^[A-Za-z]{3}$")]

T = TypeVar("T")


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# ---------------------------------------------------------------------------
# Domain schemas produced by extraction providers


class LineItemDraft(CamelModel):
    """Individual line item on a receipt."""

    description: str = Field(min_length=1)
    quantity: Money = Field(default=Decimal("1"), gt=0)
    price: Money = Field(ge=0)


class ExpenseDraft(CamelModel):
    """Structured expense extracted from a receipt or a voice note.

    Transient: the expense store takes ownership once the user saves it.
    """

    merchant: str = Field(min_length=1)
    date: dt.date
    total: Money = Field(ge=0)
    currency: Optional[CurrencyCode] = None
    category: str = Field(min_length=1)
    line_items: List[LineItemDraft] = Field(default_factory=list, alias="lineItems")

    @field_validator("currency", mode="before")
    @classmethod
    def upper_currency(cls, v):
        return v.upper() if isinstance(v, str) else v


# ---------------------------------------------------------------------------
# API request/response schemas


class SuccessResponse(BaseModel, Generic[T]):
    success: bool = True
    data: T


class ProcessReceiptRequest(BaseModel):
    image: str = Field(min_length=1, description="data:image/<type>;base64,<data>")


class AudioReceiptsData(BaseModel):
    receipts: List[ExpenseDraft]


class QuotaStatusRead(CamelModel):
    limit: int
    used: int
    remaining: int
    reset_at: int = Field(alias="resetAt", description="Epoch milliseconds")
    reset_in: int = Field(alias="resetIn", description="Seconds until reset")


class ExpenseCreate(ExpenseDraft):
    currency: CurrencyCode


class LineItemRead(CamelModel):
    id: str
    description: str
    quantity: Money
    price: Money

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class ExpenseRead(CamelModel):
    id: str
    merchant: str
    date: dt.date
    total: Money
    currency: str
    category: str
    line_items: List[LineItemRead] = Field(default_factory=list, alias="lineItems")
    created_at: dt.datetime = Field(alias="createdAt")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class BudgetUpsert(CamelModel):
    category: str = Field(min_length=1)
    limit_amount: Money = Field(ge=0, alias="limitAmount")
    currency: CurrencyCode = "USD"
    alert_threshold: Optional[int] = Field(default=None, ge=0, le=100, alias="alertThreshold")


class BudgetRead(CamelModel):
    id: str
    category: str
    limit_amount: Money = Field(alias="limitAmount")
    currency: str
    alert_threshold: int = Field(alias="alertThreshold")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class NotificationRead(CamelModel):
    id: str
    type: NotificationType
    title: str
    message: str
    is_read: bool = Field(alias="isRead")
    data: Optional[Dict[str, Any]] = None
    created_at: dt.datetime = Field(alias="createdAt")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class UserSettingsUpdate(CamelModel):
    ai_provider: Optional[ProviderType] = Field(default=None, alias="aiProvider")
    default_currency: Optional[CurrencyCode] = Field(default=None, alias="defaultCurrency")


class UserSettingsRead(CamelModel):
    ai_provider: Optional[str] = Field(alias="aiProvider")
    default_currency: Optional[str] = Field(alias="defaultCurrency")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class CategoryCreate(CamelModel):
    name: str = Field(min_length=1, max_length=64)


class CategoryRead(CamelModel):
    id: str
    name: str
    created_at: dt.datetime = Field(alias="createdAt")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)
