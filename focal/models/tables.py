"""SQLAlchemy ORM models for the receipts API.

Only the tables touched by the extraction pipeline and the budget
health check live here.  User accounts belong to the authentication
service, so ``user_id`` columns are plain strings without a foreign key.

If you extend or modify these models remember to recreate the tables
with the ``init_db`` helper during development.
"""

from __future__ import annotations

import datetime as dt
import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from focal.core.database import Base
from .enums import NotificationType


def _uuid() -> str:
    return str(uuid.uuid4())


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class QuotaRecord(Base):
    """One successful quota-consuming operation.

    Append-only.  ``occurred_at`` is epoch seconds, the same unit as the
    configured quota window.
    """

    __tablename__ = "quota_records"
    __table_args__ = (Index("ix_quota_records_lookup", "action", "identifier", "occurred_at"),)

    id = Column(String, primary_key=True, default=_uuid)
    action = Column(String, nullable=False)
    identifier = Column(String, nullable=False)
    occurred_at = Column(Float, nullable=False)


class ExtractionAttempt(Base):
    """Outcome of one extraction attempt, written whether it succeeded or not."""

    __tablename__ = "ai_processing_logs"

    id = Column(String, primary_key=True, default=_uuid)
    user_id = Column(String, nullable=False, index=True)
    provider = Column(String, nullable=False, index=True)
    model = Column(String, nullable=True)
    duration_ms = Column(Integer, nullable=False)
    success = Column(Boolean, nullable=False)
    error = Column(Text, nullable=True)
    stage = Column(String, nullable=True)
    occurred_at = Column(DateTime, default=_utcnow, nullable=False, index=True)


class UserSettings(Base):
    """Per-user preferences consulted by the extraction pipeline."""

    __tablename__ = "user_settings"

    user_id = Column(String, primary_key=True)
    ai_provider = Column(String, nullable=True)
    default_currency = Column(String(3), nullable=True)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)


class CustomCategory(Base):
    """User-defined expense category merged into the default vocabulary."""

    __tablename__ = "custom_categories"
    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_custom_categories_user_name"),)

    id = Column(String, primary_key=True, default=_uuid)
    user_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)


class Expense(Base):
    """A committed expense."""

    __tablename__ = "expenses"

    id = Column(String, primary_key=True, default=_uuid)
    user_id = Column(String, nullable=False, index=True)
    merchant = Column(String, nullable=False)
    date = Column(Date, nullable=False, index=True)
    total = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), nullable=False)
    category = Column(String, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    line_items = relationship("ExpenseLineItem", back_populates="expense", cascade="all, delete-orphan", lazy="selectin")


class ExpenseLineItem(Base):
    """Individual line of an expense."""

    __tablename__ = "expense_line_items"

    id = Column(String, primary_key=True, default=_uuid)
    expense_id = Column(String, ForeignKey("expenses.id", ondelete="CASCADE"), nullable=False)
    description = Column(String, nullable=False)
    quantity = Column(Numeric(12, 3), nullable=False)
    price = Column(Numeric(12, 2), nullable=False)

    expense = relationship("Expense", back_populates="line_items")


class Budget(Base):
    """Monthly spending limit for one category."""

    __tablename__ = "budgets"
    __table_args__ = (UniqueConstraint("user_id", "category", name="uq_budgets_user_category"),)

    id = Column(String, primary_key=True, default=_uuid)
    user_id = Column(String, nullable=False, index=True)
    category = Column(String, nullable=False)
    limit_amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), nullable=False)
    alert_threshold = Column(Integer, nullable=False, default=80)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)


class Notification(Base):
    """In-app notification."""

    __tablename__ = "notifications"
    __table_args__ = (Index("ix_notifications_user_read", "user_id", "is_read"),)

    id = Column(String, primary_key=True, default=_uuid)
    user_id = Column(String, nullable=False)
    type = Column(Enum(NotificationType), nullable=False, default=NotificationType.INFO)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    is_read = Column(Boolean, default=False, nullable=False)
    data = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
