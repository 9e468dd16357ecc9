"""Read-only access to the user settings and custom categories the pipeline needs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from focal.core.config import settings
from focal.models.enums import DEFAULT_CATEGORIES
from focal.models.tables import CustomCategory, UserSettings


@dataclass(frozen=True)
class UserPreferences:
    ai_provider: Optional[str]
    default_currency: str


async def get_user_preferences(db: AsyncSession, user_id: str) -> UserPreferences:
    row = await db.get(UserSettings, user_id)
    if row is None:
        return UserPreferences(ai_provider=None, default_currency=settings.DEFAULT_CURRENCY)
    return UserPreferences(
        ai_provider=row.ai_provider,
        default_currency=(row.default_currency or settings.DEFAULT_CURRENCY).upper(),
    )


async def get_category_vocabulary(db: AsyncSession, user_id: str) -> list[str]:
    """Default categories followed by the user's custom ones, first occurrence wins."""
    result = await db.execute(
        select(CustomCategory.name).where(CustomCategory.user_id == user_id).order_by(CustomCategory.created_at)
    )
    seen: set[str] = set()
    vocabulary: list[str] = []
    for name in [*DEFAULT_CATEGORIES, *result.scalars().all()]:
        cleaned = (name or "").strip()
        if cleaned and cleaned.lower() not in seen:
            seen.add(cleaned.lower())
            vocabulary.append(cleaned)
    return vocabulary
