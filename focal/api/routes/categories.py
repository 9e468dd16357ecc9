"""User-defined expense categories."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from focal.api.dependencies import get_db_session
from focal.core.exceptions import ValidationError
from focal.core.security import get_current_user_id
from focal.models.enums import DEFAULT_CATEGORIES
from focal.models.schemas import CategoryCreate, CategoryRead, SuccessResponse
from focal.models.tables import CustomCategory

router = APIRouter(prefix="/categories", tags=["categories"])


@router.post("", response_model=SuccessResponse[CategoryRead], status_code=status.HTTP_201_CREATED)
async def create_category(
    body: CategoryCreate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
):
    """Add a category to the caller's extraction vocabulary.

    Names are compared case-insensitively against the defaults and the
    caller's existing categories.
    """
    name = body.name.strip()
    if not name:
        raise ValidationError("Category name is required")
    if name.lower() in {c.lower() for c in DEFAULT_CATEGORIES}:
        raise ValidationError(f"'{name}' is already a default category")

    existing = await db.execute(
        select(CustomCategory.id).where(CustomCategory.user_id == user_id, func.lower(CustomCategory.name) == name.lower())
    )
    if existing.first() is not None:
        raise ValidationError(f"Category '{name}' already exists")

    category = CustomCategory(user_id=user_id, name=name)
    db.add(category)
    await db.commit()
    await db.refresh(category)
    return SuccessResponse[CategoryRead](data=CategoryRead.model_validate(category))
