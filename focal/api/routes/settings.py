"""Per-user extraction preferences."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from focal.api.dependencies import get_db_session
from focal.core.security import get_current_user_id
from focal.models.schemas import SuccessResponse, UserSettingsRead, UserSettingsUpdate
from focal.models.tables import UserSettings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/settings", tags=["settings"])


@router.put("", response_model=SuccessResponse[UserSettingsRead])
async def update_settings(
    body: UserSettingsUpdate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
):
    """Set the preferred provider and default currency; omitted fields are left as they are."""
    row = await db.get(UserSettings, user_id)
    if row is None:
        row = UserSettings(user_id=user_id)
        db.add(row)
    if body.ai_provider is not None:
        row.ai_provider = body.ai_provider.value
    if body.default_currency is not None:
        row.default_currency = body.default_currency.upper()
    await db.commit()
    await db.refresh(row)
    logger.info("[settings] user=%s provider=%s currency=%s", user_id, row.ai_provider, row.default_currency)
    return SuccessResponse[UserSettingsRead](data=UserSettingsRead.model_validate(row))
