"""In-app notifications."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from focal.api.dependencies import get_db_session
from focal.core.security import get_current_user_id
from focal.models.schemas import NotificationRead, SuccessResponse
from focal.models.tables import Notification

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=SuccessResponse[List[NotificationRead]])
async def list_notifications(
    unread_only: bool = Query(False, alias="unreadOnly"),
    limit: int = Query(50, ge=1, le=200),
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
):
    """The caller's notifications, newest first."""
    q = select(Notification).where(Notification.user_id == user_id)
    if unread_only:
        q = q.where(Notification.is_read.is_(False))
    q = q.order_by(Notification.created_at.desc()).limit(limit)
    rows = (await db.execute(q)).scalars().all()
    return SuccessResponse[List[NotificationRead]](data=[NotificationRead.model_validate(n) for n in rows])
