"""Category budgets."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from focal.api.dependencies import get_db_session
from focal.core.config import settings
from focal.core.security import get_current_user_id
from focal.models.schemas import BudgetRead, BudgetUpsert, SuccessResponse
from focal.models.tables import Budget

router = APIRouter(prefix="/budgets", tags=["budgets"])


@router.put("", response_model=SuccessResponse[BudgetRead])
async def upsert_budget(
    body: BudgetUpsert,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
):
    """Create or replace the monthly budget of a category.

    An omitted ``alertThreshold`` keeps the stored one, or
    ``DEFAULT_ALERT_THRESHOLD`` for a new budget.
    """
    result = await db.execute(select(Budget).where(Budget.user_id == user_id, Budget.category == body.category))
    budget = result.scalar_one_or_none()
    if budget is None:
        budget = Budget(user_id=user_id, category=body.category, alert_threshold=settings.DEFAULT_ALERT_THRESHOLD)
        db.add(budget)
    budget.limit_amount = body.limit_amount
    budget.currency = body.currency.upper()
    if body.alert_threshold is not None:
        budget.alert_threshold = body.alert_threshold
    await db.commit()
    await db.refresh(budget)
    return SuccessResponse[BudgetRead](data=BudgetRead.model_validate(budget))
