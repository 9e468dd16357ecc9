"""Expense creation.

Persisting an expense is the point where the budget health check runs.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from focal.api.dependencies import get_db_session
from focal.core.security import get_current_user_id
from focal.models.schemas import ExpenseCreate, ExpenseRead, SuccessResponse
from focal.models.tables import Expense, ExpenseLineItem
from focal.services.budget_service import BudgetHealthChecker

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/expenses", tags=["expenses"])


@router.post("", response_model=SuccessResponse[ExpenseRead], status_code=status.HTTP_201_CREATED)
async def create_expense(
    body: ExpenseCreate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
):
    expense = Expense(
        user_id=user_id,
        merchant=body.merchant,
        date=body.date,
        total=body.total,
        currency=body.currency,
        category=body.category,
        line_items=[
            ExpenseLineItem(description=item.description, quantity=item.quantity, price=item.price)
            for item in body.line_items
        ],
    )
    db.add(expense)
    await db.commit()
    await db.refresh(expense, attribute_names=["line_items"])
    logger.info("[expenses] created id=%s user=%s category=%s total=%s", expense.id, user_id, expense.category, expense.total)

    await BudgetHealthChecker(db).check(user_id, expense.category)
    return SuccessResponse[ExpenseRead](data=ExpenseRead.model_validate(expense))
