"""Post-commit budget threshold check.

Runs once per persisted expense.  Every expense that leaves month-to-date
spend at or above the alert threshold produces a new notification; there
is no de-duplication across expenses of the same month.
"""

from __future__ import annotations

import datetime as dt
import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from focal.models.enums import NotificationType
from focal.models.tables import Budget, Expense, Notification
from focal.utils.helpers import month_bounds

logger = logging.getLogger(__name__)


class BudgetHealthChecker:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def month_to_date_spend(self, user_id: str, category: str, today: dt.date) -> Decimal:
        start, end = month_bounds(today)
        q = select(func.coalesce(func.sum(Expense.total), 0)).where(
            Expense.user_id == user_id,
            Expense.category == category,
            Expense.date >= start,
            Expense.date < end,
        )
        total = (await self.db.execute(q)).scalar_one()
        return Decimal(str(total))

    async def check(self, user_id: str, category: str, today: Optional[dt.date] = None) -> Optional[Notification]:
        """Create a ``budget_alert`` notification if spend reached the threshold.

        Returns the notification, or ``None`` when the category has no
        budget or spend is still below the threshold.
        """
        budget = (
            await self.db.execute(select(Budget).where(Budget.user_id == user_id, Budget.category == category))
        ).scalar_one_or_none()
        if budget is None:
            return None

        limit = Decimal(str(budget.limit_amount))
        if limit <= 0:
            # A zero limit has no meaningful threshold.
            return None

        today = today or dt.date.today()
        spend = await self.month_to_date_spend(user_id, category, today)
        threshold = limit * Decimal(budget.alert_threshold) / Decimal(100)
        if spend < threshold:
            return None

        percent = int(spend / limit * 100)
        notification = Notification(
            user_id=user_id,
            type=NotificationType.BUDGET_ALERT,
            title=f"Budget alert: {category}",
            message=f"You've used {percent}% of your {category} budget ({spend:.2f} of {limit:.2f} {budget.currency}).",
            data={
                "category": category,
                "budgetId": budget.id,
                "spent": float(spend),
                "limit": float(limit),
                "percentUsed": percent,
            },
        )
        self.db.add(notification)
        await self.db.commit()
        logger.info("[budget] alert user=%s category=%s spent=%s limit=%s pct=%d", user_id, category, spend, limit, percent)
        return notification
