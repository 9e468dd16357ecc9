from __future__ import annotations

import datetime as dt
from decimal import Decimal

import pytest
from sqlalchemy import select

from focal.models.enums import NotificationType
from focal.models.tables import Budget, Expense, Notification
from focal.services.budget_service import BudgetHealthChecker

TODAY = dt.date(2024, 3, 20)


def _expense(total, day=TODAY, category="Groceries", user_id="u1"):
    return Expense(user_id=user_id, merchant="Shop", date=day, total=Decimal(str(total)), currency="USD", category=category)


async def _notifications(session):
    return (await session.execute(select(Notification))).scalars().all()


@pytest.mark.asyncio
async def test_notification_only_after_crossing_threshold(session):
    session.add(Budget(user_id="u1", category="Groceries", limit_amount=Decimal("100"), currency="USD", alert_threshold=80))
    session.add(_expense(79))
    await session.commit()

    checker = BudgetHealthChecker(session)
    assert await checker.check("u1", "Groceries", TODAY) is None
    assert await _notifications(session) == []

    session.add(_expense(2))
    await session.commit()
    note = await checker.check("u1", "Groceries", TODAY)

    rows = await _notifications(session)
    assert len(rows) == 1
    assert note.type == NotificationType.BUDGET_ALERT
    assert "81%" in note.message
    assert note.data["percentUsed"] == 81


@pytest.mark.asyncio
async def test_every_expense_above_threshold_notifies_again(session):
    session.add(Budget(user_id="u1", category="Groceries", limit_amount=Decimal("100"), currency="USD", alert_threshold=80))
    session.add(_expense(90))
    await session.commit()
    checker = BudgetHealthChecker(session)
    await checker.check("u1", "Groceries", TODAY)
    session.add(_expense(5))
    await session.commit()
    await checker.check("u1", "Groceries", TODAY)
    assert len(await _notifications(session)) == 2


@pytest.mark.asyncio
async def test_only_current_month_and_category_count(session):
    session.add(Budget(user_id="u1", category="Groceries", limit_amount=Decimal("100"), currency="USD", alert_threshold=50))
    session.add_all([
        _expense(400, day=dt.date(2024, 2, 29)),
        _expense(400, day=dt.date(2024, 4, 1)),
        _expense(400, category="Travel"),
        _expense(400, user_id="someone-else"),
        _expense(49, day=dt.date(2024, 3, 1)),
    ])
    await session.commit()
    checker = BudgetHealthChecker(session)
    assert await checker.month_to_date_spend("u1", "Groceries", TODAY) == Decimal("49")
    assert await checker.check("u1", "Groceries", TODAY) is None


@pytest.mark.asyncio
async def test_no_budget_is_a_no_op(session):
    session.add(_expense(1000))
    await session.commit()
    assert await BudgetHealthChecker(session).check("u1", "Groceries", TODAY) is None
    assert await _notifications(session) == []


@pytest.mark.asyncio
async def test_zero_limit_budget_never_alerts(session):
    session.add(Budget(user_id="u1", category="Groceries", limit_amount=Decimal("0"), currency="USD", alert_threshold=80))
    session.add(_expense(5))
    await session.commit()
    assert await BudgetHealthChecker(session).check("u1", "Groceries", TODAY) is None
    assert await _notifications(session) == []
