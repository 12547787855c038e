"""Mini README: Tests for achievement rules and level bucketing."""

from __future__ import annotations

from datetime import date

import pytest

from finassist.analytics import AchievementContext, evaluate_achievements, level_for_points
from finassist.finance import Budget, CategoryBook, Goal, Transaction, TransactionType

TODAY = date(2024, 5, 15)


def _context(transactions=(), budgets=(), goals=()) -> AchievementContext:
    return AchievementContext(
        transactions=list(transactions),
        budgets=list(budgets),
        goals=list(goals),
        categories=CategoryBook(),
        today=TODAY,
    )


def _expense(tx_id: int, amount: float, on: date) -> Transaction:
    return Transaction(id=tx_id, type=TransactionType.EXPENSE, category="продукты", amount=amount, date=on)


def test_new_user_starts_at_level_one() -> None:
    summary = evaluate_achievements(_context())

    assert summary.unlocked == []
    assert summary.points == 0
    assert summary.level == 1


def test_starter_achievements_add_up_to_level_two() -> None:
    transactions = [
        Transaction(id=1, type=TransactionType.INCOME, category="зарплата", amount=1000, date=TODAY),
        _expense(2, 400, TODAY),
    ]
    summary = evaluate_achievements(
        _context(
            transactions,
            [Budget(id=3, category="Продукты", limit=500)],
            [Goal(id=4, name="Отпуск", target=1000)],
        )
    )

    assert [achievement.id for achievement in summary.unlocked] == [
        "first_transaction",
        "first_budget",
        "first_goal",
        "monthly_saver",
    ]
    assert summary.points == 100
    assert summary.level == 2


def test_budget_keeper_needs_three_compliant_months() -> None:
    budgets = [Budget(id=1, category="Продукты", limit=500)]
    compliant = [_expense(1, 300, date(2024, 2, 5)), _expense(2, 300, date(2024, 3, 5)), _expense(3, 300, date(2024, 4, 5))]
    overspent = compliant[:2] + [_expense(4, 600, date(2024, 4, 5))]

    unlocked = {a.id for a in evaluate_achievements(_context(compliant, budgets)).unlocked}
    blocked = {a.id for a in evaluate_achievements(_context(overspent, budgets)).unlocked}

    assert "budget_keeper" in unlocked
    assert "budget_keeper" not in blocked


def test_goal_achievements() -> None:
    goals = [
        Goal(id=1, name="Квартира", target=1_000_000, saved=1_000_000),
        Goal(id=2, name="Отпуск", target=1000),
        Goal(id=3, name="Машина", target=5000),
    ]

    unlocked = {a.id for a in evaluate_achievements(_context(goals=goals)).unlocked}

    assert {"first_goal", "goal_setter", "goal_reached", "big_saver"} <= unlocked


@pytest.mark.parametrize(("points", "level"), [(0, 1), (99, 1), (100, 2), (250, 3)])
def test_level_for_points(points: int, level: int) -> None:
    assert level_for_points(points) == level
