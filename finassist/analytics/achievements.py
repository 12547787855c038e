"""Mini README: Achievement rules and level calculation.

Structure:
    * AchievementContext - the data every rule can look at.
    * Achievement - named predicate worth a number of points.
    * ACHIEVEMENTS - the fixed rule list, evaluated in order.
    * evaluate_achievements - unlocked rules, total points and level.

The level is ``floor(points / 100) + 1`` so a new user starts at level 1.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Dict, List, Sequence

from ..finance.categories import CategoryBook
from ..finance.models import Budget, Goal, Transaction
from .budgets import BudgetStatus, evaluate_budgets
from .metrics import compute_totals, in_month, shift_month

POINTS_PER_LEVEL = 100
MONTHLY_SAVINGS_THRESHOLD = 10.0
COMPLIANT_MONTHS_REQUIRED = 3
GOALS_REQUIRED = 3
BIG_SAVER_THRESHOLD = 1_000_000.0


@dataclass(slots=True)
class AchievementContext:
    transactions: Sequence[Transaction]
    budgets: Sequence[Budget]
    goals: Sequence[Goal]
    categories: CategoryBook
    today: date


@dataclass(frozen=True)
class Achievement:
    id: str
    title: str
    description: str
    points: int
    predicate: Callable[[AchievementContext], bool]


def _monthly_savings(context: AchievementContext) -> bool:
    current = [t for t in context.transactions if in_month(t, context.today.year, context.today.month)]
    totals = compute_totals(current)
    return totals.income > 0 and totals.savings_rate >= MONTHLY_SAVINGS_THRESHOLD


def _budget_compliant_months(context: AchievementContext) -> bool:
    """Budgets held in each of the last three completed months."""

    if not context.budgets:
        return False
    for offset in range(1, COMPLIANT_MONTHS_REQUIRED + 1):
        year, month = shift_month(context.today.year, context.today.month, -offset)
        month_transactions = [t for t in context.transactions if in_month(t, year, month)]
        if not month_transactions:
            return False
        reports = evaluate_budgets(context.budgets, month_transactions, context.categories)
        if any(report.status is BudgetStatus.OVER for report in reports):
            return False
    return True


ACHIEVEMENTS: List[Achievement] = [
    Achievement(
        "first_transaction",
        "First step",
        "Record your first transaction",
        10,
        lambda context: len(context.transactions) >= 1,
    ),
    Achievement(
        "first_budget",
        "Planner",
        "Create a budget",
        20,
        lambda context: len(context.budgets) >= 1,
    ),
    Achievement(
        "first_goal",
        "Dreamer",
        "Create a savings goal",
        20,
        lambda context: len(context.goals) >= 1,
    ),
    Achievement(
        "monthly_saver",
        "Saver",
        "Save at least 10% of this month's income",
        50,
        _monthly_savings,
    ),
    Achievement(
        "budget_keeper",
        "Budget keeper",
        "Stay within every budget for three months in a row",
        100,
        _budget_compliant_months,
    ),
    Achievement(
        "goal_setter",
        "Goal setter",
        "Create three savings goals",
        30,
        lambda context: len(context.goals) >= GOALS_REQUIRED,
    ),
    Achievement(
        "goal_reached",
        "Target hit",
        "Fully fund a savings goal",
        100,
        lambda context: any(goal.target > 0 and goal.saved >= goal.target for goal in context.goals),
    ),
    Achievement(
        "big_saver",
        "Millionaire",
        "Accumulate 1,000,000 across all goals",
        200,
        lambda context: sum(goal.saved for goal in context.goals) >= BIG_SAVER_THRESHOLD,
    ),
]


@dataclass(slots=True)
class AchievementSummary:
    unlocked: List[Achievement] = field(default_factory=list)
    locked: List[Achievement] = field(default_factory=list)

    @property
    def points(self) -> int:
        return sum(achievement.points for achievement in self.unlocked)

    @property
    def level(self) -> int:
        return level_for_points(self.points)

    def as_dict(self) -> Dict[str, object]:
        return {
            "points": self.points,
            "level": self.level,
            "unlocked": [achievement.id for achievement in self.unlocked],
            "locked": [achievement.id for achievement in self.locked],
        }


def level_for_points(points: int) -> int:
    return points // POINTS_PER_LEVEL + 1


def evaluate_achievements(
    context: AchievementContext,
    rules: Sequence[Achievement] = ACHIEVEMENTS,
) -> AchievementSummary:
    summary = AchievementSummary()
    for rule in rules:
        (summary.unlocked if rule.predicate(context) else summary.locked).append(rule)
    return summary
