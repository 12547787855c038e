"""Mini README: Budget status evaluation.

Structure:
    * BudgetStatus - ok / warning / over tiers.
    * BudgetReport - spending against one budget.
    * classify_spending / evaluate_budget / evaluate_budgets.

Tiers use strict inequalities: spending exactly at the limit is not yet
``over`` (it sits in the ``warning`` band) and spending exactly at 80% of
it is still ``ok``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List

from ..finance.categories import CategoryBook, category_key
from ..finance.models import Budget, Transaction, TransactionType

WARNING_RATIO = 0.8


class BudgetStatus(str, Enum):
    OK = "ok"
    WARNING = "warning"
    OVER = "over"


@dataclass(slots=True)
class BudgetReport:
    budget: Budget
    spent: float
    percent: float
    status: BudgetStatus

    @property
    def remaining(self) -> float:
        return self.budget.limit - self.spent

    def as_dict(self) -> Dict[str, object]:
        return {
            "id": self.budget.id,
            "category": self.budget.category,
            "limit": self.budget.limit,
            "spent": self.spent,
            "percent": self.percent,
            "remaining": self.remaining,
            "status": self.status.value,
        }


def classify_spending(spent: float, limit: float) -> BudgetStatus:
    if spent > limit:
        return BudgetStatus.OVER
    if spent > limit * WARNING_RATIO:
        return BudgetStatus.WARNING
    return BudgetStatus.OK


def evaluate_budget(budget: Budget, transactions: Iterable[Transaction], categories: CategoryBook) -> BudgetReport:
    """Sum expenses whose resolved label names the budget's category."""

    # Compare through keys so "продукты" and "Продукты" refer to the same budget.
    wanted = category_key(budget.category)
    spent = sum(
        transaction.amount
        for transaction in transactions
        if transaction.type is TransactionType.EXPENSE
        and category_key(categories.resolve_label(transaction.category)) == wanted
    )
    percent = spent * 100 / budget.limit if budget.limit > 0 else 0.0
    return BudgetReport(budget=budget, spent=spent, percent=percent, status=classify_spending(spent, budget.limit))


def evaluate_budgets(
    budgets: Iterable[Budget],
    transactions: Iterable[Transaction],
    categories: CategoryBook,
) -> List[BudgetReport]:
    records = list(transactions)
    return [evaluate_budget(budget, records, categories) for budget in budgets]
