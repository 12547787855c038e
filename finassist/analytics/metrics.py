"""Mini README: Totals, category breakdowns and trends over transactions.

Structure:
    * DashboardTotals / compute_totals - income, expense, balance, savings rate.
    * CategoryShare / category_breakdown - per-label sums and shares.
    * AnalyticsRatios / analytics_ratios - income/expense ratio, daily average.
    * MonthlyPoint / monthly_trend - per-month income and expense.
    * filter_window / filter_period / shift_month - reporting-window helpers.

All functions are pure. Amounts were coerced to floats when records were
parsed, so malformed values already count as 0 here; nothing raises for
data-quality problems.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from ..finance.categories import CategoryBook
from ..finance.models import Transaction, TransactionType

PERIODS = ("month", "quarter", "year")


def shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    """Return ``(year, month)`` moved by ``delta`` calendar months."""

    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def in_month(transaction: Transaction, year: int, month: int) -> bool:
    return transaction.date is not None and transaction.date.year == year and transaction.date.month == month


def filter_window(
    transactions: Iterable[Transaction],
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> List[Transaction]:
    """Keep transactions dated within ``[start, end]``; no bounds keeps everything."""

    if start is None and end is None:
        return list(transactions)
    return [
        transaction
        for transaction in transactions
        if transaction.date is not None
        and (start is None or transaction.date >= start)
        and (end is None or transaction.date <= end)
    ]


def period_start(period: str, today: date) -> Optional[date]:
    """First day of the current month, quarter or year."""

    if period == "month":
        return today.replace(day=1)
    if period == "quarter":
        return date(today.year, (today.month - 1) // 3 * 3 + 1, 1)
    if period == "year":
        return date(today.year, 1, 1)
    return None


def filter_period(transactions: Iterable[Transaction], period: Optional[str], today: date) -> List[Transaction]:
    start = period_start(period, today) if period else None
    return filter_window(transactions, start=start)


def sum_amounts(transactions: Iterable[Transaction], transaction_type: TransactionType) -> float:
    return sum(transaction.amount for transaction in transactions if transaction.type is transaction_type)


@dataclass(slots=True)
class DashboardTotals:
    income: float
    expense: float
    balance: float
    savings_rate: float

    @property
    def savings_rate_display(self) -> str:
        """Savings rate with one decimal, e.g. ``"60.0"``."""

        return f"{self.savings_rate:.1f}"

    def as_dict(self) -> Dict[str, object]:
        return {
            "income": self.income,
            "expense": self.expense,
            "balance": self.balance,
            "savings_rate": self.savings_rate_display,
        }


def compute_totals(
    transactions: Iterable[Transaction],
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> DashboardTotals:
    """Income minus expense for the window, plus the savings rate in percent."""

    window = filter_window(transactions, start, end)
    income = sum_amounts(window, TransactionType.INCOME)
    expense = sum_amounts(window, TransactionType.EXPENSE)
    balance = income - expense
    savings_rate = balance * 100 / income if income > 0 else 0.0
    return DashboardTotals(income=income, expense=expense, balance=balance, savings_rate=savings_rate)


@dataclass(slots=True)
class CategoryShare:
    label: str
    amount: float
    percent: float


def category_breakdown(
    transactions: Iterable[Transaction],
    categories: CategoryBook,
    transaction_type: TransactionType,
) -> List[CategoryShare]:
    """Group-sum one transaction type by resolved label, in first-seen order."""

    totals: Dict[str, float] = {}
    for transaction in transactions:
        if transaction.type is not transaction_type:
            continue
        label = categories.resolve_label(transaction.category)
        totals[label] = totals.get(label, 0.0) + transaction.amount
    grand_total = sum(totals.values())
    return [
        CategoryShare(label=label, amount=amount, percent=amount * 100 / grand_total if grand_total else 0.0)
        for label, amount in totals.items()
    ]


@dataclass(slots=True)
class AnalyticsRatios:
    savings_rate: float
    income_ratio: Optional[float]
    daily_average_expense: float

    @property
    def income_ratio_display(self) -> str:
        return "∞" if self.income_ratio is None else f"{self.income_ratio:.2f}"


def analytics_ratios(transactions: Iterable[Transaction], days: int = 30) -> AnalyticsRatios:
    """Savings rate, income-to-expense ratio and average daily spend."""

    totals = compute_totals(transactions)
    ratio = totals.income / totals.expense if totals.expense > 0 else None
    return AnalyticsRatios(
        savings_rate=totals.savings_rate,
        income_ratio=ratio,
        daily_average_expense=totals.expense / days if days else 0.0,
    )


@dataclass(slots=True)
class MonthlyPoint:
    year: int
    month: int
    income: float
    expense: float

    @property
    def label(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


def monthly_trend(transactions: Iterable[Transaction], today: date, months: int = 6) -> List[MonthlyPoint]:
    """Income and expense per calendar month, oldest first, ending with the current month."""

    records = list(transactions)
    points: List[MonthlyPoint] = []
    for offset in range(months - 1, -1, -1):
        year, month = shift_month(today.year, today.month, -offset)
        in_range = [transaction for transaction in records if in_month(transaction, year, month)]
        points.append(
            MonthlyPoint(
                year=year,
                month=month,
                income=sum_amounts(in_range, TransactionType.INCOME),
                expense=sum_amounts(in_range, TransactionType.EXPENSE),
            )
        )
    return points
