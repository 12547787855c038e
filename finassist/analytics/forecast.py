"""Mini README: Month-end spending forecast.

Structure:
    * Forecast - projection, three-month average and daily allowance.
    * build_forecast - compute a ``Forecast`` for ``today``.

The reference average uses the three completed calendar months before the
current one, ignoring months without expenses. The projection extends the
month-to-date daily average over the days left in the month, and the daily
limit spreads whatever remains of the reference average across those days.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List

from ..finance.models import Transaction, TransactionType
from .metrics import days_in_month, in_month, shift_month, sum_amounts

HISTORY_MONTHS = 3


@dataclass(slots=True)
class Forecast:
    average_monthly_expense: float
    month_to_date_expense: float
    projected_expense: float
    daily_limit: float
    days_remaining: int
    history_months_used: int

    @property
    def exceeds_average(self) -> bool:
        return self.average_monthly_expense > 0 and self.projected_expense > self.average_monthly_expense

    def as_dict(self) -> Dict[str, object]:
        return {
            "average_monthly_expense": self.average_monthly_expense,
            "month_to_date_expense": self.month_to_date_expense,
            "projected_expense": self.projected_expense,
            "daily_limit": self.daily_limit,
            "days_remaining": self.days_remaining,
            "history_months_used": self.history_months_used,
        }


def build_forecast(transactions: Iterable[Transaction], today: date) -> Forecast:
    records = [transaction for transaction in transactions if transaction.type is TransactionType.EXPENSE]

    history: List[float] = []
    for offset in range(1, HISTORY_MONTHS + 1):
        year, month = shift_month(today.year, today.month, -offset)
        spent = sum_amounts((t for t in records if in_month(t, year, month)), TransactionType.EXPENSE)
        if spent > 0:
            history.append(spent)
    average = sum(history) / len(history) if history else 0.0

    month_to_date = sum_amounts(
        (
            t
            for t in records
            if in_month(t, today.year, today.month) and t.date is not None and t.date <= today
        ),
        TransactionType.EXPENSE,
    )
    days_remaining = days_in_month(today.year, today.month) - today.day
    daily_average = month_to_date / today.day
    projected = month_to_date + daily_average * days_remaining
    daily_limit = max(0.0, (average - month_to_date) / max(days_remaining, 1))

    return Forecast(
        average_monthly_expense=average,
        month_to_date_expense=month_to_date,
        projected_expense=projected,
        daily_limit=daily_limit,
        days_remaining=days_remaining,
        history_months_used=len(history),
    )
