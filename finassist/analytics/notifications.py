"""Mini README: Alert rules derived from budgets, goals and the forecast.

Structure:
    * Notification - severity, rule id and message.
    * build_notifications - evaluate the rules in a fixed order.

Order: budgets over their limit, budgets in the warning band, goals due
within a week that are not complete, then a forecast running above the
three-month average.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from .budgets import BudgetReport, BudgetStatus
from .forecast import Forecast
from .goals import GoalProjection

GOAL_DUE_DAYS = 7


@dataclass(slots=True)
class Notification:
    level: str
    rule: str
    message: str

    def as_dict(self) -> Dict[str, str]:
        return {"level": self.level, "rule": self.rule, "message": self.message}


def build_notifications(
    budget_reports: Iterable[BudgetReport],
    goal_projections: Iterable[GoalProjection],
    forecast: Optional[Forecast] = None,
) -> List[Notification]:
    reports = list(budget_reports)
    notifications: List[Notification] = []

    for report in reports:
        if report.status is BudgetStatus.OVER:
            notifications.append(
                Notification(
                    "error",
                    "budget_over",
                    f"Budget '{report.budget.category}' exceeded by {report.spent - report.budget.limit:.2f}",
                )
            )
    for report in reports:
        if report.status is BudgetStatus.WARNING:
            notifications.append(
                Notification(
                    "warning",
                    "budget_warning",
                    f"Budget '{report.budget.category}' is {report.percent:.0f}% used",
                )
            )
    for projection in goal_projections:
        days = projection.days_remaining
        if days is not None and 0 <= days <= GOAL_DUE_DAYS and not projection.complete:
            notifications.append(
                Notification(
                    "info",
                    "goal_due",
                    f"Goal '{projection.goal.name}' is due in {days} days",
                )
            )
    if forecast is not None and forecast.exceeds_average:
        notifications.append(
            Notification(
                "warning",
                "forecast_high",
                f"Projected spending {forecast.projected_expense:.2f} is above the usual"
                f" {forecast.average_monthly_expense:.2f}",
            )
        )
    return notifications
