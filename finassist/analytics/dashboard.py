"""Mini README: One-call dashboard snapshot.

Structure:
    * DashboardSnapshot - every derived figure the dashboard shows.
    * build_dashboard - compute a snapshot from a user's collections.

Budget status and the headline totals cover the current calendar month;
the category breakdown and ratios cover the whole history.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..finance.categories import CategoryBook
from ..finance.models import Budget, Goal, Transaction, TransactionType
from ..logging_utils import get_logger
from .achievements import AchievementContext, AchievementSummary, evaluate_achievements
from .budgets import BudgetReport, evaluate_budgets
from .forecast import Forecast, build_forecast
from .goals import GoalProjection, project_goal
from .metrics import (
    AnalyticsRatios,
    CategoryShare,
    DashboardTotals,
    MonthlyPoint,
    analytics_ratios,
    category_breakdown,
    compute_totals,
    filter_period,
    monthly_trend,
)
from .notifications import Notification, build_notifications

LOGGER = get_logger(__name__)


@dataclass(slots=True)
class DashboardSnapshot:
    totals: DashboardTotals
    income_breakdown: List[CategoryShare]
    expense_breakdown: List[CategoryShare]
    ratios: AnalyticsRatios
    trend: List[MonthlyPoint]
    forecast: Forecast
    budgets: List[BudgetReport]
    goals: List[GoalProjection]
    achievements: AchievementSummary
    notifications: List[Notification]

    def as_dict(self) -> Dict[str, Any]:
        return {
            "totals": self.totals.as_dict(),
            "income_breakdown": [
                {"label": share.label, "amount": share.amount, "percent": share.percent}
                for share in self.income_breakdown
            ],
            "expense_breakdown": [
                {"label": share.label, "amount": share.amount, "percent": share.percent}
                for share in self.expense_breakdown
            ],
            "ratios": {
                "savings_rate": self.ratios.savings_rate,
                "income_ratio": self.ratios.income_ratio_display,
                "daily_average_expense": self.ratios.daily_average_expense,
            },
            "trend": [
                {"month": point.label, "income": point.income, "expense": point.expense}
                for point in self.trend
            ],
            "forecast": self.forecast.as_dict(),
            "budgets": [report.as_dict() for report in self.budgets],
            "goals": [projection.as_dict() for projection in self.goals],
            "achievements": self.achievements.as_dict(),
            "notifications": [notification.as_dict() for notification in self.notifications],
        }


def build_dashboard(
    transactions: Sequence[Transaction],
    categories: CategoryBook,
    budgets: Sequence[Budget],
    goals: Sequence[Goal],
    plans: Optional[Mapping[Any, Mapping[str, Any]]] = None,
    *,
    today: Optional[date] = None,
) -> DashboardSnapshot:
    """Compute every dashboard figure for ``today`` (defaults to the current date)."""

    today = today or date.today()
    plans = plans or {}
    current_month = filter_period(transactions, "month", today)

    budget_reports = evaluate_budgets(budgets, current_month, categories)
    projections = [project_goal(goal, plans.get(goal.id), today) for goal in goals]
    forecast = build_forecast(transactions, today)
    snapshot = DashboardSnapshot(
        totals=compute_totals(current_month),
        income_breakdown=category_breakdown(transactions, categories, TransactionType.INCOME),
        expense_breakdown=category_breakdown(transactions, categories, TransactionType.EXPENSE),
        ratios=analytics_ratios(transactions),
        trend=monthly_trend(transactions, today),
        forecast=forecast,
        budgets=budget_reports,
        goals=projections,
        achievements=evaluate_achievements(
            AchievementContext(
                transactions=transactions,
                budgets=budgets,
                goals=goals,
                categories=categories,
                today=today,
            )
        ),
        notifications=build_notifications(budget_reports, projections, forecast),
    )
    LOGGER.debug(
        "Dashboard built for %s: %s transactions, %s budgets, %s goals",
        today.isoformat(),
        len(transactions),
        len(budgets),
        len(goals),
    )
    return snapshot
