"""Mini README: Derived metrics for the finance dashboard.

This package groups the pure functions that turn a user's transactions,
budgets and goals into totals, category breakdowns, a month-end forecast,
budget status, goal projections, achievements and notifications.
"""

from .achievements import ACHIEVEMENTS, AchievementContext, AchievementSummary, evaluate_achievements, level_for_points
from .budgets import BudgetReport, BudgetStatus, classify_spending, evaluate_budget, evaluate_budgets
from .dashboard import DashboardSnapshot, build_dashboard
from .forecast import Forecast, build_forecast
from .goals import GoalProjection, checked_days, fold_plan, project_goal
from .metrics import (
    AnalyticsRatios,
    CategoryShare,
    DashboardTotals,
    MonthlyPoint,
    analytics_ratios,
    category_breakdown,
    compute_totals,
    filter_period,
    filter_window,
    monthly_trend,
)
from .notifications import Notification, build_notifications

__all__ = [
    "ACHIEVEMENTS",
    "AchievementContext",
    "AchievementSummary",
    "AnalyticsRatios",
    "BudgetReport",
    "BudgetStatus",
    "CategoryShare",
    "DashboardSnapshot",
    "DashboardTotals",
    "Forecast",
    "GoalProjection",
    "MonthlyPoint",
    "Notification",
    "analytics_ratios",
    "build_dashboard",
    "build_forecast",
    "build_notifications",
    "category_breakdown",
    "checked_days",
    "classify_spending",
    "compute_totals",
    "evaluate_achievements",
    "evaluate_budget",
    "evaluate_budgets",
    "filter_period",
    "filter_window",
    "fold_plan",
    "level_for_points",
    "monthly_trend",
    "project_goal",
]
