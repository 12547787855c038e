"""Mini README: Tests for the derived dashboard metrics.

Structure:
    * Totals and category breakdown for the month-start example.
    * Budget status tiers including the 80% and 100% boundaries.
    * Goal projection, plan fold-back and the month-end forecast.
    * Notifications ordering and the combined dashboard snapshot.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Optional

import pytest

from finassist.analytics import (
    BudgetStatus,
    build_dashboard,
    build_forecast,
    build_notifications,
    category_breakdown,
    classify_spending,
    compute_totals,
    evaluate_budget,
    evaluate_budgets,
    fold_plan,
    monthly_trend,
    project_goal,
)
from finassist.analytics.metrics import analytics_ratios
from finassist.finance import Budget, CategoryBook, Goal, Transaction, TransactionType

TODAY = date(2024, 5, 15)


def _tx(kind: str, amount: float, on: date, category: str = "продукты", tx_id: Optional[int] = None) -> Transaction:
    return Transaction(
        id=tx_id if tx_id is not None else int(amount * 100) + on.toordinal(),
        type=TransactionType(kind),
        category=category,
        amount=amount,
        date=on,
    )


def _month_start_example() -> list:
    return [
        _tx("income", 1000, TODAY.replace(day=1), category="зарплата"),
        _tx("expense", 400, TODAY.replace(day=1)),
    ]


def test_totals_for_month_start_example() -> None:
    totals = compute_totals(_month_start_example())

    assert totals.income == pytest.approx(1000)
    assert totals.expense == pytest.approx(400)
    assert totals.balance == pytest.approx(600)
    assert totals.savings_rate_display == "60.0"


def test_savings_rate_is_zero_without_income() -> None:
    totals = compute_totals([_tx("expense", 50, TODAY)])

    assert totals.balance == pytest.approx(-50)
    assert totals.savings_rate == 0.0


def test_category_breakdown_resolves_keys_to_labels() -> None:
    transactions = [
        _tx("expense", 300, TODAY),
        _tx("expense", 100, TODAY, category="транспорт"),
        _tx("income", 900, TODAY, category="зарплата"),
    ]

    shares = category_breakdown(transactions, CategoryBook(), TransactionType.EXPENSE)

    assert [(share.label, share.percent) for share in shares] == [("Продукты", 75.0), ("Транспорт", 25.0)]


def test_unknown_category_key_falls_back_to_itself() -> None:
    shares = category_breakdown([_tx("expense", 10, TODAY, category="яхты")], CategoryBook(), TransactionType.EXPENSE)

    assert shares[0].label == "яхты"
    assert shares[0].percent == 100.0


def test_ratios_report_infinite_income_ratio_without_expense() -> None:
    ratios = analytics_ratios([_tx("income", 300, TODAY, category="зарплата")])

    assert ratios.income_ratio_display == "∞"
    assert ratios.daily_average_expense == 0.0


def test_budget_at_exactly_eighty_percent_is_ok() -> None:
    report = evaluate_budget(Budget(id=1, category="продукты", limit=500), _month_start_example(), CategoryBook())

    assert report.spent == pytest.approx(400)
    assert report.percent == 80.0
    assert report.status is BudgetStatus.OK


def test_budget_matches_label_regardless_of_case() -> None:
    report = evaluate_budget(Budget(id=1, category="Продукты", limit=500), _month_start_example(), CategoryBook())

    assert report.spent == pytest.approx(400)


@pytest.mark.parametrize(
    ("spent", "expected"),
    [
        (400.0, BudgetStatus.OK),
        (400.01, BudgetStatus.WARNING),
        (500.0, BudgetStatus.WARNING),
        (500.01, BudgetStatus.OVER),
    ],
)
def test_budget_status_boundaries(spent: float, expected: BudgetStatus) -> None:
    assert classify_spending(spent, 500.0) is expected


def test_goal_projection_example() -> None:
    goal = Goal(id=1, name="Отпуск", target=1000, saved=0, deadline=TODAY + timedelta(days=10))
    plan = {(TODAY + timedelta(days=offset)).isoformat(): True for offset in range(5)}
    plan[(TODAY + timedelta(days=6)).isoformat()] = False

    projection = project_goal(goal, plan, TODAY)

    assert projection.daily_amount == 100
    assert projection.checked_days == 5
    assert projection.expected_saved == 500
    assert projection.percent == 50.0
    assert not projection.complete


def test_goal_without_deadline_has_no_daily_amount() -> None:
    projection = project_goal(Goal(id=1, name="Подушка", target=1000, saved=200), {"2024-05-01": True}, TODAY)

    assert projection.days_remaining is None
    assert projection.daily_amount == 0
    assert projection.expected_saved == 200


def test_goal_past_deadline_asks_for_whole_remainder() -> None:
    goal = Goal(id=1, name="Ноутбук", target=1000, saved=250.5, deadline=TODAY - timedelta(days=1))

    assert project_goal(goal, None, TODAY).daily_amount == 750


def test_goal_percent_caps_but_fold_back_does_not() -> None:
    goal = Goal(id=1, name="Велосипед", target=1000, saved=990, deadline=TODAY + timedelta(days=1))
    plan = {"2024-05-15": True, "2024-05-16": True, "2024-05-17": True}

    projection = project_goal(goal, plan, TODAY)

    assert projection.daily_amount == 10
    assert projection.percent == 100.0
    assert projection.complete
    assert fold_plan(goal, plan, TODAY) == 1020


def test_forecast_uses_three_completed_months() -> None:
    transactions = [
        _tx("expense", 10000, date(2024, 1, 10)),
        _tx("expense", 300, date(2024, 2, 10)),
        _tx("expense", 600, date(2024, 3, 10)),
        _tx("expense", 900, date(2024, 4, 10)),
        _tx("expense", 150, date(2024, 5, 1)),
        _tx("expense", 150, date(2024, 5, 10)),
        _tx("expense", 999, date(2024, 5, 20)),
        _tx("income", 5000, date(2024, 5, 2), category="зарплата"),
    ]

    forecast = build_forecast(transactions, TODAY)

    assert forecast.average_monthly_expense == pytest.approx(600)
    assert forecast.history_months_used == 3
    assert forecast.month_to_date_expense == pytest.approx(300)
    assert forecast.days_remaining == 16
    assert forecast.projected_expense == pytest.approx(620)
    assert forecast.daily_limit == pytest.approx(18.75)
    assert forecast.exceeds_average


def test_forecast_skips_months_without_spending() -> None:
    forecast = build_forecast([_tx("expense", 900, date(2024, 4, 3))], TODAY)

    assert forecast.history_months_used == 1
    assert forecast.average_monthly_expense == pytest.approx(900)
    assert forecast.daily_limit == pytest.approx(900 / 16)


def test_forecast_without_history_never_warns() -> None:
    forecast = build_forecast([_tx("expense", 100, TODAY)], TODAY)

    assert forecast.average_monthly_expense == 0
    assert forecast.daily_limit == 0
    assert not forecast.exceeds_average


def test_forecast_projection_grows_with_spending() -> None:
    base = [_tx("expense", 100, date(2024, 5, 2))]
    more = base + [_tx("expense", 50, date(2024, 5, 3))]

    assert build_forecast(more, TODAY).projected_expense > build_forecast(base, TODAY).projected_expense


def test_monthly_trend_covers_six_months_ending_now() -> None:
    points = monthly_trend([_tx("expense", 40, date(2024, 1, 5))], TODAY)

    assert [point.label for point in points] == ["2023-12", "2024-01", "2024-02", "2024-03", "2024-04", "2024-05"]
    assert points[1].expense == 40


def test_notifications_follow_rule_order() -> None:
    categories = CategoryBook()
    budgets = [
        Budget(id=1, category="Транспорт", limit=100),
        Budget(id=2, category="Продукты", limit=100),
    ]
    transactions = [
        _tx("expense", 90, TODAY, category="транспорт"),
        _tx("expense", 150, TODAY),
        _tx("expense", 300, date(2024, 4, 5)),
    ]
    reports = evaluate_budgets(budgets, [t for t in transactions if t.date.month == 5], categories)
    goals = [project_goal(Goal(id=3, name="Отпуск", target=1000, deadline=TODAY + timedelta(days=3)), None, TODAY)]

    notifications = build_notifications(reports, goals, build_forecast(transactions, TODAY))

    assert [notification.rule for notification in notifications] == [
        "budget_over",
        "budget_warning",
        "goal_due",
        "forecast_high",
    ]


def test_dashboard_snapshot_for_examples() -> None:
    goal = Goal(id=7, name="Отпуск", target=1000, saved=0, deadline=TODAY + timedelta(days=10))
    plan = {(TODAY + timedelta(days=offset)).isoformat(): True for offset in range(5)}

    snapshot = build_dashboard(
        _month_start_example(),
        CategoryBook(),
        [Budget(id=1, category="продукты", limit=500)],
        [goal],
        {7: plan},
        today=TODAY,
    ).as_dict()

    assert snapshot["totals"]["savings_rate"] == "60.0"
    assert snapshot["budgets"][0]["status"] == "ok"
    assert snapshot["budgets"][0]["percent"] == 80.0
    assert snapshot["goals"][0]["expected_saved"] == 500
    assert snapshot["notifications"] == []
    assert snapshot["achievements"]["level"] == 2


def test_dashboard_headline_totals_cover_the_current_month() -> None:
    transactions = _month_start_example() + [_tx("expense", 300, date(2024, 4, 10), tx_id=900)]

    snapshot = build_dashboard(transactions, CategoryBook(), [], [], today=TODAY)

    assert snapshot.totals.expense == pytest.approx(400)
    assert [share.amount for share in snapshot.expense_breakdown] == [pytest.approx(700)]
