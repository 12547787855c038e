"""Mini README: Savings-goal projection from plan check-ins.

Structure:
    * GoalProjection - expected savings and completion for one goal.
    * checked_days - count of ticked days in a plan map.
    * project_goal - combine a goal with its plan map.
    * fold_plan - the saved amount a goal should carry once its plan closes.

The expected amount is ``saved + checkedDays * dailyAmount`` where the daily
amount is ``ceil((target - saved) / daysRemaining)``. It stays separate from
the authoritative ``saved`` field until the plan is closed; a plan that is
never closed leaves the two figures apart.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Mapping, Optional

from ..finance.models import Goal


@dataclass(slots=True)
class GoalProjection:
    goal: Goal
    days_remaining: Optional[int]
    daily_amount: float
    checked_days: int
    expected_saved: float
    percent: float

    @property
    def complete(self) -> bool:
        return self.goal.target > 0 and self.expected_saved >= self.goal.target

    def as_dict(self) -> Dict[str, object]:
        return {
            "id": self.goal.id,
            "name": self.goal.name,
            "target": self.goal.target,
            "saved": self.goal.saved,
            "deadline": self.goal.deadline.isoformat() if self.goal.deadline else None,
            "days_remaining": self.days_remaining,
            "daily_amount": self.daily_amount,
            "checked_days": self.checked_days,
            "expected_saved": self.expected_saved,
            "percent": self.percent,
            "complete": self.complete,
        }


def checked_days(plan: Optional[Mapping[str, Any]]) -> int:
    if not plan:
        return 0
    return sum(1 for value in plan.values() if value is True)


def daily_amount(goal: Goal, days_remaining: Optional[int]) -> float:
    """Amount to put aside per day to reach the target by the deadline.

    Without a deadline there is no schedule and the amount is 0; on or past
    the deadline the whole remainder is due at once.
    """

    remaining = max(goal.target - goal.saved, 0.0)
    if days_remaining is None:
        return 0.0
    if days_remaining <= 0:
        return float(math.ceil(remaining))
    return float(math.ceil(remaining / days_remaining))


def project_goal(goal: Goal, plan: Optional[Mapping[str, Any]], today: date) -> GoalProjection:
    days_remaining = (goal.deadline - today).days if goal.deadline else None
    per_day = daily_amount(goal, days_remaining)
    ticks = checked_days(plan)
    expected = goal.saved + ticks * per_day
    percent = min(expected * 100 / goal.target, 100.0) if goal.target > 0 else 0.0
    return GoalProjection(
        goal=goal,
        days_remaining=days_remaining,
        daily_amount=per_day,
        checked_days=ticks,
        expected_saved=expected,
        percent=percent,
    )


def fold_plan(goal: Goal, plan: Optional[Mapping[str, Any]], today: date) -> float:
    """Return the new ``saved`` value after folding the plan's check-ins in."""

    return project_goal(goal, plan, today).expected_saved
