from __future__ import annotations

from collections import defaultdict
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Mapping, Optional
from zoneinfo import ZoneInfo

from fineflex.core.config import settings


@dataclass(frozen=True)
class StatisticsSnapshot:
    """A user's financial position for the current calendar month."""

    monthly_income: float
    savings_goal: float
    total_expenses: float
    saved_amount: float
    goal_percentage: float
    category_totals: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _non_negative(value: Any) -> float:
    try:
        number = float(value or 0)
    except (TypeError, ValueError):
        return 0.0
    return number if number > 0 else 0.0


def month_start(now: Optional[datetime] = None, tz: Optional[str | ZoneInfo] = None) -> datetime:
    """
    First instant of the month containing `now`, on the calendar of `tz`
    (settings.REPORT_TIMEZONE when not given).

    Returned as a naive UTC datetime so it compares directly with the
    ledger's stored timestamps.
    """
    if tz is None:
        tz = settings.REPORT_TIMEZONE
    zone = ZoneInfo(tz) if isinstance(tz, str) else tz
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    local = now.astimezone(zone)
    start = local.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    return start.astimezone(timezone.utc).replace(tzinfo=None)


class StatisticsAggregator:
    """
    Turns a user's income, savings goal and in-month expenses into a
    StatisticsSnapshot. Stateless; the same instance is shared by every
    request.
    """

    def total_expenses(self, expenses: Iterable[Mapping[str, Any]]) -> float:
        return round(sum(float(exp.get("amount", 0)) for exp in expenses), 2)

    def category_totals(self, expenses: Iterable[Mapping[str, Any]]) -> Dict[str, float]:
        totals: Dict[str, float] = defaultdict(float)
        for exp in expenses:
            totals[exp.get("category") or "other"] += float(exp.get("amount", 0))
        return {cat: round(total, 2) for cat, total in totals.items()}

    def summarize(
        self,
        monthly_income: Any,
        savings_goal: Any,
        expenses: Iterable[Mapping[str, Any]],
    ) -> StatisticsSnapshot:
        income = _non_negative(monthly_income)
        goal = _non_negative(savings_goal)
        expenses = list(expenses)

        total = self.total_expenses(expenses)
        saved = round(max(0.0, income - total), 2)
        if goal <= 0:
            percentage = 0.0
        else:
            percentage = round(min(100.0, saved / goal * 100), 2)

        return StatisticsSnapshot(
            monthly_income=income,
            savings_goal=goal,
            total_expenses=total,
            saved_amount=saved,
            goal_percentage=percentage,
            category_totals=self.category_totals(expenses),
        )


def savings_rate(snapshot: StatisticsSnapshot) -> float:
    """Share of income kept this month, in percent with one decimal."""
    if not snapshot.monthly_income:
        return 0.0
    return round(snapshot.saved_amount / snapshot.monthly_income * 100, 1)
