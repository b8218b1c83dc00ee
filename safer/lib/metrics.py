"""
Delivery metrics over the archive.

Everything is computed on demand with a full archive scan.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable

from .models import DeliveryItem, parse_iso, utc_now
from .repository import ItemRepository


@dataclass
class MetricsSummary:
    """Aggregated metrics for a set of archived items."""
    total_completed: int = 0
    average_stress: float = 0.0
    total_incidents: int = 0
    average_cycle_time: float = 0.0
    completed_last_7_days: int = 0
    total_focus_minutes: int = 0


def week_id(dt: datetime | date) -> str:
    """ISO week label, e.g. 2026-W02."""
    year, week, _ = dt.isocalendar()
    return f"{year}-W{week:02d}"


def week_start(week: str) -> date:
    """Monday of an ISO week label.

    Raises:
        ValueError: If the label is not YYYY-W##
    """
    try:
        year_part, week_part = week.split("-W")
        return date.fromisocalendar(int(year_part), int(week_part), 1)
    except ValueError:
        raise ValueError(f"Invalid week '{week}', expected YYYY-W##") from None


def focus_minutes(item: DeliveryItem) -> int:
    return sum(s.duration or 0 for s in item.sessions)


def summarize(items: Iterable[DeliveryItem], now: datetime | None = None) -> MetricsSummary:
    items = list(items)
    if not items:
        return MetricsSummary()

    now = now or utc_now()
    cutoff = now - timedelta(days=7)
    count = len(items)

    return MetricsSummary(
        total_completed=count,
        average_stress=sum(i.tracking.review.stress_level for i in items) / count,
        total_incidents=sum(i.tracking.review.incidents for i in items),
        average_cycle_time=sum(i.tracking.metrics.cycle_time or 0 for i in items) / count,
        completed_last_7_days=sum(1 for i in items if parse_iso(i.updated) >= cutoff),
        total_focus_minutes=sum(focus_minutes(i) for i in items),
    )


def aggregate(repo: ItemRepository, now: datetime | None = None) -> MetricsSummary:
    """Summary over every archived item; all zeros for an empty archive."""
    return summarize(repo.list_archived(), now)


def items_for_week(repo: ItemRepository, week: str) -> list[DeliveryItem]:
    """Archived items whose last update falls in the given ISO week."""
    return [i for i in repo.list_archived() if week_id(parse_iso(i.updated)) == week]
