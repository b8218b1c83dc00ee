"""Tests for the metrics module."""

from datetime import date, datetime, timedelta, timezone

import pytest

from safer.lib.items import check_dod, complete_item, start_session, stop_session
from safer.lib.metrics import (
    MetricsSummary,
    aggregate,
    focus_minutes,
    items_for_week,
    summarize,
    week_id,
    week_start,
)

NOW = datetime(2026, 1, 9, 12, 0, tzinfo=timezone.utc)      # Friday of 2026-W02


@pytest.fixture
def finish(repo, make_item):
    """Create, complete and archive an item."""

    def _finish(title, created, archived_at, stress=3, incidents=0, dod=("a", "b"), checked=1):
        item = make_item(title, created=created, dod=dod)
        for n in range(1, checked + 1):
            check_dod(item, f"dod-{n}")
        complete_item(item, stress=stress, incidents=incidents, now=archived_at)
        repo.save(item)
        repo.archive(item, now=archived_at)
        return item

    return _finish


class TestWeeks:

    def test_week_id(self):
        assert week_id(NOW) == "2026-W02"
        assert week_id(date(2027, 1, 1)) == "2026-W53"

    def test_week_start(self):
        assert week_start("2026-W02") == date(2026, 1, 5)

    @pytest.mark.parametrize("label", ["2026-02", "W02", "2026-W60", ""])
    def test_invalid_week(self, label):
        with pytest.raises(ValueError, match="expected YYYY-W##"):
            week_start(label)


class TestSummarize:

    def test_empty_archive(self, repo):
        assert aggregate(repo, NOW) == MetricsSummary()

    def test_completion_and_cycle_time(self, repo, finish):
        item = finish("Report", created=NOW - timedelta(days=2, hours=3), archived_at=NOW)
        stored = repo.get(item.id)
        assert stored.tracking.metrics.completion_rate == 0.5
        assert stored.tracking.metrics.cycle_time == 3

    def test_aggregate(self, repo, finish):
        finish("A", created=NOW - timedelta(days=2), archived_at=NOW, stress=2, incidents=1)
        finish("B", created=NOW - timedelta(days=30), archived_at=NOW - timedelta(days=20),
               stress=4, incidents=2)

        summary = aggregate(repo, NOW)
        assert summary.total_completed == 2
        assert summary.average_stress == 3.0
        assert summary.total_incidents == 3
        assert summary.average_cycle_time == 6.0
        assert summary.completed_last_7_days == 1

    def test_focus_minutes(self, config, make_item):
        item = make_item("Deep work")
        start_session(item, now=NOW)
        stop_session([item], now=NOW + timedelta(minutes=40))
        assert focus_minutes(item) == 40
        assert summarize([item], NOW).total_focus_minutes == 40


class TestItemsForWeek:

    def test_selects_by_archive_week(self, repo, finish):
        a = finish("W02 item", created=NOW - timedelta(days=1), archived_at=NOW)
        finish("W01 item", created=NOW - timedelta(days=10), archived_at=NOW - timedelta(days=7))
        assert [i.id for i in items_for_week(repo, "2026-W02")] == [a.id]
        assert items_for_week(repo, "2026-W05") == []
