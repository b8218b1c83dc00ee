"""Tests for the weekly review module."""

from datetime import datetime, timedelta, timezone

import pytest

from safer.lib.items import complete_item
from safer.lib.review import (
    DEFAULT_REFLECTION,
    NO_ITEMS,
    generate_weekly_review,
    parse_review_sections,
    review_path,
)

MONDAY_W02 = datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def finish(repo, make_item):
    def _finish(title, archived_at, stress=3):
        item = make_item(title, created=archived_at - timedelta(days=1))
        complete_item(item, stress=stress, now=archived_at)
        repo.save(item)
        repo.archive(item, now=archived_at)
        return item

    return _finish


class TestParseReviewSections:

    def test_splits_on_headings(self):
        text = ("# Title\n\n## One\n\nfirst\nline\n\n## Two\n\nsecond\n\n---\n"
                "_Generated by SAFER on 2026-01-05T09:00:00+00:00_\n")
        assert parse_review_sections(text) == {"One": "first\nline", "Two": "second"}

    def test_footer_not_captured(self):
        sections = parse_review_sections("## Last\n\nbody\n---\n_Generated by SAFER on x_")
        assert sections["Last"] == "body"

    def test_rule_inside_reflection_kept(self):
        text = ("## What Went Well\n\nShipped the parser\n\n---\n\nAlso paired with Sam\n\n"
                "---\n_Generated by SAFER on x_\n")
        sections = parse_review_sections(text)
        assert sections["What Went Well"] == "Shipped the parser\n\n---\n\nAlso paired with Sam"

    def test_without_footer(self):
        assert parse_review_sections("## Notes\n\na\n---\nb") == {"Notes": "a\n---\nb"}


class TestGenerateWeeklyReview:

    def test_empty_week(self, ctx, repo):
        path = generate_weekly_review(ctx, repo, week="2026-W02", now=MONDAY_W02)
        text = path.read_text()
        assert path == review_path(ctx, "2026-W02")
        assert text.startswith("# Weekly Review: 2026-W02")
        assert "**Date:** Monday, 5 January 2026" in text
        assert "| Items Completed | 0 |" in text
        assert "| Average Stress | N/A |" in text
        assert NO_ITEMS in text
        assert text.count(DEFAULT_REFLECTION) == 5
        assert "_Generated by SAFER on 2026-01-05T09:00:00+00:00_" in text

    def test_lists_only_that_weeks_items(self, ctx, repo, finish):
        finish("Week two work", MONDAY_W02 + timedelta(days=2), stress=2)
        finish("Week three work", MONDAY_W02 + timedelta(days=8), stress=4)

        w02 = generate_weekly_review(ctx, repo, week="2026-W02", now=MONDAY_W02).read_text()
        w03 = generate_weekly_review(ctx, repo, week="2026-W03", now=MONDAY_W02).read_text()

        assert "- [DI-001] Week two work" in w02
        assert "Week three work" not in w02
        assert "| Average Stress | 2.0/5 |" in w02
        assert "- [DI-002] Week three work" in w03
        assert "| Avg Cycle Time | 1.0 days |" in w03

    def test_items_sorted_by_id(self, ctx, repo, finish):
        finish("First", MONDAY_W02 + timedelta(days=3))
        finish("Second", MONDAY_W02 + timedelta(days=1))
        text = generate_weekly_review(ctx, repo, week="2026-W02", now=MONDAY_W02).read_text()
        assert text.index("[DI-001]") < text.index("[DI-002]")

    def test_reflections_written(self, ctx, repo):
        path = generate_weekly_review(
            ctx, repo, week="2026-W02", now=MONDAY_W02,
            reflections={"went_well": "Shipped the report", "blockers": "Vendor API"},
        )
        sections = parse_review_sections(path.read_text())
        assert sections["What Went Well"] == "Shipped the report"
        assert sections["Blockers"] == "Vendor API"
        assert sections["Key Learnings"] == DEFAULT_REFLECTION

    def test_regeneration_keeps_written_reflections(self, ctx, repo, finish):
        generate_weekly_review(ctx, repo, week="2026-W02", now=MONDAY_W02,
                               reflections={"went_well": "Original note"})
        finish("Late finish", MONDAY_W02 + timedelta(days=4))

        path = generate_weekly_review(
            ctx, repo, week="2026-W02", now=MONDAY_W02 + timedelta(days=5),
            reflections={"went_well": "Replacement", "learnings": "Batch reviews"},
        )
        text = path.read_text()
        sections = parse_review_sections(text)
        assert sections["What Went Well"] == "Original note"
        assert sections["Key Learnings"] == "Batch reviews"
        assert "| Items Completed | 1 |" in text

    def test_hand_edits_survive(self, ctx, repo):
        path = generate_weekly_review(ctx, repo, week="2026-W02", now=MONDAY_W02)
        path.write_text(path.read_text().replace(
            f"## Adjustments for Next Week\n\n{DEFAULT_REFLECTION}",
            "## Adjustments for Next Week\n\nFewer meetings",
        ))
        generate_weekly_review(ctx, repo, week="2026-W02", now=MONDAY_W02)
        sections = parse_review_sections(path.read_text())
        assert sections["Adjustments for Next Week"] == "Fewer meetings"

    def test_defaults_to_current_week(self, ctx, repo):
        path = generate_weekly_review(ctx, repo, now=MONDAY_W02 + timedelta(days=3))
        assert path.name == "2026-W02.md"

    def test_invalid_week(self, ctx, repo):
        with pytest.raises(ValueError):
            generate_weekly_review(ctx, repo, week="last-week")

    def test_regeneration_keeps_horizontal_rules(self, ctx, repo):
        note = "Shipped the parser\n\n---\n\nAlso paired with Sam"
        generate_weekly_review(ctx, repo, week="2026-W02", now=MONDAY_W02,
                               reflections={"went_well": note})
        path = generate_weekly_review(ctx, repo, week="2026-W02",
                                      now=MONDAY_W02 + timedelta(days=1))
        text = path.read_text()
        assert parse_review_sections(text)["What Went Well"] == note
        assert text.count("_Generated by SAFER") == 1
