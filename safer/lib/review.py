"""
Weekly review generation.

Reviews are markdown files under data/reviews/<YYYY-W##>.md. Regenerating
a week refreshes the metrics table and completed list but keeps any
reflection text already written.
"""

import logging
from datetime import datetime
from pathlib import Path

from .context import SaferContext
from .metrics import MetricsSummary, items_for_week, summarize, week_id, week_start
from .models import DeliveryItem, to_iso, utc_now
from .repository import ItemRepository

logger = logging.getLogger(__name__)

# (reflection key, section heading)
REFLECTION_SECTIONS = [
    ("went_well", "What Went Well"),
    ("didnt_go_well", "What Didn't Go Well"),
    ("blockers", "Blockers"),
    ("learnings", "Key Learnings"),
    ("adjustments", "Adjustments for Next Week"),
]

DEFAULT_REFLECTION = "_Not recorded_"
NO_ITEMS = "_No items completed this week_"
FOOTER_PREFIX = "_Generated by SAFER"


def review_path(ctx: SaferContext, week: str) -> Path:
    return ctx.reviews_dir / f"{week}.md"


def _strip_footer(lines: list[str]) -> list[str]:
    """Drop the trailing '---' rule and generated-by line, if present.

    Only the rule directly above the last generated-by line counts as the
    footer; other '---' lines are reflection text.
    """
    for index in range(len(lines) - 1, -1, -1):
        if not lines[index].startswith(FOOTER_PREFIX):
            continue
        end = index
        for above in range(index - 1, -1, -1):
            if lines[above].strip() == "---":
                end = above
                break
            if lines[above].strip():
                break
        return lines[:end]
    return lines


def parse_review_sections(text: str) -> dict[str, str]:
    """Map each '## ' heading to its body, excluding the footer."""
    sections: dict[str, str] = {}
    heading = None
    body: list[str] = []

    def flush():
        if heading is not None:
            sections[heading] = "\n".join(body).strip()

    for line in _strip_footer(text.splitlines()):
        if line.startswith("## "):
            flush()
            heading = line[3:].strip()
            body = []
        elif heading is not None:
            body.append(line)
    flush()
    return sections


def _is_default(body: str | None) -> bool:
    return not body or body.strip() == DEFAULT_REFLECTION


def _fmt_average(value: float, count: int, suffix: str) -> str:
    return f"{value:.1f}{suffix}" if count else "N/A"


def render_review(
    week: str,
    items: list[DeliveryItem],
    summary: MetricsSummary,
    reflections: dict[str, str],
    now: datetime,
) -> str:
    """Render a review. `reflections` is keyed by section heading."""
    count = summary.total_completed
    completed = "\n".join(f"- [{i.id}] {i.title}" for i in items) or NO_ITEMS

    lines = [
        f"# Weekly Review: {week}",
        "",
        f"**Date:** {now:%A}, {now.day} {now:%B %Y}",
        "",
        "## Metrics",
        "",
        "| Metric | Value |",
        "|--------|-------|",
        f"| Items Completed | {count} |",
        f"| Average Stress | {_fmt_average(summary.average_stress, count, '/5')} |",
        f"| Total Incidents | {summary.total_incidents} |",
        f"| Focus Time | {summary.total_focus_minutes} minutes |",
        f"| Avg Cycle Time | {_fmt_average(summary.average_cycle_time, count, ' days')} |",
        "",
        "## Completed Items",
        "",
        completed,
        "",
    ]
    for _, heading in REFLECTION_SECTIONS:
        lines += [f"## {heading}", "", reflections.get(heading) or DEFAULT_REFLECTION, ""]
    lines += ["---", f"{FOOTER_PREFIX} on {to_iso(now)}_", ""]
    return "\n".join(lines)


def generate_weekly_review(
    ctx: SaferContext,
    repo: ItemRepository,
    week: str | None = None,
    reflections: dict[str, str] | None = None,
    now: datetime | None = None,
) -> Path:
    """Write (or refresh) the review for a week; defaults to the current week.

    `reflections` is keyed by REFLECTION_SECTIONS key (went_well, ...).
    Existing non-default reflection text always wins over new input.
    """
    now = now or utc_now()
    week = week or week_id(now)
    week_start(week)  # validates the label

    path = review_path(ctx, week)
    existing = parse_review_sections(path.read_text()) if path.exists() else {}
    reflections = reflections or {}

    merged: dict[str, str] = {}
    for key, heading in REFLECTION_SECTIONS:
        previous = existing.get(heading)
        if not _is_default(previous):
            merged[heading] = previous
            if reflections.get(key):
                logger.info(f"Keeping existing '{heading}' text in {path.name}")
        else:
            merged[heading] = (reflections.get(key) or "").strip()

    items = sorted(items_for_week(repo, week), key=lambda i: i.id)
    summary = summarize(items, now)

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_review(week, items, summary, merged, now))
    logger.info(f"Wrote review {path}")
    return path
