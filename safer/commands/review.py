"""
safer review - Write the weekly review markdown.

Reflection flags fill empty sections only; text already in the file is kept.
"""

from safer.commands.output import print_json
from safer.lib.config import SaferConfig
from safer.lib.context import SaferContext
from safer.lib.locking import root_lock
from safer.lib.metrics import week_id, week_start
from safer.lib.models import utc_now
from safer.lib.recorder import Recorder, commit_quietly
from safer.lib.repository import ItemRepository
from safer.lib.review import generate_weekly_review


def cmd_review(args, ctx: SaferContext, config: SaferConfig) -> int:
    week = args.week or week_id(utc_now())
    try:
        week_start(week)
    except ValueError as e:
        print(f"ERROR: {e}")
        return 2

    reflections = {
        "went_well": args.went_well,
        "didnt_go_well": args.didnt_go_well,
        "blockers": args.blockers,
        "learnings": args.learnings,
        "adjustments": args.adjustments,
    }
    reflections = {k: v for k, v in reflections.items() if v}

    repo = ItemRepository(ctx, config)
    with root_lock(ctx):
        path = generate_weekly_review(ctx, repo, week=week, reflections=reflections)
        commit_quietly(Recorder(ctx, config), f"Weekly review {week}")

    if args.json:
        print_json({"week": week, "path": str(path)})
        return 0

    print(f"Review saved: {path.relative_to(ctx.root)}")
    if args.print:
        print()
        print(path.read_text())
    return 0
