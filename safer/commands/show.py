"""
safer show - Show one delivery item in full.
"""

from safer.commands.output import print_json
from safer.lib.config import SaferConfig
from safer.lib.context import SaferContext
from safer.lib.items import dod_progress
from safer.lib.repository import ItemRepository


def cmd_show(args, ctx: SaferContext, config: SaferConfig) -> int:
    repo = ItemRepository(ctx, config)
    item = repo.get(args.id)

    if args.json:
        print_json(item.to_dict())
        return 0

    scope = item.scope
    metrics = item.tracking.metrics
    review = item.tracking.review

    print(f"{item.id}: {scope.title}")
    print("=" * 60)
    print(f"Status:      {item.status}")
    if repo.is_active(item.id):
        print(f"WIP slot:    {item.wip_slot}")
    print(f"Created:     {item.created}")
    print(f"Updated:     {item.updated}")
    print(f"Due:         {scope.due or '-'}")
    if scope.stakeholder:
        print(f"Stakeholder: {scope.stakeholder}")
    if scope.outcome:
        print(f"Outcome:     {scope.outcome}")
    if scope.description:
        print()
        print(scope.description)

    if item.plan.objectives:
        print()
        print("Objectives")
        for objective in item.plan.objectives:
            print(f"  - {objective}")

    done, total = dod_progress(item)
    print()
    print(f"Definition of Done ({done}/{total})")
    for entry in item.definition_of_done:
        mark = "x" if entry.completed else " "
        print(f"  [{mark}] {entry.id}: {entry.text}")
    if not total:
        print("  (none)")

    print()
    print(f"Time box: {item.constraints.time_box.duration} minutes, "
          f"{metrics.actual_time_spent} spent in {len(item.sessions)} session(s)")
    running = item.running_session()
    if running:
        print(f"  Session running since {running.start}")

    if item.tracking.issues or item.tracking.pull_requests:
        issues = ", ".join(f"#{n}" for n in item.tracking.issues) or "-"
        prs = ", ".join(f"#{n}" for n in item.tracking.pull_requests) or "-"
        print(f"Issues: {issues}  PRs: {prs}")

    if review.blockers:
        print()
        print("Blockers")
        for blocker in review.blockers:
            print(f"  - {blocker}")

    if metrics.cycle_time is not None:
        print()
        print(f"Cycle time: {metrics.cycle_time} day(s)  "
              f"Completion: {metrics.completion_rate:.0%}  Stress: {review.stress_level}/5")
    return 0
