"""
safer metrics - Delivery metrics over the archive.
"""

from safer.commands.output import print_json
from safer.lib.config import SaferConfig
from safer.lib.context import SaferContext
from safer.lib.metrics import aggregate
from safer.lib.repository import ItemRepository


def cmd_metrics(args, ctx: SaferContext, config: SaferConfig) -> int:
    repo = ItemRepository(ctx, config)
    summary = aggregate(repo)
    wip = repo.check_wip_limit()

    if args.json:
        print_json({
            **vars(summary),
            "wip_current": wip.current,
            "wip_maximum": wip.maximum,
        })
        return 0

    print("Delivery Metrics")
    print("-" * 40)
    print(f"  Items completed:      {summary.total_completed}")
    print(f"  Completed (7 days):   {summary.completed_last_7_days}")
    print(f"  Average stress:       {summary.average_stress:.1f}/5")
    print(f"  Average cycle time:   {summary.average_cycle_time:.1f} days")
    print(f"  Total incidents:      {summary.total_incidents}")
    print(f"  Focus time:           {summary.total_focus_minutes} minutes")
    print(f"  WIP:                  {wip.current}/{wip.maximum}")
    return 0
