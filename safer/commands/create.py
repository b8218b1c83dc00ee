"""
safer create - Create a delivery item in the lowest free WIP slot.
"""

from datetime import date

from safer.commands.output import item_row, print_json
from safer.lib.config import SaferConfig
from safer.lib.context import SaferContext
from safer.lib.items import create_item
from safer.lib.recorder import Recorder
from safer.lib.repository import ItemRepository


def cmd_create(args, ctx: SaferContext, config: SaferConfig) -> int:
    if args.due:
        try:
            date.fromisoformat(args.due)
        except ValueError:
            print(f"ERROR: Invalid --due value: {args.due} (expected YYYY-MM-DD)")
            return 2

    repo = ItemRepository(ctx, config)
    item = create_item(
        repo,
        Recorder(ctx, config),
        args.title,
        description=args.description or "",
        outcome=args.outcome or "",
        stakeholder=args.stakeholder or "",
        due=args.due,
        context=args.context or "",
        objectives=args.objective,
        dod=args.dod,
    )

    if args.json:
        print_json(item_row(item))
        return 0

    wip = repo.check_wip_limit()
    print(f"Created {item.id}: {item.title}")
    print(f"  WIP slot: {item.wip_slot} ({wip.current}/{wip.maximum} in use)")
    print(f"  Due: {item.scope.due}")
    print(f"  Time box: {item.constraints.time_box.duration} minutes")
    if not item.definition_of_done:
        print()
        print(f"Add a Definition of Done: safer dod {item.id} --add \"...\"")
    return 0
