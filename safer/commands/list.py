"""
safer list - List active (and optionally archived) delivery items.
"""

from safer.commands.output import format_item_line, item_row, print_json
from safer.lib.config import SaferConfig
from safer.lib.context import SaferContext
from safer.lib.repository import ItemRepository


def cmd_list(args, ctx: SaferContext, config: SaferConfig) -> int:
    repo = ItemRepository(ctx, config)
    active = repo.list_active()
    archived = repo.list_archived() if args.all else []

    if args.json:
        data = {"active": [item_row(i) for i in active]}
        if args.all:
            data["archived"] = [item_row(i) for i in archived]
        print_json(data)
        return 0

    wip = repo.check_wip_limit()
    if active:
        print(f"Active ({wip.current}/{wip.maximum})")
        print("-" * 72)
        for item in active:
            print(format_item_line(item))
        print()
    else:
        print("Active: none")
        print()

    if args.all:
        if archived:
            print(f"Archived ({len(archived)})")
            print("-" * 72)
            for item in archived:
                print(format_item_line(item, show_slot=False))
            print()
        else:
            print("Archived: none")
            print()

    if not active and not archived:
        print("Get started:")
        print("  safer create \"<title>\"")
    return 0
