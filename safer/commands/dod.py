"""
safer dod - Manage an item's Definition of Done.

  safer dod DI-001                     # list entries
  safer dod DI-001 --add "Tests pass"
  safer dod DI-001 --check dod-1
  safer dod DI-001 --uncheck dod-1
  safer dod DI-001 --check-complete    # exit 0 only when every entry is done
"""

from safer.commands.output import print_json
from safer.lib.config import SaferConfig
from safer.lib.context import SaferContext
from safer.lib.items import add_dod, check_dod, dod_complete, dod_progress, uncheck_dod
from safer.lib.recorder import Recorder, commit_quietly
from safer.lib.repository import ItemRepository


def _print_entries(item) -> None:
    done, total = dod_progress(item)
    print(f"{item.id} Definition of Done ({done}/{total})")
    for entry in item.definition_of_done:
        mark = "x" if entry.completed else " "
        print(f"  [{mark}] {entry.id}: {entry.text}")
    if not total:
        print("  (none)")


def cmd_dod(args, ctx: SaferContext, config: SaferConfig) -> int:
    repo = ItemRepository(ctx, config)

    if args.check_complete:
        item = repo.get(args.id)
        complete = dod_complete(item)
        if args.json:
            done, total = dod_progress(item)
            print_json({"id": item.id, "complete": complete, "completed": done, "total": total})
        elif complete:
            print(f"{item.id}: Definition of Done complete")
        else:
            pending = [d for d in item.definition_of_done if not d.completed]
            print(f"{item.id}: {len(pending)} DoD entry(s) incomplete")
            for entry in pending:
                print(f"  [ ] {entry.id}: {entry.text}")
        return 0 if complete else 1

    if not (args.add or args.check or args.uncheck):
        item = repo.get(args.id)
        if args.json:
            print_json([vars(d) for d in item.definition_of_done])
        else:
            _print_entries(item)
        return 0

    recorder = Recorder(ctx, config)
    with repo.mutation():
        item = repo.get(args.id)
        if args.add:
            entry = add_dod(item, args.add)
            message = f"{item.id}: added {entry.id}"
        elif args.check:
            entry = check_dod(item, args.check)
            message = f"{item.id}: checked {entry.id}"
        else:
            entry = uncheck_dod(item, args.uncheck)
            message = f"{item.id}: unchecked {entry.id}"
        repo.save(item)
        commit_quietly(recorder, message)

    if args.json:
        print_json(vars(entry))
    else:
        print(message)
        _print_entries(item)
    return 0
