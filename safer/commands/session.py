"""
safer start / safer stop - Focus sessions.
"""

from safer.commands.output import print_json
from safer.lib.config import SaferConfig
from safer.lib.context import SaferContext
from safer.lib.items import start_session, stop_session
from safer.lib.recorder import Recorder, commit_quietly
from safer.lib.repository import ItemRepository


def cmd_start(args, ctx: SaferContext, config: SaferConfig) -> int:
    repo = ItemRepository(ctx, config)
    with repo.mutation():
        item = repo.get(args.id)
        if item.status != "active" or not repo.is_active(item.id):
            print(f"ERROR: {item.id} is {item.status}; focus sessions need an active item")
            return 1
        session = start_session(item)
        repo.save(item)
        commit_quietly(Recorder(ctx, config), f"Started session on {item.id}")

    if args.json:
        print_json({"id": item.id, "session": vars(session)})
        return 0

    print(f"Focus session started on {item.id}: {item.title}")
    print(f"  Time box: {item.constraints.time_box.duration} minutes")
    print("  Stop with: safer stop")
    return 0


def cmd_stop(args, ctx: SaferContext, config: SaferConfig) -> int:
    repo = ItemRepository(ctx, config)
    with repo.mutation():
        item, session = stop_session(repo.list_active(), notes=args.notes or "")
        repo.save(item)
        commit_quietly(Recorder(ctx, config), f"Stopped session on {item.id} ({session.duration} min)")

    if args.json:
        print_json({"id": item.id, "session": vars(session)})
        return 0

    budget = item.constraints.time_box.duration
    spent = item.tracking.metrics.actual_time_spent
    print(f"Focus session on {item.id} stopped after {session.duration} minutes")
    print(f"  Total time spent: {spent}/{budget} minutes")
    if spent > budget:
        print("  Time box exceeded")
    return 0
