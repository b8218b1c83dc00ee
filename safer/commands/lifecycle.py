"""
safer block / unblock / reopen / complete / archive / delete - Item lifecycle.
"""

from safer.commands.output import item_row, print_json
from safer.lib.config import SaferConfig
from safer.lib.context import SaferContext
from safer.lib.errors import NotFound
from safer.lib.items import complete_item, dod_progress, reopen_item, set_blocked
from safer.lib.recorder import Recorder, commit_quietly
from safer.lib.repository import ItemRepository


def _get_active(repo: ItemRepository, item_id: str):
    if not repo.is_active(item_id):
        # Distinguish archived from unknown for the message
        item = repo.get(item_id)
        raise NotFound(f"{item.id} ({item.status})", "Active item")
    return repo.get(item_id)


def cmd_block(args, ctx: SaferContext, config: SaferConfig) -> int:
    repo = ItemRepository(ctx, config)
    with repo.mutation():
        item = _get_active(repo, args.id)
        set_blocked(item, True, args.reason or "")
        repo.save(item)
        commit_quietly(Recorder(ctx, config), f"Blocked {item.id}: {item.title}")

    if args.json:
        print_json(item_row(item))
    else:
        print(f"{item.id} blocked" + (f": {args.reason}" if args.reason else ""))
    return 0


def cmd_unblock(args, ctx: SaferContext, config: SaferConfig) -> int:
    repo = ItemRepository(ctx, config)
    with repo.mutation():
        item = _get_active(repo, args.id)
        set_blocked(item, False)
        repo.save(item)
        commit_quietly(Recorder(ctx, config), f"Unblocked {item.id}: {item.title}")

    if args.json:
        print_json(item_row(item))
    else:
        print(f"{item.id} is active again")
    return 0


def cmd_reopen(args, ctx: SaferContext, config: SaferConfig) -> int:
    repo = ItemRepository(ctx, config)
    with repo.mutation():
        item = _get_active(repo, args.id)
        reopen_item(item, args.reason or "")
        repo.save(item)
        commit_quietly(Recorder(ctx, config), f"Reopened {item.id}: {item.title}")

    if args.json:
        print_json(item_row(item))
    else:
        print(f"{item.id} reopened")
    return 0


def cmd_complete(args, ctx: SaferContext, config: SaferConfig) -> int:
    repo = ItemRepository(ctx, config)
    recorder = Recorder(ctx, config)

    with repo.mutation():
        item = _get_active(repo, args.id)

        if item.status == "completed":
            if not args.archive:
                print(f"{item.id} is already completed. Archive it with: safer archive {item.id}")
                return 0
            repo.archive(item)
            commit_quietly(recorder, f"Archived {item.id}: {item.title}")
            print(f"Archived {item.id}")
            return 0

        done, total = dod_progress(item)
        if done < total and not args.yes:
            print(f"ERROR: {item.id} has {total - done} incomplete DoD entry(s)")
            for entry in item.definition_of_done:
                if not entry.completed:
                    print(f"  [ ] {entry.id}: {entry.text}")
            print("  Use --yes to complete anyway")
            return 1
        if total == 0 and not args.yes:
            print(f"ERROR: {item.id} has no Definition of Done. Use --yes to complete anyway")
            return 1

        complete_item(
            item,
            stress=args.stress,
            learnings=args.learnings,
            incidents=args.incidents,
        )

        if args.archive:
            repo.archive(item)
            commit_quietly(recorder, f"Completed and archived {item.id}: {item.title}")
        else:
            repo.save(item)
            commit_quietly(recorder, f"Completed {item.id}: {item.title}")

    metrics = item.tracking.metrics
    if args.json:
        print_json({**item_row(item), "metrics": vars(metrics)})
        return 0

    print(f"Completed {item.id}: {item.title}")
    print(f"  Cycle time: {metrics.cycle_time} day(s)")
    print(f"  DoD completion: {metrics.completion_rate:.0%}")
    print(f"  Stress: {item.tracking.review.stress_level}/5")
    if args.archive:
        print("  Archived; WIP slot freed")
    else:
        print(f"  Archive with: safer archive {item.id}")
    return 0


def cmd_archive(args, ctx: SaferContext, config: SaferConfig) -> int:
    repo = ItemRepository(ctx, config)
    with repo.mutation():
        item = _get_active(repo, args.id)
        path = repo.archive(item)
        commit_quietly(Recorder(ctx, config), f"Archived {item.id}: {item.title}")

    if args.json:
        print_json({**item_row(item), "path": str(path)})
    else:
        print(f"Archived {item.id} to {path.relative_to(ctx.root)}")
    return 0


def cmd_delete(args, ctx: SaferContext, config: SaferConfig) -> int:
    if not args.force:
        print(f"ERROR: Deleting {args.id} removes it without a trace. Re-run with --force")
        return 2

    repo = ItemRepository(ctx, config)
    with repo.mutation():
        if not repo.delete(args.id):
            print(f"ERROR: Active item {args.id} not found")
            return 2
        commit_quietly(Recorder(ctx, config), f"Deleted {args.id}")

    print(f"Deleted {args.id}")
    return 0
