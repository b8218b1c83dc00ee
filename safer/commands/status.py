"""
safer status / safer wip - Overview of the data root and WIP slots.
"""

from safer.commands.output import print_json, truncate
from safer.lib.config import SaferConfig
from safer.lib.context import SaferContext
from safer.lib.recorder import Recorder
from safer.lib.repository import ItemRepository


def cmd_status(args, ctx: SaferContext, config: SaferConfig) -> int:
    repo = ItemRepository(ctx, config)
    recorder = Recorder(ctx, config)

    wip = repo.check_wip_limit()
    active = repo.list_active()
    is_repo = recorder.is_repo()
    changed = recorder.changed_files() if is_repo else []

    data = {
        "root": str(ctx.root),
        "initialized": ctx.is_initialized(),
        "wip": {"current": wip.current, "maximum": wip.maximum, "within_limit": wip.within_limit},
        "active": len(active),
        "blocked": sum(1 for i in active if i.status == "blocked"),
        "archived": len(repo.list_archived()),
        "running_session": next((i.id for i in active if i.running_session()), None),
        "git": {
            "repository": is_repo,
            "branch": recorder.current_branch() if is_repo else None,
            "uncommitted_changes": bool(changed),
            "changed_files": changed,
            "auto_commit": config.git.auto_commit,
            "remote_sync": config.git.remote_sync,
        },
        "github": {"enabled": config.github.enabled},
    }

    if args.json:
        print_json(data)
        return 0

    print(f"SAFER root: {ctx.root}")
    print(f"WIP: {wip.current}/{wip.maximum}" + ("" if wip.within_limit else " (limit reached)"))
    print(f"Active: {data['active']}  Blocked: {data['blocked']}  Archived: {data['archived']}")
    if data["running_session"]:
        print(f"Focus session running on {data['running_session']}")
    if is_repo:
        git = data["git"]
        dirty = f" ({len(changed)} uncommitted change(s))" if changed else ""
        print(f"Git: {git['branch'] or '(detached)'}{dirty}")
    else:
        print("Git: not a repository")
    print(f"GitHub: {'enabled' if config.github.enabled else 'disabled'}")
    return 0


def cmd_wip(args, ctx: SaferContext, config: SaferConfig) -> int:
    """Show WIP slots and their occupants."""
    repo = ItemRepository(ctx, config)
    wip = repo.check_wip_limit()
    by_slot = {item.wip_slot: item for item in repo.list_active()}

    slots = []
    for slot in range(1, wip.maximum + 1):
        item = by_slot.get(slot)
        slots.append({
            "slot": slot,
            "item": item.id if item else None,
            "title": item.title if item else None,
            "status": item.status if item else None,
        })

    if args.json:
        print_json({
            "current": wip.current,
            "maximum": wip.maximum,
            "within_limit": wip.within_limit,
            "slots": slots,
        })
        return 0

    print(f"WIP {wip.current}/{wip.maximum}")
    print("-" * 60)
    for entry in slots:
        if entry["item"]:
            print(f"  [{entry['slot']}] {entry['item']:<8} {entry['status']:<10} {truncate(entry['title'], 36)}")
        else:
            print(f"  [{entry['slot']}] (free)")
    if not wip.within_limit:
        print()
        print("WIP limit reached. Complete or archive an item before starting new work.")
    return 0
