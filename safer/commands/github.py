"""
safer github / github-status / link - GitHub integration settings and links.
"""

from safer.commands.output import item_row, print_json
from safer.lib.config import SaferConfig, save_config
from safer.lib.context import SaferContext
from safer.lib.github import get_status
from safer.lib.items import link_issue, link_pull_request
from safer.lib.locking import root_lock
from safer.lib.recorder import Recorder, commit_quietly
from safer.lib.repository import ItemRepository


def cmd_github(args, ctx: SaferContext, config: SaferConfig) -> int:
    """Show or update the github configuration section."""
    gh = config.github
    changes = []

    if args.enable and args.disable:
        print("ERROR: --enable and --disable are mutually exclusive")
        return 2
    for field in ("owner", "repo", "token", "branch"):
        value = getattr(args, field)
        if value is not None:
            setattr(gh, field, value)
            changes.append(field)
    if args.enable:
        gh.enabled = True
        changes.append("enabled")
    if args.disable:
        gh.enabled = False
        changes.append("enabled")

    if changes:
        with root_lock(ctx):
            save_config(ctx, config)
            commit_quietly(Recorder(ctx, config), f"GitHub config: {', '.join(changes)}")

    data = {
        "enabled": gh.enabled,
        "owner": gh.owner,
        "repo": gh.repo,
        "branch": gh.branch,
        "token": "********" if gh.token else "",
    }
    if args.json:
        print_json(data)
        return 0

    if changes:
        print(f"Updated: {', '.join(changes)}")
    print(f"GitHub integration: {'enabled' if gh.enabled else 'disabled'}")
    print(f"  Repository: {gh.owner or '?'}/{gh.repo or '?'} ({gh.branch})")
    print(f"  Token: {'set' if gh.token else 'not set'}")
    return 0


def cmd_github_status(args, ctx: SaferContext, config: SaferConfig) -> int:
    status = get_status(config)
    if args.json:
        print_json(status)
        return 0

    print(f"GitHub integration: {'enabled' if status.enabled else 'disabled'}")
    print(f"  Method: {status.method}")
    print(f"  Repository: {status.repository or '(not configured)'}")
    print(f"  {status.message}")
    return 0


def cmd_link(args, ctx: SaferContext, config: SaferConfig) -> int:
    """Link GitHub issue / pull request numbers to an active item."""
    if args.issue is None and args.pr is None:
        print("ERROR: Nothing to link. Use --issue and/or --pr")
        return 2

    repo = ItemRepository(ctx, config)
    with repo.mutation():
        item = repo.get(args.id)
        linked = []
        if args.issue is not None and link_issue(item, args.issue):
            linked.append(f"issue #{args.issue}")
        if args.pr is not None and link_pull_request(item, args.pr):
            linked.append(f"PR #{args.pr}")
        if linked:
            repo.save(item)
            commit_quietly(Recorder(ctx, config), f"Linked {', '.join(linked)} to {item.id}")

    if args.json:
        print_json({**item_row(item), "issues": item.tracking.issues,
                    "pull_requests": item.tracking.pull_requests})
    elif linked:
        print(f"Linked {', '.join(linked)} to {item.id}")
    else:
        print(f"{item.id}: already linked")
    return 0
