"""
safer import github - Create delivery items from open GitHub issues.
"""

from safer.commands.output import item_row, print_json, truncate
from safer.importers import GitHubImporter, ImportOptions, run_import
from safer.lib.config import SaferConfig
from safer.lib.context import SaferContext
from safer.lib.errors import ImporterNotConfigured
from safer.lib.github import create_client
from safer.lib.recorder import Recorder
from safer.lib.repository import ItemRepository


def _options(args) -> ImportOptions:
    return ImportOptions(
        assigned_to_me=args.assigned_to_me,
        label=args.label,
        state=args.state,
        limit=args.limit,
    )


def _dry_run(args, importer: GitHubImporter, repo: ItemRepository) -> int:
    candidates = importer.fetch_items(_options(args))
    already = repo.imported_issue_numbers()
    wip = repo.check_wip_limit()

    rows = [
        {
            "number": c.source.id,
            "title": c.title,
            "priority": c.metadata.priority,
            "labels": c.metadata.labels,
            "already_imported": c.source.id in already,
        }
        for c in candidates
    ]
    new_count = sum(1 for r in rows if not r["already_imported"])

    if args.json:
        print_json({"candidates": rows, "new": new_count, "headroom": wip.headroom})
        return 0

    print(f"{len(rows)} issue(s) found, {new_count} new, WIP headroom {wip.headroom}")
    for row in rows:
        mark = "skip" if row["already_imported"] else "new "
        print(f"  {mark} #{row['number']:<6} {row['priority']:<8} {truncate(row['title'], 48)}")
    return 0


def cmd_import(args, ctx: SaferContext, config: SaferConfig) -> int:
    if not config.github.enabled:
        raise ImporterNotConfigured(
            "GitHub integration is not enabled. Enable it with: safer github --enable"
        )

    repo = ItemRepository(ctx, config)
    importer = GitHubImporter(ctx, config, create_client(config))

    if args.dry_run:
        return _dry_run(args, importer, repo)

    result = run_import(importer, repo, Recorder(ctx, config), _options(args))

    if args.json:
        print_json({
            "success": result.success,
            "imported": result.imported,
            "skipped": result.skipped,
            "errors": result.errors,
            "warnings": result.warnings,
            "items": [item_row(i) for i in result.items],
        })
        return 0 if result.success else 1

    for warning in result.warnings:
        print(f"  [WARN] {warning}")
    for error in result.errors:
        print(f"  [ERROR] {error}")

    print(f"Imported {result.imported}, skipped {result.skipped}")
    for item in result.items:
        print(f"  [{item.wip_slot}] {item.id} #{item.tracking.issues[0]} {truncate(item.title, 48)}")
    return 0 if result.success else 1
