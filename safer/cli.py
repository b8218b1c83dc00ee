#!/usr/bin/env python3
"""SAFER CLI entrypoint."""

import sys
import argparse
import logging

from safer.lib.config import load_config
from safer.lib.context import SaferContext
from safer.lib.errors import ConfigError, NotFound, SaferError
from safer.lib.locking import LockTimeout
from safer.commands import init as cmd_init_module
from safer.commands import status as cmd_status_module
from safer.commands import config as cmd_config_module
from safer.commands import create as cmd_create_module
from safer.commands import list as cmd_list_module
from safer.commands import show as cmd_show_module
from safer.commands import dod as cmd_dod_module
from safer.commands import session as cmd_session_module
from safer.commands import lifecycle as cmd_lifecycle_module
from safer.commands import importer as cmd_import_module
from safer.commands import github as cmd_github_module
from safer.commands import metrics as cmd_metrics_module
from safer.commands import review as cmd_review_module
from safer.commands import sync as cmd_sync_module
from safer.commands import purge as cmd_purge_module

logger = logging.getLogger(__name__)


def get_context(args) -> SaferContext:
    """Data root from --root, $SAFER_HOME, or ~/.safer."""
    return SaferContext.from_env(getattr(args, 'root', None))


def get_initialized(args):
    """Context and config for an initialized root, or exit 2."""
    ctx = get_context(args)
    if not ctx.is_initialized():
        print(f"ERROR: SAFER is not initialized at {ctx.root}. Run: safer init")
        sys.exit(2)
    return ctx, load_config(ctx)


def _with_config(handler):
    def run(args):
        ctx, config = get_initialized(args)
        return handler(args, ctx, config)
    return run


def cmd_init(args):
    return cmd_init_module.cmd_init(args, get_context(args))


def cmd_config(args):
    ctx, _ = get_initialized(args)
    return cmd_config_module.cmd_config(args, ctx)


cmd_status = _with_config(cmd_status_module.cmd_status)
cmd_wip = _with_config(cmd_status_module.cmd_wip)
cmd_create = _with_config(cmd_create_module.cmd_create)
cmd_list = _with_config(cmd_list_module.cmd_list)
cmd_show = _with_config(cmd_show_module.cmd_show)
cmd_dod = _with_config(cmd_dod_module.cmd_dod)
cmd_start = _with_config(cmd_session_module.cmd_start)
cmd_stop = _with_config(cmd_session_module.cmd_stop)
cmd_block = _with_config(cmd_lifecycle_module.cmd_block)
cmd_unblock = _with_config(cmd_lifecycle_module.cmd_unblock)
cmd_reopen = _with_config(cmd_lifecycle_module.cmd_reopen)
cmd_complete = _with_config(cmd_lifecycle_module.cmd_complete)
cmd_archive = _with_config(cmd_lifecycle_module.cmd_archive)
cmd_delete = _with_config(cmd_lifecycle_module.cmd_delete)
cmd_import = _with_config(cmd_import_module.cmd_import)
cmd_github = _with_config(cmd_github_module.cmd_github)
cmd_github_status = _with_config(cmd_github_module.cmd_github_status)
cmd_link = _with_config(cmd_github_module.cmd_link)
cmd_metrics = _with_config(cmd_metrics_module.cmd_metrics)
cmd_review = _with_config(cmd_review_module.cmd_review)
cmd_sync = _with_config(cmd_sync_module.cmd_sync)
cmd_log = _with_config(cmd_sync_module.cmd_log)
cmd_purge_all = _with_config(cmd_purge_module.cmd_purge_all)


def _stress(value: str) -> int:
    level = int(value)
    if not 1 <= level <= 5:
        raise argparse.ArgumentTypeError("stress level must be between 1 and 5")
    return level


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='safer', description='SAFER delivery tracker')
    parser.add_argument('--root', help='Data root (default: $SAFER_HOME or ~/.safer)')
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging on stderr')
    subparsers = parser.add_subparsers(dest='command', required=True)

    # Read commands share --json
    json_parent = argparse.ArgumentParser(add_help=False)
    json_parent.add_argument('--json', action='store_true', help='Machine-readable output')

    # safer init
    p_init = subparsers.add_parser('init', help='Initialize the data root')
    p_init.add_argument('--name', help='Your name')
    p_init.add_argument('--email', help='Your email')
    p_init.add_argument('--max-wip', type=int, help='WIP limit (default 3)')
    p_init.add_argument('--time-box', type=int, help='Default time box in minutes (default 90)')
    p_init.add_argument('--force', action='store_true', help='Rewrite configuration if already initialized')
    p_init.set_defaults(func=cmd_init)

    # safer status
    p_status = subparsers.add_parser('status', parents=[json_parent], help='Show overall status')
    p_status.set_defaults(func=cmd_status)

    # safer config
    p_config = subparsers.add_parser('config', parents=[json_parent], help='Show or set configuration')
    p_config.add_argument('key', nargs='?', help='Dotted key, e.g. limits.max_wip')
    p_config.add_argument('value', nargs='?', help='New value (JSON literals are decoded)')
    p_config.set_defaults(func=cmd_config)

    # safer create
    p_create = subparsers.add_parser('create', parents=[json_parent], help='Create a delivery item')
    p_create.add_argument('title', help='Item title')
    p_create.add_argument('--description', '-d', help='Description')
    p_create.add_argument('--outcome', help='Expected outcome')
    p_create.add_argument('--stakeholder', help='Who the work is for')
    p_create.add_argument('--due', help='Due date (YYYY-MM-DD, default: 7 days)')
    p_create.add_argument('--context', help='Background context')
    p_create.add_argument('--objective', action='append', help='Objective (repeatable)')
    p_create.add_argument('--dod', action='append', help='Definition of Done entry (repeatable)')
    p_create.set_defaults(func=cmd_create)

    # safer list
    p_list = subparsers.add_parser('list', parents=[json_parent], help='List delivery items')
    p_list.add_argument('--all', '-a', action='store_true', help='Include archived items')
    p_list.set_defaults(func=cmd_list)

    # safer show
    p_show = subparsers.add_parser('show', parents=[json_parent], help='Show a delivery item')
    p_show.add_argument('id', help='Item ID (e.g. DI-001)')
    p_show.set_defaults(func=cmd_show)

    # safer dod
    p_dod = subparsers.add_parser('dod', parents=[json_parent], help='Manage Definition of Done')
    p_dod.add_argument('id', help='Item ID')
    dod_action = p_dod.add_mutually_exclusive_group()
    dod_action.add_argument('--add', metavar='TEXT', help='Add an entry')
    dod_action.add_argument('--check', metavar='DOD_ID', help='Mark an entry done')
    dod_action.add_argument('--uncheck', metavar='DOD_ID', help='Mark an entry not done')
    dod_action.add_argument('--check-complete', action='store_true',
                            help='Exit 0 only if every entry is done')
    p_dod.set_defaults(func=cmd_dod)

    # safer start / stop
    p_start = subparsers.add_parser('start', parents=[json_parent], help='Start a focus session')
    p_start.add_argument('id', help='Item ID')
    p_start.set_defaults(func=cmd_start)

    p_stop = subparsers.add_parser('stop', parents=[json_parent], help='Stop the running focus session')
    p_stop.add_argument('--notes', help='Session notes')
    p_stop.set_defaults(func=cmd_stop)

    # safer block / unblock / reopen
    p_block = subparsers.add_parser('block', parents=[json_parent], help='Mark an item blocked')
    p_block.add_argument('id', help='Item ID')
    p_block.add_argument('--reason', help='What is blocking it')
    p_block.set_defaults(func=cmd_block)

    p_unblock = subparsers.add_parser('unblock', parents=[json_parent], help='Mark a blocked item active')
    p_unblock.add_argument('id', help='Item ID')
    p_unblock.set_defaults(func=cmd_unblock)

    p_reopen = subparsers.add_parser('reopen', parents=[json_parent], help='Return a completed item to active work')
    p_reopen.add_argument('id', help='Item ID')
    p_reopen.add_argument('--reason', help='Why it needs more work')
    p_reopen.set_defaults(func=cmd_reopen)

    # safer complete
    p_complete = subparsers.add_parser('complete', parents=[json_parent], help='Complete a delivery item')
    p_complete.add_argument('id', help='Item ID')
    p_complete.add_argument('--stress', type=_stress, help='Stress level 1-5')
    p_complete.add_argument('--learnings', help='Key learnings')
    p_complete.add_argument('--incidents', type=int, help='Number of incidents')
    p_complete.add_argument('--archive', action='store_true', help='Archive after completing')
    p_complete.add_argument('--yes', '-y', action='store_true', help='Complete even with open DoD entries')
    p_complete.set_defaults(func=cmd_complete)

    # safer archive / delete
    p_archive = subparsers.add_parser('archive', parents=[json_parent], help='Archive an item, freeing its slot')
    p_archive.add_argument('id', help='Item ID')
    p_archive.set_defaults(func=cmd_archive)

    p_delete = subparsers.add_parser('delete', help='Delete an active item permanently')
    p_delete.add_argument('id', help='Item ID')
    p_delete.add_argument('--force', action='store_true', help='Confirm deletion')
    p_delete.set_defaults(func=cmd_delete)

    # safer wip
    p_wip = subparsers.add_parser('wip', parents=[json_parent], help='Show WIP slots')
    p_wip.set_defaults(func=cmd_wip)

    # safer import github
    p_import = subparsers.add_parser('import', parents=[json_parent], help='Import issues as delivery items')
    p_import.add_argument('platform', choices=['github'], help='Source platform')
    p_import.add_argument('--assigned-to-me', action='store_true', help='Only issues by or assigned to github.owner')
    p_import.add_argument('--label', help='Only issues with this label')
    p_import.add_argument('--state', choices=['open', 'closed', 'all'], default='open', help='Issue state')
    p_import.add_argument('--limit', type=int, default=10, help='Maximum issues to consider (default 10)')
    p_import.add_argument('--dry-run', action='store_true', help='Show candidates without creating items')
    p_import.set_defaults(func=cmd_import)

    # safer github
    p_github = subparsers.add_parser('github', parents=[json_parent], help='Configure GitHub integration')
    p_github.add_argument('--owner', help='Repository owner (your GitHub login)')
    p_github.add_argument('--repo', help='Repository name')
    p_github.add_argument('--token', help='Personal access token (used when gh is unavailable)')
    p_github.add_argument('--branch', help='Default branch')
    p_github.add_argument('--enable', action='store_true', help='Enable the integration')
    p_github.add_argument('--disable', action='store_true', help='Disable the integration')
    p_github.set_defaults(func=cmd_github)

    p_github_status = subparsers.add_parser('github-status', parents=[json_parent],
                                            help='Show GitHub connection status')
    p_github_status.set_defaults(func=cmd_github_status)

    # safer link
    p_link = subparsers.add_parser('link', parents=[json_parent], help='Link issues or PRs to an item')
    p_link.add_argument('id', help='Item ID')
    p_link.add_argument('--issue', type=int, help='Issue number')
    p_link.add_argument('--pr', type=int, help='Pull request number')
    p_link.set_defaults(func=cmd_link)

    # safer metrics
    p_metrics = subparsers.add_parser('metrics', parents=[json_parent], help='Show delivery metrics')
    p_metrics.set_defaults(func=cmd_metrics)

    # safer review
    p_review = subparsers.add_parser('review', parents=[json_parent], help='Write the weekly review')
    p_review.add_argument('--week', help='ISO week, e.g. 2026-W02 (default: current week)')
    p_review.add_argument('--went-well', help='What went well')
    p_review.add_argument('--didnt-go-well', help="What didn't go well")
    p_review.add_argument('--blockers', help='Blockers encountered')
    p_review.add_argument('--learnings', help='Key learnings')
    p_review.add_argument('--adjustments', help='Adjustments for next week')
    p_review.add_argument('--print', action='store_true', help='Print the review after saving')
    p_review.set_defaults(func=cmd_review)

    # safer sync
    p_sync = subparsers.add_parser('sync', help='Sync the data root with its git remote')
    sync_sub = p_sync.add_subparsers(dest='sync_cmd', required=True)
    sync_sub.add_parser('push', help='Push to the configured remote')
    sync_sub.add_parser('pull', help='Pull (rebase) from the configured remote')
    p_sync_remote = sync_sub.add_parser('remote', help='Add the configured remote')
    p_sync_remote.add_argument('url', help='Remote URL')
    p_sync.set_defaults(func=cmd_sync)

    # safer log
    p_log = subparsers.add_parser('log', parents=[json_parent], help='Show data root history')
    p_log.add_argument('--count', '-n', type=int, default=10, help='Number of commits')
    p_log.set_defaults(func=cmd_log)

    # safer purge-all
    p_purge = subparsers.add_parser('purge-all', help='Delete all items, reviews and metrics')
    p_purge.add_argument('--force', action='store_true', help='Confirm purge')
    p_purge.set_defaults(func=cmd_purge_all)

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )

    try:
        return args.func(args)
    except NotFound as e:
        print(f"ERROR: {e}")
        return 2
    except ConfigError as e:
        print(f"ERROR: {e}")
        return 2
    except (SaferError, LockTimeout) as e:
        print(f"ERROR: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
