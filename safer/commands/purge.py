"""
safer purge-all - Delete all items, reviews and metrics; keep configuration.
"""

from safer.lib.config import SaferConfig
from safer.lib.context import SaferContext
from safer.lib.items import purge_all
from safer.lib.locking import root_lock
from safer.lib.recorder import Recorder, commit_quietly


def cmd_purge_all(args, ctx: SaferContext, config: SaferConfig) -> int:
    if not args.force:
        print("ERROR: purge-all deletes every delivery item, review and metric.")
        print("  Re-run with --force to confirm")
        return 2

    with root_lock(ctx):
        cleared = purge_all(ctx)
        commit_quietly(Recorder(ctx, config), "Purged all data")

    print("Purged: " + (", ".join(cleared) if cleared else "nothing to remove"))
    print("Configuration kept.")
    return 0
