"""
safer sync push|pull|remote / safer log - Explicit remote sync and history.
"""

from safer.commands.output import print_json
from safer.lib.config import SaferConfig
from safer.lib.context import SaferContext
from safer.lib.locking import root_lock
from safer.lib.recorder import Recorder


def cmd_sync(args, ctx: SaferContext, config: SaferConfig) -> int:
    recorder = Recorder(ctx, config)
    remote = config.git.remote_name
    branch = config.git.remote_branch

    if args.sync_cmd == "remote":
        recorder.add_remote(args.url)
        print(f"Added remote '{remote}': {args.url}")
        if not config.git.remote_sync:
            print("Enable sync with: safer config git.remote_sync true")
        return 0

    with root_lock(ctx):
        if args.sync_cmd == "push":
            recorder.push()
            print(f"Pushed to {remote}/{branch}")
        else:
            recorder.pull()
            print(f"Pulled from {remote}/{branch}")
    return 0


def cmd_log(args, ctx: SaferContext, config: SaferConfig) -> int:
    entries = Recorder(ctx, config).log(args.count)

    if args.json:
        print_json([vars(e) for e in entries])
        return 0

    if not entries:
        print("No history yet.")
        return 0
    for entry in entries:
        print(f"{entry.sha[:8]}  {entry.date[:16].replace('T', ' ')}  {entry.message}")
    return 0
