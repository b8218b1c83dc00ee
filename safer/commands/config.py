"""
safer config - Show or change configuration.

  safer config                     # print everything
  safer config limits.max_wip      # print one value
  safer config limits.max_wip 4    # set (JSON literals are decoded)
"""

import copy

from safer.commands.output import print_json
from safer.lib.config import get_config_value, load_config, set_config_value
from safer.lib.context import SaferContext
from safer.lib.locking import root_lock
from safer.lib.recorder import Recorder, commit_quietly

SECRET_KEYS = {("github", "token")}


def _masked(data: dict) -> dict:
    data = copy.deepcopy(data)
    for section, key in SECRET_KEYS:
        if data.get(section, {}).get(key):
            data[section][key] = "********"
    return data


def cmd_config(args, ctx: SaferContext) -> int:
    if not args.key:
        print_json(_masked(load_config(ctx).to_dict()))
        return 0

    if args.value is None:
        value = get_config_value(ctx, args.key)
        if tuple(args.key.split(".")) in SECRET_KEYS and value:
            value = "********"
        if args.json or isinstance(value, (dict, list)):
            print_json(value)
        else:
            print(value)
        return 0

    with root_lock(ctx):
        value = set_config_value(ctx, args.key, args.value)
        commit_quietly(Recorder(ctx, load_config(ctx)), f"Config: set {args.key}")

    display = "********" if tuple(args.key.split(".")) in SECRET_KEYS else value
    print(f"Set {args.key} = {display!r}")
    return 0
