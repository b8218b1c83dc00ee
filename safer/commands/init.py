"""
safer init - Create the data root.

Lays out data/, writes config.json, README.md and the item template, then
initializes the git repository with a first commit.
"""

import json
import logging

from safer.lib.config import SaferConfig, save_config
from safer.lib.context import SaferContext
from safer.lib.errors import RecorderError
from safer.lib.items import build_item
from safer.lib.recorder import Recorder

logger = logging.getLogger(__name__)

README = """\
# SAFER data root

Delivery items tracked with a work-in-progress limit.

## Layout

- `data/active/` - active delivery items (max {max_wip})
- `data/archive/<year>/<month>/` - completed and archived items
- `data/reviews/` - weekly reviews
- `data/metrics/` - metrics snapshots
- `templates/` - item template
- `config.json` - configuration

## Quick start

```bash
safer create "Your task description"
safer list
safer show DI-001
safer dod DI-001 --add "Tests passing"
safer start DI-001
safer stop
safer complete DI-001 --archive
safer review
```
"""


def write_template(ctx: SaferContext, config: SaferConfig) -> None:
    template = build_item("DI-000", "Title", 1, config, dod=["Definition of done entry"])
    path = ctx.templates_dir / "delivery-item.json"
    path.write_text(json.dumps(template.to_dict(), indent=2) + "\n")


def cmd_init(args, ctx: SaferContext) -> int:
    """Initialize SAFER at ctx.root (idempotent)."""
    if ctx.is_initialized() and not args.force:
        print(f"SAFER already initialized at {ctx.root}")
        return 0

    config = SaferConfig()
    if args.name:
        config.user.name = args.name
    if args.email:
        config.user.email = args.email
    if args.max_wip:
        config.limits.max_wip = args.max_wip
    if args.time_box:
        config.limits.default_time_box = args.time_box

    ctx.ensure_layout()
    save_config(ctx, config)
    (ctx.root / "README.md").write_text(README.format(max_wip=config.limits.max_wip))
    write_template(ctx, config)

    recorder = Recorder(ctx, config)
    try:
        if not recorder.init_repo():
            recorder.commit("Reinitialize configuration")
    except RecorderError as e:
        # The data root is usable without history
        print(f"  [WARN] Version control not initialized: {e}")

    print(f"Initialized SAFER at {ctx.root}")
    print(f"  WIP limit: {config.limits.max_wip}")
    print(f"  Default time box: {config.limits.default_time_box} minutes")
    print()
    print("Next: safer create \"<title>\"")
    return 0
