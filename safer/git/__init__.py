"""Git operations for the SAFER data root.

Thin subprocess wrappers; the Recorder (safer.lib.recorder) decides which
failures matter.

Return type conventions:
- Functions returning GitResult: caller must check .success.
  Examples: init_repository(), stage_all(), commit(), push()
- Functions returning bool: True when the condition holds.
  Examples: is_repository(), has_uncommitted_changes(), has_remote()
- Functions returning parsed values: empty on failure.
  Examples: get_changed_files() -> [], get_log() -> []
"""

from safer.git.runner import GitResult, run_git
from safer.git.status import (
    is_repository,
    has_uncommitted_changes,
    get_changed_files,
)
from safer.git.commit import (
    init_repository,
    stage_all,
    commit,
)
from safer.git.remote import (
    list_remotes,
    has_remote,
    add_remote,
    push,
    pull_rebase,
)
from safer.git.branch import (
    LogEntry,
    get_current_branch,
    get_log,
)

__all__ = [
    "GitResult",
    "run_git",
    # status
    "is_repository",
    "has_uncommitted_changes",
    "get_changed_files",
    # commit
    "init_repository",
    "stage_all",
    "commit",
    # remote
    "list_remotes",
    "has_remote",
    "add_remote",
    "push",
    "pull_rebase",
    # history
    "LogEntry",
    "get_current_branch",
    "get_log",
]
