"""Branch and history queries."""

from dataclasses import dataclass
from pathlib import Path

from safer.git.runner import run_git

# Unit separator keeps subjects containing tabs or pipes intact
_FIELD_SEP = "\x1f"


@dataclass
class LogEntry:
    """One commit in the data root history."""
    sha: str
    date: str
    author: str
    message: str


def get_current_branch(root: Path) -> str | None:
    """Current branch name, or None on detached HEAD or failure."""
    result = run_git(["branch", "--show-current"], root)
    if result.success:
        return result.stdout.strip() or None
    return None


def get_log(root: Path, count: int = 10) -> list[LogEntry]:
    """
    Most recent commits, newest first.

    Returns an empty list when the repository has no commits yet.
    """
    fmt = _FIELD_SEP.join(["%H", "%aI", "%an", "%s"])
    result = run_git(["log", f"--max-count={count}", f"--pretty=format:{fmt}"], root)
    if not result.success:
        return []

    entries = []
    for line in result.stdout.splitlines():
        parts = line.split(_FIELD_SEP)
        if len(parts) != 4:
            continue
        entries.append(LogEntry(sha=parts[0], date=parts[1], author=parts[2], message=parts[3]))
    return entries
