"""Repository creation, staging and commits."""

from pathlib import Path

from safer.git.runner import run_git, GitResult


def init_repository(root: Path) -> GitResult:
    """Create an empty repository at root."""
    return run_git(["init"], root)


def stage_all(root: Path) -> GitResult:
    """Stage every change, including deletions of archived or purged items."""
    return run_git(["add", "-A"], root)


def commit(root: Path, message: str) -> GitResult:
    """Commit whatever is staged."""
    return run_git(["commit", "-m", message], root)
