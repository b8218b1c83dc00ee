"""Remote synchronization primitives."""

from pathlib import Path

from safer.git.runner import run_git, GitResult, REMOTE_TIMEOUT


def list_remotes(root: Path) -> list[str]:
    """Names of configured remotes."""
    result = run_git(["remote"], root)
    if not result.success:
        return []
    return [line.strip() for line in result.stdout.splitlines() if line.strip()]


def has_remote(root: Path, name: str) -> bool:
    """Check whether a remote called ``name`` exists."""
    return name in list_remotes(root)


def add_remote(root: Path, name: str, url: str) -> GitResult:
    return run_git(["remote", "add", name, url], root)


def push(root: Path, remote: str, branch: str) -> GitResult:
    """Push branch to remote."""
    return run_git(["push", remote, branch], root, timeout=REMOTE_TIMEOUT)


def pull_rebase(root: Path, remote: str, branch: str) -> GitResult:
    """Pull branch from remote, rebasing local commits on top."""
    return run_git(["pull", "--rebase", remote, branch], root, timeout=REMOTE_TIMEOUT)
