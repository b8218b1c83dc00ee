"""Working-tree status queries."""

from pathlib import Path

from safer.git.runner import run_git


def is_repository(root: Path) -> bool:
    """True when ``root`` is the top level of a git working tree.

    A data root nested inside some other repository does not count.
    """
    if not root.exists():
        return False
    result = run_git(["rev-parse", "--show-toplevel"], root)
    if not result.success:
        return False
    return Path(result.stdout.strip()).resolve() == root.resolve()


def has_uncommitted_changes(root: Path) -> bool:
    """Check for staged, unstaged or untracked changes."""
    result = run_git(["status", "--porcelain"], root)
    return bool(result.stdout.strip())


def get_changed_files(root: Path) -> list[str]:
    """List changed paths (staged + unstaged + untracked).

    Uses -z output so item files with unusual names survive parsing.
    Returns an empty list when git fails (e.g. not a repository).
    """
    result = run_git(["status", "--porcelain", "-z"], root)
    if not result.success or not result.stdout:
        return []

    files = []
    entries = result.stdout.split('\0')
    i = 0
    while i < len(entries):
        entry = entries[i]
        if len(entry) < 3:
            i += 1
            continue

        code = entry[:2]
        # Renames and copies are followed by their source path; keep the destination
        if code[0] in ("R", "C"):
            files.append(entry[3:])
            i += 2
        else:
            files.append(entry[3:])
            i += 1

    return files
