"""
Version-control recorder for the data root.

Each mutating command ends with recorder.commit(). A failed commit raises
RecorderError; callers log it and keep the data write.
"""

import logging

from safer import git
from safer.git import LogEntry

from .config import SaferConfig
from .context import SaferContext
from .errors import RecorderError, RemoteNotConfigured, SyncDisabled

logger = logging.getLogger(__name__)

GITIGNORE = """\
# SAFER data root
.safer.lock
*.tmp
.DS_Store
"""

INITIAL_COMMIT_MESSAGE = "Initialize SAFER"


class Recorder:
    """Commits, history and explicit remote sync for one data root."""

    def __init__(self, ctx: SaferContext, config: SaferConfig):
        self.ctx = ctx
        self.config = config

    @property
    def root(self):
        return self.ctx.root

    def is_repo(self) -> bool:
        return git.is_repository(self.root)

    def init_repo(self) -> bool:
        """Initialize the repository with a .gitignore and first commit.

        Returns False when the root already is a repository.
        """
        if self.is_repo():
            return False

        self.root.mkdir(parents=True, exist_ok=True)
        result = git.init_repository(self.root)
        if not result.success:
            raise RecorderError(f"git init failed: {result.error}")

        gitignore = self.root / ".gitignore"
        if not gitignore.exists():
            gitignore.write_text(GITIGNORE)

        self._commit_all(f"{self.config.git.commit_prefix} {INITIAL_COMMIT_MESSAGE}")
        logger.info(f"Initialized repository at {self.root}")
        return True

    def _commit_all(self, message: str) -> None:
        result = git.stage_all(self.root)
        if not result.success:
            raise RecorderError(f"git add failed: {result.error}")
        result = git.commit(self.root, message)
        if not result.success:
            raise RecorderError(f"git commit failed: {result.error}")

    def commit(self, message: str) -> bool:
        """Stage everything and commit with the configured prefix.

        No-op (returns False) when auto-commit is off, the root is not a
        repository, or nothing changed.
        """
        if not self.config.git.auto_commit:
            logger.debug(f"Auto-commit disabled, skipping: {message}")
            return False
        if not self.is_repo():
            logger.debug(f"{self.root} is not a repository, skipping commit")
            return False
        if not git.has_uncommitted_changes(self.root):
            return False

        full_message = f"{self.config.git.commit_prefix} {message}"
        self._commit_all(full_message)
        logger.info(f"Committed: {full_message}")
        return True

    def _check_remote(self) -> str:
        if not self.config.git.remote_sync:
            raise SyncDisabled()
        remote = self.config.git.remote_name
        if not git.has_remote(self.root, remote):
            raise RemoteNotConfigured(remote)
        return remote

    def push(self) -> None:
        remote = self._check_remote()
        branch = self.config.git.remote_branch
        result = git.push(self.root, remote, branch)
        if not result.success:
            raise RecorderError(f"Push to {remote}/{branch} failed: {result.error}")
        logger.info(f"Pushed to {remote}/{branch}")

    def pull(self) -> None:
        remote = self._check_remote()
        branch = self.config.git.remote_branch
        result = git.pull_rebase(self.root, remote, branch)
        if not result.success:
            raise RecorderError(f"Pull from {remote}/{branch} failed: {result.error}")
        logger.info(f"Pulled from {remote}/{branch}")

    def add_remote(self, url: str) -> None:
        remote = self.config.git.remote_name
        if git.has_remote(self.root, remote):
            raise RecorderError(f"Remote '{remote}' already exists")
        result = git.add_remote(self.root, remote, url)
        if not result.success:
            raise RecorderError(f"Adding remote '{remote}' failed: {result.error}")

    def log(self, count: int = 10) -> list[LogEntry]:
        return git.get_log(self.root, count)

    def current_branch(self) -> str | None:
        return git.get_current_branch(self.root)

    def changed_files(self) -> list[str]:
        return git.get_changed_files(self.root)


def commit_quietly(recorder: Recorder, message: str) -> bool:
    """Commit, logging instead of raising on failure."""
    try:
        return recorder.commit(message)
    except RecorderError as e:
        logger.warning(f"Data saved but not committed: {e}")
        return False
