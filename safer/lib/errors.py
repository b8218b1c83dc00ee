"""
Exception taxonomy for SAFER.

Repository and Recorder raise these on hard failures. Commands catch
SaferError, print the message and exit non-zero.
"""


class SaferError(Exception):
    """Base class for every expected SAFER failure."""
    pass


class NotFound(SaferError):
    """Unknown delivery item (or DoD entry) id."""

    def __init__(self, item_id: str, what: str = "Item"):
        self.item_id = item_id
        super().__init__(f"{what} {item_id} not found")


class StorageError(SaferError):
    """Reading or writing a record on disk failed."""
    pass


class WipLimitExceeded(SaferError):
    """No WIP headroom left for a new active item."""

    def __init__(self, current: int, maximum: int):
        self.current = current
        self.maximum = maximum
        super().__init__(
            f"WIP limit reached ({current}/{maximum}). "
            "Complete or archive existing items first."
        )


class ConfigError(SaferError):
    """Configuration file is unreadable, invalid, or a key is unknown."""
    pass


class RecorderError(SaferError):
    """A version-control step failed."""
    pass


class SyncDisabled(RecorderError):
    """Remote push/pull attempted while git.remote_sync is off."""

    def __init__(self):
        super().__init__(
            "Remote sync is disabled. Enable it with: safer config git.remote_sync true"
        )


class RemoteNotConfigured(RecorderError):
    """The configured remote does not exist in the data root repository."""

    def __init__(self, remote: str):
        self.remote = remote
        super().__init__(
            f"Remote '{remote}' not configured. Add it with: safer sync remote <url>"
        )


class ImporterNotConfigured(SaferError):
    """Integration disabled or missing credentials."""
    pass


class GitHubError(SaferError):
    """The GitHub transport (gh CLI or REST API) failed."""
    pass


class SessionError(SaferError):
    """Focus session started twice, or stopped when none is running."""
    pass


class InvalidTransition(SaferError):
    """Lifecycle transition not allowed from the item's current status."""

    def __init__(self, item_id: str, status: str, trigger: str):
        self.item_id = item_id
        self.status = status
        self.trigger = trigger
        super().__init__(f"Cannot {trigger} {item_id} while it is {status}")
