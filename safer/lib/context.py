"""
Data-root context.

Every component takes a SaferContext instead of reading module-level paths,
so tests (and multiple roots) stay isolated.
"""

import os
from dataclasses import dataclass
from pathlib import Path

ENV_HOME = "SAFER_HOME"
DEFAULT_DIRNAME = ".safer"


@dataclass(frozen=True)
class SaferContext:
    """Paths of one SAFER data root."""
    root: Path

    @classmethod
    def from_env(cls, override: str | Path | None = None) -> "SaferContext":
        """Resolve the root from an explicit path, $SAFER_HOME, or ~/.safer."""
        if override:
            return cls(Path(override).expanduser())
        env_root = os.environ.get(ENV_HOME)
        if env_root:
            return cls(Path(env_root).expanduser())
        return cls(Path.home() / DEFAULT_DIRNAME)

    @property
    def config_file(self) -> Path:
        return self.root / "config.json"

    @property
    def data_dir(self) -> Path:
        return self.root / "data"

    @property
    def active_dir(self) -> Path:
        return self.data_dir / "active"

    @property
    def archive_dir(self) -> Path:
        return self.data_dir / "archive"

    @property
    def id_counter_file(self) -> Path:
        return self.data_dir / "id-counter.json"

    @property
    def reviews_dir(self) -> Path:
        return self.data_dir / "reviews"

    @property
    def metrics_dir(self) -> Path:
        return self.data_dir / "metrics"

    @property
    def templates_dir(self) -> Path:
        return self.root / "templates"

    @property
    def lock_file(self) -> Path:
        return self.root / ".safer.lock"

    def is_initialized(self) -> bool:
        return self.root.is_dir() and self.config_file.exists()

    def ensure_layout(self) -> None:
        """Create the data directory tree (idempotent)."""
        for d in (self.active_dir, self.archive_dir, self.reviews_dir,
                  self.metrics_dir, self.templates_dir):
            d.mkdir(parents=True, exist_ok=True)
