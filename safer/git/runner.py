"""Git command runner for the SAFER data root."""

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

LOCAL_TIMEOUT = 30
REMOTE_TIMEOUT = 60


@dataclass
class GitResult:
    """Outcome of one git invocation."""
    returncode: int
    stdout: str
    stderr: str
    timed_out: bool = False

    @property
    def success(self) -> bool:
        return self.returncode == 0 and not self.timed_out

    @property
    def error(self) -> str:
        """Best available failure text (stderr, then stdout)."""
        return (self.stderr or self.stdout).strip()


def run_git(
    args: list[str],
    cwd: Path,
    timeout: int = LOCAL_TIMEOUT,
) -> GitResult:
    """
    Run ``git -C <cwd> <args>`` and capture its output.

    Never raises for git failures: a missing git binary or a timeout come back
    as an unsuccessful GitResult so callers decide what is fatal.
    """
    cmd = ["git", "-C", str(cwd)] + args
    logger.debug(f"git {' '.join(args)} (in {cwd})")
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        return GitResult(
            returncode=-1,
            stdout="",
            stderr=f"git {args[0]} timed out after {timeout}s",
            timed_out=True,
        )
    except FileNotFoundError:
        return GitResult(returncode=127, stdout="", stderr="git executable not found")

    return GitResult(
        returncode=result.returncode,
        stdout=result.stdout,
        stderr=result.stderr,
    )
