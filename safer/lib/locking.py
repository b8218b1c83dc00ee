"""
Lock management for SAFER.

A single flock on <root>/.safer.lock serializes mutating commands, so two
invocations on one host cannot allocate the same id or WIP slot.
"""

import atexit
import fcntl
import os
import signal
import sys
import threading
import time
from contextlib import contextmanager
from pathlib import Path

from .context import SaferContext


class LockTimeout(Exception):
    """Lock acquisition timed out."""
    pass


DEFAULT_TIMEOUT = 30
POLL_INTERVAL = 0.2


@contextmanager
def _acquire_lock(lock_file: Path, timeout: float, lock_name: str):
    """
    Internal helper to acquire a file lock.

    Args:
        lock_file: Path to the lock file
        timeout: Seconds to wait for lock
        lock_name: Human-readable name for error messages
    """
    lock_file.parent.mkdir(parents=True, exist_ok=True)

    fd = open(lock_file, 'w')
    start = time.monotonic()

    while True:
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
            break
        except BlockingIOError:
            if time.monotonic() - start > timeout:
                fd.close()
                raise LockTimeout(f"Could not acquire {lock_name} within {timeout}s")
            time.sleep(POLL_INTERVAL)

    def cleanup():
        try:
            fcntl.flock(fd, fcntl.LOCK_UN)
            fd.close()
        except (OSError, ValueError):
            pass

    atexit.register(cleanup)

    # Signal handlers can only be swapped from the main thread
    in_main = threading.current_thread() is threading.main_thread()
    if in_main:
        original_sigterm = signal.signal(signal.SIGTERM, lambda *_: sys.exit(1))
        original_sigint = signal.signal(signal.SIGINT, lambda *_: sys.exit(1))

    try:
        fd.write(f"{os.getpid()}\n")
        fd.flush()
        yield
    finally:
        atexit.unregister(cleanup)
        if in_main:
            signal.signal(signal.SIGTERM, original_sigterm)
            signal.signal(signal.SIGINT, original_sigint)
        cleanup()


@contextmanager
def root_lock(ctx: SaferContext, timeout: float = DEFAULT_TIMEOUT):
    """
    Acquire the data-root lock, yield, release on exit.

    The lock file itself is never deleted; removing it would let two
    processes lock different inodes at the same path.
    """
    with _acquire_lock(ctx.lock_file, timeout, f"lock on {ctx.root}"):
        yield
