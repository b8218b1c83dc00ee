"""Tests for the data-root lock."""

import pytest

from safer.lib.locking import LockTimeout, root_lock


class TestRootLock:

    def test_creates_lock_file(self, ctx):
        with root_lock(ctx):
            assert ctx.lock_file.exists()
        assert ctx.lock_file.exists()

    def test_reacquire_after_release(self, ctx):
        with root_lock(ctx):
            pass
        with root_lock(ctx, timeout=0.5):
            pass

    def test_second_holder_times_out(self, ctx):
        # flock is per open file, so a second open in-process contends
        with root_lock(ctx):
            with pytest.raises(LockTimeout, match="Could not acquire lock"):
                with root_lock(ctx, timeout=0.3):
                    pass

    def test_released_on_error(self, ctx):
        with pytest.raises(RuntimeError):
            with root_lock(ctx):
                raise RuntimeError("boom")
        with root_lock(ctx, timeout=0.5):
            pass
