"""Tests for safer.git module."""

import subprocess
from pathlib import Path
from unittest.mock import patch, MagicMock

from safer.git.runner import run_git, GitResult, REMOTE_TIMEOUT
from safer.git.status import (
    is_repository,
    has_uncommitted_changes,
    get_changed_files,
)
from safer.git.remote import has_remote, push, pull_rebase
from safer.git.branch import get_current_branch, get_log


class TestGitResult:
    """Test GitResult dataclass."""

    def test_success_when_returncode_zero(self):
        result = GitResult(returncode=0, stdout="ok", stderr="")
        assert result.success is True

    def test_failure_when_returncode_nonzero(self):
        result = GitResult(returncode=1, stdout="", stderr="error")
        assert result.success is False

    def test_failure_when_timed_out(self):
        result = GitResult(returncode=0, stdout="ok", stderr="", timed_out=True)
        assert result.success is False

    def test_error_prefers_stderr(self):
        result = GitResult(returncode=1, stdout="out", stderr=" fatal: nope \n")
        assert result.error == "fatal: nope"

    def test_error_falls_back_to_stdout(self):
        result = GitResult(returncode=1, stdout="nothing to commit", stderr="")
        assert result.error == "nothing to commit"


class TestRunGit:
    """Test run_git function."""

    @patch("safer.git.runner.subprocess.run")
    def test_returns_result_on_success(self, mock_run):
        mock_run.return_value = MagicMock(returncode=0, stdout="output", stderr="")
        result = run_git(["status"], Path("/tmp"))
        assert result.success
        assert result.stdout == "output"
        mock_run.assert_called_once()

    @patch("safer.git.runner.subprocess.run")
    def test_handles_timeout(self, mock_run):
        mock_run.side_effect = subprocess.TimeoutExpired(cmd="git", timeout=30)
        result = run_git(["status"], Path("/tmp"))
        assert not result.success
        assert result.timed_out
        assert "timed out" in result.stderr

    @patch("safer.git.runner.subprocess.run")
    def test_handles_missing_git(self, mock_run):
        mock_run.side_effect = FileNotFoundError()
        result = run_git(["status"], Path("/tmp"))
        assert not result.success
        assert result.returncode == 127

    @patch("safer.git.runner.subprocess.run")
    def test_passes_cwd_with_C_flag(self, mock_run):
        mock_run.return_value = MagicMock(returncode=0, stdout="", stderr="")
        run_git(["status", "--porcelain"], Path("/my/repo"))
        call_args = mock_run.call_args[0][0]
        assert call_args == ["git", "-C", "/my/repo", "status", "--porcelain"]


class TestIsRepository:
    """Test is_repository function."""

    def test_false_for_missing_directory(self, tmp_path):
        assert is_repository(tmp_path / "missing") is False

    @patch("safer.git.status.run_git")
    def test_true_at_top_level(self, mock_run, tmp_path):
        mock_run.return_value = GitResult(returncode=0, stdout=f"{tmp_path}\n", stderr="")
        assert is_repository(tmp_path) is True

    @patch("safer.git.status.run_git")
    def test_false_when_nested_in_other_repo(self, mock_run, tmp_path):
        nested = tmp_path / "home" / ".safer"
        nested.mkdir(parents=True)
        mock_run.return_value = GitResult(returncode=0, stdout=f"{tmp_path}\n", stderr="")
        assert is_repository(nested) is False

    @patch("safer.git.status.run_git")
    def test_false_when_git_fails(self, mock_run, tmp_path):
        mock_run.return_value = GitResult(returncode=128, stdout="", stderr="not a git repository")
        assert is_repository(tmp_path) is False


class TestHasUncommittedChanges:
    """Test has_uncommitted_changes function."""

    @patch("safer.git.status.run_git")
    def test_returns_false_when_clean(self, mock_run):
        mock_run.return_value = GitResult(returncode=0, stdout="", stderr="")
        assert has_uncommitted_changes(Path("/tmp")) is False

    @patch("safer.git.status.run_git")
    def test_returns_true_when_dirty(self, mock_run):
        mock_run.return_value = GitResult(
            returncode=0, stdout=" M data/active/DI-001.json\n", stderr=""
        )
        assert has_uncommitted_changes(Path("/tmp")) is True


class TestGetChangedFiles:
    """Test get_changed_files function with -z format."""

    @patch("safer.git.status.run_git")
    def test_empty_when_clean(self, mock_run):
        mock_run.return_value = GitResult(returncode=0, stdout="", stderr="")
        assert get_changed_files(Path("/tmp")) == []

    @patch("safer.git.status.run_git")
    def test_parses_multiple_files(self, mock_run):
        mock_run.return_value = GitResult(
            returncode=0, stdout=" M a.json\0?? b.json\0", stderr=""
        )
        assert get_changed_files(Path("/tmp")) == ["a.json", "b.json"]

    @patch("safer.git.status.run_git")
    def test_handles_rename(self, mock_run):
        # Rename format: "R  new\0old\0"
        mock_run.return_value = GitResult(
            returncode=0,
            stdout="R  data/archive/2026/01/DI-001.json\0data/active/DI-001.json\0 M config.json\0",
            stderr="",
        )
        assert get_changed_files(Path("/tmp")) == [
            "data/archive/2026/01/DI-001.json",
            "config.json",
        ]


class TestRemote:
    """Test remote helpers."""

    @patch("safer.git.remote.run_git")
    def test_has_remote(self, mock_run):
        mock_run.return_value = GitResult(returncode=0, stdout="origin\nbackup\n", stderr="")
        assert has_remote(Path("/tmp"), "origin") is True
        assert has_remote(Path("/tmp"), "upstream") is False

    @patch("safer.git.remote.run_git")
    def test_push_uses_remote_timeout(self, mock_run):
        mock_run.return_value = GitResult(returncode=0, stdout="", stderr="")
        push(Path("/tmp"), "origin", "main")
        mock_run.assert_called_once_with(["push", "origin", "main"], Path("/tmp"), timeout=REMOTE_TIMEOUT)

    @patch("safer.git.remote.run_git")
    def test_pull_rebases(self, mock_run):
        mock_run.return_value = GitResult(returncode=0, stdout="", stderr="")
        pull_rebase(Path("/tmp"), "origin", "main")
        args = mock_run.call_args[0][0]
        assert args == ["pull", "--rebase", "origin", "main"]


class TestHistory:
    """Test branch and log queries."""

    @patch("safer.git.branch.run_git")
    def test_current_branch(self, mock_run):
        mock_run.return_value = GitResult(returncode=0, stdout="main\n", stderr="")
        assert get_current_branch(Path("/tmp")) == "main"

    @patch("safer.git.branch.run_git")
    def test_detached_head_is_none(self, mock_run):
        mock_run.return_value = GitResult(returncode=0, stdout="\n", stderr="")
        assert get_current_branch(Path("/tmp")) is None

    @patch("safer.git.branch.run_git")
    def test_parses_log(self, mock_run):
        mock_run.return_value = GitResult(
            returncode=0,
            stdout=(
                "abc123\x1f2026-01-05T10:00:00+00:00\x1fAda\x1f[SAFER] Created DI-002: B\n"
                "def456\x1f2026-01-04T09:00:00+00:00\x1fAda\x1f[SAFER] Created DI-001: A | x"
            ),
            stderr="",
        )
        entries = get_log(Path("/tmp"), 2)
        assert [e.sha for e in entries] == ["abc123", "def456"]
        assert entries[1].message == "[SAFER] Created DI-001: A | x"

    @patch("safer.git.branch.run_git")
    def test_log_empty_without_commits(self, mock_run):
        mock_run.return_value = GitResult(returncode=128, stdout="", stderr="no commits yet")
        assert get_log(Path("/tmp")) == []
