"""Tests for the local revision inspector."""

import subprocess
from unittest.mock import MagicMock, patch

from fabric_sync.core.revision import RevisionInspector


def _completed(returncode: int = 0, stdout: str = "") -> MagicMock:
    result = MagicMock()
    result.returncode = returncode
    result.stdout = stdout
    return result


class TestRevisionInspector:
    """Tests for RevisionInspector.current_revision."""

    @patch("fabric_sync.core.revision.subprocess.run")
    def test_head_sha(self, mock_run: MagicMock) -> None:
        mock_run.return_value = _completed(stdout="deadbeef\n")

        assert RevisionInspector().current_revision("/repo") == "deadbeef"
        args, kwargs = mock_run.call_args
        assert args[0] == ["git", "rev-parse", "HEAD"]
        assert kwargs["cwd"] == "/repo"

    @patch("fabric_sync.core.revision.subprocess.run")
    def test_not_a_repository(self, mock_run: MagicMock) -> None:
        mock_run.return_value = _completed(returncode=128)

        assert RevisionInspector().current_revision("/tmp") is None

    @patch("fabric_sync.core.revision.subprocess.run")
    def test_git_missing(self, mock_run: MagicMock) -> None:
        mock_run.side_effect = FileNotFoundError("git")

        assert RevisionInspector().current_revision() is None

    @patch("fabric_sync.core.revision.subprocess.run")
    def test_git_hangs(self, mock_run: MagicMock) -> None:
        mock_run.side_effect = subprocess.TimeoutExpired(cmd="git", timeout=5)

        assert RevisionInspector(timeout=5).current_revision() is None
