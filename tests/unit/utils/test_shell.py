"""Unit tests for shell execution utilities."""

from unittest.mock import MagicMock, patch

import pytest
from snaprel.utils.shell import CommandResult, command_exists, run_command, run_streaming


class TestCommandResult:
    """Tests for CommandResult class."""

    def test_success(self) -> None:
        """Exit code 0 is a success."""
        assert CommandResult("out", "", 0).success is True

    def test_failure(self) -> None:
        """Non-zero exit codes are failures."""
        assert CommandResult("", "err", 128).success is False


class TestRunCommand:
    """Tests for run_command function."""

    @patch("snaprel.utils.shell.subprocess.run")
    def test_captures_output(self, mock_run: MagicMock) -> None:
        """stdout, stderr and exit code are returned."""
        mock_run.return_value = MagicMock(stdout="out\n", stderr="warn\n", returncode=3)

        result = run_command(["git", "status"])

        assert result == CommandResult("out\n", "warn\n", 3)
        kwargs = mock_run.call_args.kwargs
        assert kwargs["capture_output"] is True
        assert kwargs["text"] is True
        assert kwargs["timeout"] == 60.0

    @patch("snaprel.utils.shell.subprocess.run")
    def test_passes_cwd(self, mock_run: MagicMock) -> None:
        """The working directory is passed through."""
        mock_run.return_value = MagicMock(stdout="", stderr="", returncode=0)

        run_command(["ls"], cwd="/tmp")

        assert mock_run.call_args.kwargs["cwd"] == "/tmp"

    @patch("snaprel.utils.shell.subprocess.run")
    def test_merges_env(self, mock_run: MagicMock) -> None:
        """Custom variables are merged with the current environment."""
        mock_run.return_value = MagicMock(stdout="", stderr="", returncode=0)

        run_command(["snap", "download", "x"], env={"UBUNTU_STORE_ARCH": "arm64"})

        call_env = mock_run.call_args.kwargs["env"]
        assert call_env["UBUNTU_STORE_ARCH"] == "arm64"
        assert "PATH" in call_env

    @patch("snaprel.utils.shell.subprocess.run")
    def test_no_env_inherits(self, mock_run: MagicMock) -> None:
        """Without custom variables the environment is inherited."""
        mock_run.return_value = MagicMock(stdout="", stderr="", returncode=0)

        run_command(["ls"])

        assert mock_run.call_args.kwargs["env"] is None

    def test_raises_file_not_found(self) -> None:
        """Missing commands raise FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            run_command(["nonexistent_command_xyz_12345"])


class TestRunStreaming:
    """Tests for run_streaming function."""

    @patch("snaprel.utils.shell.subprocess.run")
    def test_returns_exit_code(self, mock_run: MagicMock) -> None:
        """The subprocess exit code is returned."""
        mock_run.return_value = MagicMock(returncode=2)

        assert run_streaming(["spread", "google:"]) == 2

    @patch("snaprel.utils.shell.subprocess.run")
    def test_does_not_capture_output(self, mock_run: MagicMock) -> None:
        """Output goes straight to the terminal."""
        mock_run.return_value = MagicMock(returncode=0)

        run_streaming(["spread"], cwd="/repo")

        kwargs = mock_run.call_args.kwargs
        assert "capture_output" not in kwargs
        assert "stdout" not in kwargs
        assert "timeout" not in kwargs
        assert kwargs["cwd"] == "/repo"


class TestCommandExists:
    """Tests for command_exists function."""

    @patch("snaprel.utils.shell.shutil.which", return_value="/usr/bin/git")
    def test_found(self, mock_which: MagicMock) -> None:
        """Commands on PATH exist."""
        assert command_exists("git") is True
        mock_which.assert_called_once_with("git")

    @patch("snaprel.utils.shell.shutil.which", return_value=None)
    def test_not_found(self, mock_which: MagicMock) -> None:
        """Commands missing from PATH do not exist."""
        assert command_exists("unsquashfs") is False
