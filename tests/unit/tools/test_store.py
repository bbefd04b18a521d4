"""Unit tests for StoreClient."""

import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest
from snaprel.errors import StoreError
from snaprel.tools.store import StoreClient
from snaprel.utils.shell import CommandResult


class TestStoreClient:
    """Tests for StoreClient class."""

    @pytest.fixture
    def store(self) -> StoreClient:
        """Create StoreClient instance."""
        return StoreClient()

    def test_is_available(self, store: StoreClient) -> None:
        """is_available checks for the snap command."""
        with patch("snaprel.tools.store.command_exists", return_value=True) as mock_exists:
            assert store.is_available() is True
            mock_exists.assert_called_once_with("snap")

    def test_download(self, store: StoreClient, tmp_path: Path) -> None:
        """snap download runs in the destination for the architecture."""

        def fake_download(args: list[str], **kwargs: object) -> CommandResult:
            Path(str(kwargs["cwd"]), "network-manager_1012.snap").write_text("snap")
            Path(str(kwargs["cwd"]), "network-manager_1012.assert").write_text("assert")
            return CommandResult("", "", 0)

        dest = tmp_path / "download"
        with patch("snaprel.tools.store.run_command", side_effect=fake_download) as mock_run:
            image = store.download("network-manager", "22/beta", "arm64", dest)

        assert image == dest / "network-manager_1012.snap"
        args = mock_run.call_args.args[0]
        assert args == ["snap", "download", "--channel=22/beta", "network-manager"]
        assert mock_run.call_args.kwargs["env"] == {"UBUNTU_STORE_ARCH": "arm64"}
        assert mock_run.call_args.kwargs["cwd"] == dest

    def test_download_failure(self, store: StoreClient, tmp_path: Path) -> None:
        """A failing download raises StoreError."""
        result = CommandResult("", 'error: snap "nm" not found', 1)
        with patch("snaprel.tools.store.run_command", return_value=result):
            with pytest.raises(StoreError, match="not found"):
                store.download("nm", "22/beta", "arm64", tmp_path)

    def test_download_without_file(self, store: StoreClient, tmp_path: Path) -> None:
        """A download that produces no snap raises StoreError."""
        with patch("snaprel.tools.store.run_command", return_value=CommandResult("", "", 0)):
            with pytest.raises(StoreError, match="no snap file"):
                store.download("nm", "22/beta", "arm64", tmp_path)

    def test_download_timeout(self, store: StoreClient, tmp_path: Path) -> None:
        """A download that times out raises StoreError."""
        timeout = subprocess.TimeoutExpired(["snap", "download"], 600.0)
        with patch("snaprel.tools.store.run_command", side_effect=timeout):
            with pytest.raises(StoreError, match="timed out"):
                store.download("nm", "22/beta", "arm64", tmp_path)

    def test_download_without_snap_command(self, store: StoreClient, tmp_path: Path) -> None:
        """A missing snap binary raises StoreError."""
        missing = FileNotFoundError(2, "No such file or directory", "snap")
        with patch("snaprel.tools.store.run_command", side_effect=missing):
            with pytest.raises(StoreError, match="could not run"):
                store.download("nm", "22/beta", "arm64", tmp_path)
