"""Unit tests for AcceptanceRunner."""

from pathlib import Path
from unittest.mock import patch

import pytest
from snaprel.errors import AcceptanceTestError
from snaprel.tools.acceptance import AcceptanceRunner


class TestAcceptanceRunner:
    """Tests for AcceptanceRunner class."""

    def test_run_passes(self, tmp_path: Path) -> None:
        """The suite runs from the working copy."""
        runner = AcceptanceRunner(["spread", "google:"], tmp_path)
        with patch("snaprel.tools.acceptance.run_streaming", return_value=0) as mock_run:
            runner.run()

        mock_run.assert_called_once_with(["spread", "google:"], cwd=tmp_path)

    def test_run_fails(self, tmp_path: Path) -> None:
        """A failing suite raises AcceptanceTestError."""
        runner = AcceptanceRunner(["spread", "google:"], tmp_path)
        with patch("snaprel.tools.acceptance.run_streaming", return_value=1):
            with pytest.raises(AcceptanceTestError, match="status 1"):
                runner.run()

    def test_runner_missing(self, tmp_path: Path) -> None:
        """A missing test runner raises AcceptanceTestError."""
        runner = AcceptanceRunner(["spread"], tmp_path)
        with patch("snaprel.tools.acceptance.run_streaming", side_effect=FileNotFoundError("x")):
            with pytest.raises(AcceptanceTestError, match="spread"):
                runner.run()
