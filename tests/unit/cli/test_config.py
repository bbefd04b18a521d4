"""Unit tests for config CLI commands.

Tests for the snaprel config init and snaprel config show commands.
"""

import tomllib
from pathlib import Path

from snaprel.cli.main import app
from snaprel.core.config import ReleaseConfig, load_config
from typer.testing import CliRunner

runner = CliRunner()


class TestConfigInit:
    """Tests for snaprel config init."""

    def test_writes_defaults(self, tmp_path: Path) -> None:
        """The default configuration is written to the repository."""
        result = runner.invoke(app, ["config", "init", "--repo", str(tmp_path)])

        assert result.exit_code == 0
        assert load_config(tmp_path / "snaprel.toml") == ReleaseConfig()

    def test_refuses_to_overwrite(self, tmp_path: Path) -> None:
        """An existing file is kept without --force."""
        (tmp_path / "snaprel.toml").write_text("[git]\n")

        result = runner.invoke(app, ["config", "init", "--repo", str(tmp_path)])

        assert result.exit_code == 1
        assert (tmp_path / "snaprel.toml").read_text() == "[git]\n"

    def test_force_overwrites(self, tmp_path: Path) -> None:
        """--force replaces an existing file."""
        target = tmp_path / "custom.toml"
        target.write_text("[git]\n")

        result = runner.invoke(app, ["config", "init", "--path", str(target), "--force"])

        assert result.exit_code == 0
        assert "baseline" in tomllib.loads(target.read_text())


class TestConfigShow:
    """Tests for snaprel config show."""

    def test_shows_defaults(self, tmp_path: Path) -> None:
        """Without a file the defaults are shown."""
        result = runner.invoke(app, ["config", "show", "--repo", str(tmp_path)])

        assert result.exit_code == 0
        assert "No configuration file found" in result.stdout
        assert "[git]" in result.stdout
        assert 'user_name = "System Enablement CI Bot"' in result.stdout

    def test_shows_repo_config(self, tmp_path: Path) -> None:
        """The repository file is shown merged with defaults."""
        (tmp_path / "snaprel.toml").write_text("[baseline]\ntrack_threshold = 30\n")

        result = runner.invoke(app, ["config", "show", "--repo", str(tmp_path)])

        assert result.exit_code == 0
        assert "track_threshold = 30" in result.stdout
        assert "track_step = 2" in result.stdout

    def test_invalid_config(self, tmp_path: Path) -> None:
        """A broken file is reported."""
        (tmp_path / "snaprel.toml").write_text("[baseline\n")

        result = runner.invoke(app, ["config", "show", "--repo", str(tmp_path)])

        assert result.exit_code == 1
        assert "Invalid TOML" in result.output
