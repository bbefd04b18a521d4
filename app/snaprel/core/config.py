"""Release configuration and settings.

This module provides the configuration model and I/O functions for the
release flow. Configuration is looked up in this order:

1. An explicit path given on the command line
2. snaprel.toml at the repository root
3. ~/.config/snaprel/config.toml
4. Built-in defaults

Some values can also be overridden from the environment, which is how
CI pipelines drive a release (see EnvironmentOverrides).
"""

import logging
import os
import string
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from snaprel.core.paths import get_repo_config_path, get_user_config_path
from snaprel.errors import ConfigError, ConfigParseError

logger = logging.getLogger(__name__)

# Placeholders understood by the build command template
BUILD_PLACEHOLDERS: tuple[str, ...] = (
    "snap",
    "repo",
    "branch",
    "series",
    "output",
    "architectures",
    "snapcraft_channel",
)


class GitSettings(BaseModel):
    """Identity and remote used for release commits.

    Attributes:
        user_name: Committer name set before committing.
        user_email: Committer email set before committing.
        remote: Remote the branches and tags are pushed to.
    """

    model_config = ConfigDict(extra="forbid")

    user_name: Annotated[str, Field(description="Committer name")] = "System Enablement CI Bot"
    user_email: Annotated[
        str, Field(description="Committer email")
    ] = "ce-system-enablement@lists.canonical.com"
    remote: Annotated[str, Field(description="Remote to push to")] = "origin"


class ChangelogSettings(BaseModel):
    """Settings for changelog synthesis.

    Attributes:
        file: Changelog file name, relative to the repository root.
        placeholder: Description used when a merge commit has none.
        merge_request_marker: Text identifying the merge line of
            commits that carry no Author trailer.
    """

    model_config = ConfigDict(extra="forbid")

    file: Annotated[str, Field(description="Changelog file name")] = "ChangeLog"
    placeholder: Annotated[
        str, Field(description="Placeholder for empty descriptions")
    ] = "See more information in merge proposal"
    merge_request_marker: Annotated[
        str, Field(description="Merge request marker for commits without trailers")
    ] = "Merge pull request"


class BaselineSettings(BaseModel):
    """Where and how previously published manifests are found.

    Attributes:
        manifests_dir: Directory holding manifest-<arch>.yaml files.
        risk: Risk level of the channel the baseline is fetched from.
        track_threshold: Numeric tracks above this fall back to an older track.
        track_step: How many track numbers to go back on fallback.
        legacy_tracks: Per-snap track used when there is no numeric fallback.
        default_legacy_track: Track used for snaps not in legacy_tracks.
        fallback_architecture: Architecture tried last.
    """

    model_config = ConfigDict(extra="forbid")

    manifests_dir: Annotated[str, Field(description="Stored manifests directory")] = "manifests"
    risk: Annotated[str, Field(description="Channel risk level")] = "beta"
    track_threshold: Annotated[int, Field(ge=0, description="Numeric track threshold")] = 20
    track_step: Annotated[int, Field(ge=1, description="Tracks to go back on fallback")] = 2
    legacy_tracks: Annotated[
        dict[str, str],
        Field(description="Fallback track per snap name"),
    ] = {"network-manager": "1.10", "modem-manager": "1.10"}
    default_legacy_track: Annotated[str, Field(description="Default fallback track")] = "latest"
    fallback_architecture: Annotated[str, Field(description="Last-resort architecture")] = "amd64"


class BuildSettings(BaseModel):
    """How snaps are built.

    Attributes:
        command: Command template; see BUILD_PLACEHOLDERS for the
            substitutions applied to each argument.
    """

    model_config = ConfigDict(extra="forbid")

    command: Annotated[
        list[str],
        Field(min_length=1, description="Build command template"),
    ] = [
        "build-and-download-snaps",
        "{snap}",
        "{repo}",
        "{branch}",
        "{series}",
        "{output}",
        "{architectures}",
        "{snapcraft_channel}",
    ]

    @model_validator(mode="after")
    def validate_placeholders(self) -> "BuildSettings":
        """Validate that the template only uses known placeholders."""
        formatter = string.Formatter()
        for arg in self.command:
            try:
                names = {name for _, name, _, _ in formatter.parse(arg) if name is not None}
            except ValueError as e:
                msg = f"Invalid build command argument {arg!r}: {e}"
                raise ValueError(msg) from e
            unknown = names - set(BUILD_PLACEHOLDERS)
            if unknown:
                msg = f"Unknown build command placeholder(s) in {arg!r}: {sorted(unknown)}"
                raise ValueError(msg)
        return self


class AcceptanceSettings(BaseModel):
    """How the acceptance test suite is run.

    Attributes:
        command: Test command, run from the repository root.
        architecture: Architecture of the snap copied next to the tests.
    """

    model_config = ConfigDict(extra="forbid")

    command: Annotated[
        list[str],
        Field(min_length=1, description="Acceptance test command"),
    ] = ["spread", "google:"]
    architecture: Annotated[str, Field(description="Architecture under test")] = "amd64"


class ReleaseConfig(BaseModel):
    """Complete release configuration."""

    model_config = ConfigDict(extra="forbid")

    git: GitSettings = Field(default_factory=GitSettings)
    changelog: ChangelogSettings = Field(default_factory=ChangelogSettings)
    baseline: BaselineSettings = Field(default_factory=BaselineSettings)
    build: BuildSettings = Field(default_factory=BuildSettings)
    tests: AcceptanceSettings = Field(default_factory=AcceptanceSettings)


@dataclass(frozen=True, slots=True)
class EnvironmentOverrides:
    """Values a CI pipeline passes through the environment.

    Attributes:
        architectures: Architectures to build (BUILD_ARCHITECTURES).
        snapcraft_channel: Channel of snapcraft used to build (SNAPCRAFT_CHANNEL).
        next_version: Forced next development version (NEXT_VERSION).
        run_id: CI run identifier used to name the build branch (GITHUB_RUN_ID).
        repository: owner/name of the hosted repository (GITHUB_REPOSITORY).
    """

    architectures: tuple[str, ...] = ()
    snapcraft_channel: str | None = None
    next_version: str | None = None
    run_id: str | None = None
    repository: str | None = None

    @classmethod
    def from_environ(cls, environ: dict[str, str] | None = None) -> "EnvironmentOverrides":
        """Read overrides from the environment.

        BUILD_ARCHITECTURES may be separated by spaces or commas. Empty
        values count as unset.
        """
        env = os.environ if environ is None else environ
        archs = env.get("BUILD_ARCHITECTURES", "").replace(",", " ").split()
        return cls(
            architectures=tuple(archs),
            snapcraft_channel=env.get("SNAPCRAFT_CHANNEL") or None,
            next_version=env.get("NEXT_VERSION") or None,
            run_id=env.get("GITHUB_RUN_ID") or None,
            repository=env.get("GITHUB_REPOSITORY") or None,
        )

    @property
    def repository_url(self) -> str | None:
        """URL of the hosted repository, if known."""
        if self.repository is None:
            return None
        return f"https://github.com/{self.repository}"


def find_config_path(repo: Path, explicit: Path | None = None) -> Path | None:
    """Find the configuration file that applies to a repository.

    Args:
        repo: Repository root.
        explicit: Path given on the command line, if any.

    Returns:
        The first existing configuration file, or None for defaults.

    Raises:
        ConfigError: If an explicit path was given but does not exist.
    """
    if explicit is not None:
        if not explicit.is_file():
            raise ConfigError(f"Config file not found: {explicit}")
        return explicit
    for candidate in (get_repo_config_path(repo), get_user_config_path()):
        if candidate.is_file():
            return candidate
    return None


def load_config(path: Path | None) -> ReleaseConfig:
    """Load release configuration from a TOML file.

    Args:
        path: Path to the config file. If None, returns the defaults.

    Returns:
        Validated ReleaseConfig object.

    Raises:
        ConfigParseError: If the TOML syntax is invalid.
        ConfigError: If the file cannot be read or the content doesn't match the schema.
    """
    if path is None:
        logger.debug("No config file found, using defaults")
        return ReleaseConfig()

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(f"Invalid TOML syntax in {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config: {e}") from e

    try:
        config = ReleaseConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config content in {path}: {e}") from e

    logger.debug("Loaded config from %s", path)
    return config


def save_config(config: ReleaseConfig, path: Path) -> Path:
    """Save release configuration to a TOML file.

    The file is written atomically by first writing to a temporary file
    and then using os.replace() for atomic rename.

    Args:
        config: The ReleaseConfig object to save.
        path: Path to save the config.

    Returns:
        Path where the config was saved.

    Raises:
        ConfigError: If the file cannot be written.
    """
    from tempfile import NamedTemporaryFile

    path.parent.mkdir(parents=True, exist_ok=True)
    data = config.model_dump(mode="json")

    tmp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="wb",
            dir=path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(data, f)
        os.replace(str(tmp_path), str(path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise ConfigError(f"Failed to write config: {e}") from e

    return path


def config_to_toml(config: ReleaseConfig) -> str:
    """Render a configuration as TOML text."""
    return tomli_w.dumps(config.model_dump(mode="json"))
