"""Path management for snaprel.

Working-copy paths follow the layout the release flow relies on; the
user configuration follows the XDG Base Directory Specification.

XDG defaults:
- Config: ~/.config/snaprel/
"""

import os
from pathlib import Path

# Application identifier for directory naming
APP_NAME = "snaprel"

# Name of the per-repository configuration file
REPO_CONFIG_NAME = "snaprel.toml"

# Candidate snapcraft.yaml locations, relative to the repository root
SNAPCRAFT_YAML_CANDIDATES: tuple[str, ...] = ("snapcraft.yaml", "snap/snapcraft.yaml")

# Repository-level fallback list of files not shipped in the snap
REPO_UNSTAGE_NAME = "unstage.txt"


def _get_xdg_dir(env_var: str, default_subdir: str) -> Path:
    """Get XDG directory respecting environment variable override.

    Args:
        env_var: XDG environment variable name (e.g., "XDG_CONFIG_HOME").
        default_subdir: Default subdirectory under home (e.g., ".config").

    Returns:
        Path to the application-specific directory.
    """
    base = os.environ.get(env_var)
    if base:
        return Path(base) / APP_NAME
    return Path.home() / default_subdir / APP_NAME


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Returns:
        Path to ~/.config/snaprel/ (or XDG_CONFIG_HOME/snaprel/).
    """
    return _get_xdg_dir("XDG_CONFIG_HOME", ".config")


def get_user_config_path() -> Path:
    """Get the user-wide configuration file path.

    Returns:
        Path to ~/.config/snaprel/config.toml.
    """
    return get_config_dir() / "config.toml"


def get_repo_config_path(repo: Path) -> Path:
    """Get the per-repository configuration file path."""
    return repo / REPO_CONFIG_NAME


def find_snapcraft_yaml(repo: Path) -> Path | None:
    """Locate snapcraft.yaml in a working copy.

    Args:
        repo: Repository root.

    Returns:
        Path to the first existing candidate, or None if there is none.
    """
    for candidate in SNAPCRAFT_YAML_CANDIDATES:
        path = repo / candidate
        if path.is_file():
            return path
    return None


def manifest_cache_path(manifests_dir: Path, architecture: str) -> Path:
    """Get the stored manifest path for an architecture.

    Returns:
        Path to <manifests_dir>/manifest-<arch>.yaml.
    """
    return manifests_dir / f"manifest-{architecture}.yaml"


def artifact_architecture(artifact: Path) -> str:
    """Extract the architecture from a snap file name.

    Snap files are named ``<name>_<version>_<arch>.snap``.

    Args:
        artifact: Path to the snap file.

    Returns:
        The architecture part of the file name.
    """
    return artifact.name.rsplit("_", 1)[-1].removesuffix(".snap")
