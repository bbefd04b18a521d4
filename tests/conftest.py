"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

import logging
from collections.abc import Callable, Iterator

import pytest
from snaprel.models.manifest import Manifest, ManifestEntry

PackageSpec = tuple[str, list[str]]


@pytest.fixture(autouse=True)
def _reset_root_logging() -> Iterator[None]:
    """Undo logging.basicConfig() calls made by CLI invocations."""
    root = logging.getLogger()
    level = root.level
    yield
    for handler in root.handlers[:]:
        if type(handler) is logging.StreamHandler:
            root.removeHandler(handler)
    root.setLevel(level)


@pytest.fixture(autouse=True)
def _isolated_user_config(
    tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Keep the user's ~/.config/snaprel out of the tests."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path_factory.mktemp("xdg")))


@pytest.fixture
def make_manifest() -> Callable[[dict[str, PackageSpec]], Manifest]:
    """Build a Manifest from {name: (version, files)}."""

    def _make(packages: dict[str, PackageSpec]) -> Manifest:
        return Manifest(
            packages={
                name: ManifestEntry(version=version, files=frozenset(files))
                for name, (version, files) in packages.items()
            }
        )

    return _make


@pytest.fixture
def debian_changelog() -> str:
    """Debian changelog of pkg-a with three releases, newest first."""
    return """\
pkg-a (1.2-1) jammy; urgency=medium

  * Third change.

 -- Jane Doe <jane@example.com>  Tue, 02 Apr 2024 10:00:00 +0000

pkg-a (1.1-1) jammy; urgency=medium

  * Second change.
  * Another second change.

 -- Jane Doe <jane@example.com>  Mon, 01 Apr 2024 10:00:00 +0000

pkg-a (1.0-1) jammy; urgency=medium

  * Initial release.

 -- Jane Doe <jane@example.com>  Sun, 31 Mar 2024 10:00:00 +0000
"""
