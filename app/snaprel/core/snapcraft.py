"""snapcraft.yaml access and release version arithmetic.

Development happens at ``X-N-dev``. Releasing turns it into ``X-N`` and
development continues at ``X-(N+1)-dev``.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path

import yaml

from snaprel.errors import SnapcraftError, UsageError

logger = logging.getLogger(__name__)

DEV_SUFFIX = "-dev"

_VERSION_LINE_RE = re.compile(r"^version: .*$", re.MULTILINE)
_CORE_BASE_RE = re.compile(r"^core(\d*)$")

# Release branches that map to the "latest" store track
_LATEST_BRANCHES: frozenset[str] = frozenset({"main", "master", "latest"})


@dataclass(frozen=True, slots=True)
class SnapcraftProject:
    """The parts of snapcraft.yaml the release flow needs.

    Attributes:
        path: Location of snapcraft.yaml.
        name: Snap name.
        version: Version string, as written.
        base: Base snap (e.g. "core22"), None if not set.
    """

    path: Path
    name: str
    version: str
    base: str | None = None


def load_project(path: Path) -> SnapcraftProject:
    """Read a snapcraft.yaml file.

    Args:
        path: Path to snapcraft.yaml.

    Returns:
        SnapcraftProject with name, version and base.

    Raises:
        SnapcraftError: If the file is unreadable or lacks name or version.
    """
    try:
        data = yaml.load(path.read_text(encoding="utf-8"), Loader=yaml.BaseLoader)  # noqa: S506
    except OSError as e:
        raise SnapcraftError(f"Failed to read {path}: {e}") from e
    except yaml.YAMLError as e:
        raise SnapcraftError(f"Invalid YAML syntax in {path}: {e}") from e

    if not isinstance(data, dict):
        raise SnapcraftError(f"{path} is not a mapping")

    name = data.get("name")
    version = data.get("version")
    if not name or not version:
        raise SnapcraftError(f"{path} must define name and version")

    base = data.get("base")
    return SnapcraftProject(
        path=path,
        name=str(name),
        version=str(version),
        base=str(base) if base else None,
    )


def set_version(path: Path, version: str) -> None:
    """Rewrite the version line of snapcraft.yaml in place.

    Only the top-level ``version:`` line changes, so comments and
    formatting are preserved.

    Raises:
        SnapcraftError: If the file has no top-level version line.
    """
    text = path.read_text(encoding="utf-8")
    new_text, count = _VERSION_LINE_RE.subn(f"version: {version}", text)
    if count == 0:
        raise SnapcraftError(f"No version line found in {path}")
    path.write_text(new_text, encoding="utf-8")
    logger.info("Set version to %s in %s", version, path)


def release_version(current: str) -> str:
    """Version to release from the development version."""
    return current.removesuffix(DEV_SUFFIX)


def next_version(version: str, forced: str | None = None) -> str:
    """Version development continues at after a release.

    The number after the last '-' is incremented and appended to the
    part before the first '-': 1.2.3-4 becomes 1.2.3-5.

    Args:
        version: Released version.
        forced: Overrides the computed version when set.

    Returns:
        Next version, without the -dev suffix.

    Raises:
        UsageError: If the version does not end in a number and nothing is forced.
    """
    if forced:
        return forced
    counter = version.rsplit("-", 1)[-1]
    if not counter.isdigit():
        msg = f"Cannot compute next version from {version!r}; set NEXT_VERSION"
        raise UsageError(msg)
    prefix = version.split("-", 1)[0]
    return f"{prefix}-{int(counter) + 1}"


def series_from_base(base: str | None) -> str:
    """Ubuntu series of a snap base (core -> 16, core22 -> 22).

    Raises:
        SnapcraftError: If the base is missing or not a core base.
    """
    match = _CORE_BASE_RE.match(base or "")
    if match is None:
        raise SnapcraftError(f"Cannot derive the Ubuntu series from base {base!r}")
    return match.group(1) or "16"


def track_from_branch(branch: str) -> str:
    """Store track a release branch publishes to.

    main, master and latest map to "latest"; other branches map to their
    last path component (release/22 -> 22).
    """
    name = branch.rsplit("/", 1)[-1]
    if name in _LATEST_BRANCHES:
        return "latest"
    return name
