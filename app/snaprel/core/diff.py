"""Diff engine for comparing two snap manifests.

This module computes which primed Debian packages changed between the
manifest of the previous release and the one of a fresh build, and
renders the summary appended to the release changelog.
"""

from __future__ import annotations

import fnmatch
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from snaprel.core.debian import changelog_excerpt, parse_changelog, read_changelog
from snaprel.errors import InconsistentChangesError
from snaprel.models.release import DependencyChangeRecord

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from snaprel.models.manifest import Manifest, ManifestEntry

logger = logging.getLogger(__name__)

SUMMARY_HEADER = "[ Changes in primed packages ]"

# Shown instead of a version for added or removed packages
NO_VERSION = "none"


def load_exclusions(path: Path | None) -> list[str]:
    """Read an exclusion list (unstage.txt).

    One path or glob pattern per line. Blank lines and lines starting
    with '#' are ignored.

    Args:
        path: File to read. None or a missing file yields an empty list.

    Returns:
        List of patterns in file order.
    """
    if path is None or not path.is_file():
        return []
    patterns: list[str] = []
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if line and not line.startswith("#"):
            patterns.append(line)
    return patterns


def is_excluded(file_path: str, patterns: Iterable[str]) -> bool:
    """Check whether a file matches any exclusion pattern.

    Patterns are glob-style. A pattern ending in '/' excludes the
    whole directory tree below it.

    Args:
        file_path: Absolute path of a file owned by a package.
        patterns: Exclusion patterns.

    Returns:
        True if the file is excluded, False otherwise.
    """
    for pattern in patterns:
        if pattern.endswith("/"):
            if file_path.startswith(pattern) or fnmatch.fnmatchcase(file_path, pattern + "*"):
                return True
        elif fnmatch.fnmatchcase(file_path, pattern):
            return True
    return False


def apply_exclusions(manifest: Manifest, patterns: Iterable[str]) -> dict[str, ManifestEntry]:
    """Restrict a manifest to the files actually shipped.

    Files matching an exclusion pattern are removed from each entry and
    entries left without files are dropped. The manifest itself is not
    modified.

    Args:
        manifest: Manifest to filter.
        patterns: Exclusion patterns.

    Returns:
        Mapping of package name to filtered entry.
    """
    pattern_list = list(patterns)
    filtered: dict[str, ManifestEntry] = {}
    for name, entry in manifest.packages.items():
        files = frozenset(f for f in entry.files if not is_excluded(f, pattern_list))
        if not files:
            continue
        filtered[name] = entry.model_copy(update={"files": files})
    return filtered


def diff_manifests(
    old: Manifest,
    new: Manifest,
    patterns: Iterable[str] = (),
    doc_dir: Path | None = None,
) -> list[DependencyChangeRecord]:
    """Compute the package changes between two manifests.

    Both manifests go through the same exclusion list first. A package
    is reported when it was added, removed, or its version changed.

    Args:
        old: Baseline manifest (previous release).
        new: Manifest of the new build.
        patterns: Exclusion patterns applied to both manifests.
        doc_dir: Documentation tree of the new build, used for
            changelog excerpts. None skips excerpts.

    Returns:
        List of DependencyChangeRecord sorted by package name.
    """
    pattern_list = list(patterns)
    old_entries = apply_exclusions(old, pattern_list)
    new_entries = apply_exclusions(new, pattern_list)

    changed = set(old_entries) ^ set(new_entries)
    for name in set(old_entries) & set(new_entries):
        if old_entries[name].version != new_entries[name].version:
            changed.add(name)

    records: list[DependencyChangeRecord] = []
    for name in sorted(changed):
        old_entry = old_entries.get(name)
        new_entry = new_entries.get(name)
        old_version = old_entry.version if old_entry is not None else None
        new_version = new_entry.version if new_entry is not None else None

        excerpt = ""
        if doc_dir is not None and new_version is not None:
            text = read_changelog(doc_dir, name)
            if text is not None:
                excerpt = changelog_excerpt(parse_changelog(text), old_version, new_version)

        logger.debug("Package %s changed: %s -> %s", name, old_version, new_version)
        records.append(
            DependencyChangeRecord(
                name=name,
                old_version=old_version,
                new_version=new_version,
                excerpt=excerpt,
            )
        )
    return records


def render_record(record: DependencyChangeRecord) -> str:
    """Render one changed package as a changelog block.

    Args:
        record: The change to render.

    Returns:
        "* name: old -> new" followed by the indented excerpt.
    """
    old = record.old_version or NO_VERSION
    new = record.new_version or NO_VERSION
    lines = [f"* {record.name}: {old} -> {new}"]
    for line in record.excerpt.splitlines():
        lines.append(f"  {line}" if line else "")
    return "\n".join(lines)


def render_summary(records: Iterable[DependencyChangeRecord]) -> str:
    """Render the package changes section of a changelog entry.

    Args:
        records: Package changes, in the order they should appear.

    Returns:
        Empty string when nothing changed, otherwise a header and one
        block per package, every line indented by two spaces.
    """
    blocks = [render_record(record) for record in records]
    if not blocks:
        return ""
    text = "\n".join([SUMMARY_HEADER, *blocks])
    return "\n".join(f"  {line}" if line else "" for line in text.splitlines())


def ensure_consistent(summaries: Mapping[str, str]) -> str:
    """Check that every architecture produced the same package changes.

    Staged packages are the same for all architectures, so a difference
    means the archive was caught mid-update for some of them and the
    release has to be rebuilt.

    Args:
        summaries: Rendered summary per architecture, in build order.

    Returns:
        The common summary (empty if there are no architectures).

    Raises:
        InconsistentChangesError: If two architectures disagree.
    """
    previous: str | None = None
    previous_arch = ""
    for arch, text in summaries.items():
        if previous is not None and text != previous:
            logger.error("Package changes differ between %s and %s", previous_arch, arch)
            raise InconsistentChangesError(previous, text)
        previous = text
        previous_arch = arch
    return previous or ""
