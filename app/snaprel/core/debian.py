"""Debian package metadata helpers.

Provides dpkg version ordering and parsing of the Debian changelogs
shipped under usr/share/doc/<package>/ in a snap.
"""

import gzip
import logging
import re
import string
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

# Changelog files looked up in a package documentation directory, in order
CHANGELOG_NAMES: tuple[str, ...] = (
    "changelog.Debian.gz",
    "changelog.Debian",
    "changelog.gz",
    "changelog",
)

_HEADER_RE = re.compile(r"^(?P<package>[A-Za-z0-9][A-Za-z0-9+.\-]*) \((?P<version>[^ ()]+)\)")
_TRAILER_RE = re.compile(r"^ -- ")


@dataclass(frozen=True, slots=True)
class ChangelogBlock:
    """One version entry of a Debian changelog.

    Attributes:
        package: Source package name from the header line.
        version: Version from the header line.
        text: The entry, header through trailer line, without trailing blanks.
    """

    package: str
    version: str
    text: str


def _split_version(version: str) -> tuple[int, str, str]:
    """Split a Debian version into epoch, upstream version and revision."""
    epoch = 0
    rest = version.strip()
    if ":" in rest:
        epoch_str, rest = rest.split(":", 1)
        try:
            epoch = int(epoch_str)
        except ValueError:
            logger.debug("Ignoring invalid epoch in version %r", version)
    upstream, _, revision = rest.rpartition("-")
    if not upstream:
        return epoch, revision, ""
    return epoch, upstream, revision


def _order(c: str) -> int:
    if c in string.digits:
        return 0
    if c.isascii() and c.isalpha():
        return ord(c)
    if c == "~":
        return -1
    return ord(c) + 256


def _compare_part(a: str, b: str) -> int:
    """Compare upstream versions or revisions the way dpkg does."""
    i = j = 0
    while i < len(a) or j < len(b):
        while (i < len(a) and a[i] not in string.digits) or (
            j < len(b) and b[j] not in string.digits
        ):
            ac = _order(a[i]) if i < len(a) else 0
            bc = _order(b[j]) if j < len(b) else 0
            if ac != bc:
                return ac - bc
            i += 1
            j += 1
        while i < len(a) and a[i] == "0":
            i += 1
        while j < len(b) and b[j] == "0":
            j += 1
        first_diff = 0
        while i < len(a) and a[i] in string.digits and j < len(b) and b[j] in string.digits:
            if not first_diff:
                first_diff = ord(a[i]) - ord(b[j])
            i += 1
            j += 1
        if i < len(a) and a[i] in string.digits:
            return 1
        if j < len(b) and b[j] in string.digits:
            return -1
        if first_diff:
            return first_diff
    return 0


def compare_versions(a: str, b: str) -> int:
    """Compare two Debian package versions.

    Args:
        a: First version.
        b: Second version.

    Returns:
        A negative number if a sorts before b, zero if they are equal,
        a positive number otherwise.
    """
    epoch_a, upstream_a, revision_a = _split_version(a)
    epoch_b, upstream_b, revision_b = _split_version(b)
    if epoch_a != epoch_b:
        return epoch_a - epoch_b
    result = _compare_part(upstream_a, upstream_b)
    if result:
        return result
    return _compare_part(revision_a, revision_b)


def parse_changelog(text: str) -> list[ChangelogBlock]:
    """Split a Debian changelog into version entries, newest first.

    Lines before the first header are ignored. An entry without a
    trailer line runs until the next header.

    Args:
        text: Changelog content.

    Returns:
        List of ChangelogBlock in file order.
    """
    blocks: list[ChangelogBlock] = []
    current: list[str] = []
    header: re.Match[str] | None = None

    def flush() -> None:
        if header is not None:
            body = "\n".join(current).rstrip()
            blocks.append(ChangelogBlock(header["package"], header["version"], body))

    for line in text.splitlines():
        match = _HEADER_RE.match(line)
        if match is not None:
            flush()
            header = match
            current = [line]
            continue
        if header is None:
            continue
        current.append(line)
        if _TRAILER_RE.match(line):
            flush()
            header = None
            current = []
    flush()
    return blocks


def read_changelog(doc_dir: Path, package: str) -> str | None:
    """Read the Debian changelog of a package from a documentation tree.

    Args:
        doc_dir: Directory holding one subdirectory per package
            (usr/share/doc in an unpacked snap).
        package: Binary package name; an architecture qualifier such
            as ":amd64" is ignored.

    Returns:
        The changelog text, or None if the package ships none.
    """
    name = package.split(":", 1)[0]
    package_dir = doc_dir / name
    for candidate in CHANGELOG_NAMES:
        path = package_dir / candidate
        if not path.is_file():
            continue
        try:
            if path.suffix == ".gz":
                with gzip.open(path, "rt", encoding="utf-8", errors="replace") as f:
                    return f.read()
            return path.read_text(encoding="utf-8", errors="replace")
        except (OSError, EOFError) as e:
            logger.warning("Could not read changelog %s: %s", path, e)
    logger.debug("No changelog found for %s in %s", name, doc_dir)
    return None


def changelog_excerpt(
    blocks: list[ChangelogBlock],
    old_version: str | None,
    new_version: str | None,
) -> str:
    """Select the changelog entries that describe a version change.

    For a new package this is the top entry. Otherwise it is every entry
    newer than the old version up to and including the new one.

    Args:
        blocks: Parsed changelog, newest first.
        old_version: Version before the change, None for a new package.
        new_version: Version after the change, None for a removed package.

    Returns:
        The selected entries separated by blank lines, possibly empty.
    """
    if new_version is None or not blocks:
        return ""
    if old_version is None:
        return blocks[0].text

    selected = [
        block.text
        for block in blocks
        if compare_versions(block.version, old_version) > 0
        and compare_versions(block.version, new_version) <= 0
    ]
    return "\n\n".join(selected)
