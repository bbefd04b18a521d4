"""Changelog synthesis from merge commits.

Each release gets one changelog entry listing the merge commits since the
previous release, grouped by author, followed by the changes in the
primed Debian packages. Entries are prepended to the changelog file so
the newest release comes first.

Commits merged from a merge-proposal workflow carry ``Author:`` and
``Merge-Proposal:`` trailer lines; for plain pull-request merges the
author comes from git and the proposal from the "Merge pull request"
line.
"""

from __future__ import annotations

import logging
from datetime import UTC, date, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from snaprel.core.config import ChangelogSettings
from snaprel.models.commit import AuthorChangeGroup, ChangeItem, CommitRecord

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)

AUTHOR_PREFIX = "Author:"
MERGE_PROPOSAL_PREFIX = "Merge-Proposal:"
# Any line starting with this is a merge line, not part of the description
MERGE_PREFIX = "Merge"


class CommitSource(Protocol):
    """Read access to commit history (see GitClient)."""

    def merge_commits(self, revision_range: str) -> list[str]: ...

    def commit_body(self, sha: str) -> str: ...

    def commit_author(self, sha: str) -> str: ...


def extract_trailer_author(body: str) -> str | None:
    """Get the value of the first ``Author:`` line.

    Returns:
        The author, or None if the body has no Author line.
    """
    for line in body.splitlines():
        if line.startswith(AUTHOR_PREFIX):
            return line[len(AUTHOR_PREFIX) :].lstrip(" ")
    return None


def extract_merge_proposal(body: str) -> str:
    """Get the first ``Merge-Proposal:`` line, or an empty string."""
    for line in body.splitlines():
        if line.startswith(MERGE_PROPOSAL_PREFIX):
            return line
    return ""


def extract_pull_request(body: str, marker: str) -> str:
    """Get the first line mentioning the merge request marker, or an empty string."""
    for line in body.splitlines():
        if marker in line:
            return line
    return ""


def extract_description(body: str) -> str:
    """Turn a merge commit message into a changelog description.

    Author and merge lines are dropped, then leading and trailing blank
    lines. From the third line on, lines are indented by four spaces so
    that continuation paragraphs sit under the bullet.

    Args:
        body: Full commit message.

    Returns:
        The description, without trailing newlines. Empty if nothing is left.
    """
    lines = [
        line
        for line in body.splitlines()
        if not line.startswith(AUTHOR_PREFIX) and not line.startswith(MERGE_PREFIX)
    ]
    while lines and not lines[0].strip():
        lines.pop(0)
    while lines and not lines[-1].strip():
        lines.pop()
    indented = [line if n < 2 else f"    {line}" for n, line in enumerate(lines)]
    return "\n".join(indented)


def parse_commit(
    sha: str,
    body: str,
    vcs_author: str,
    settings: ChangelogSettings | None = None,
) -> CommitRecord:
    """Extract the changelog fields of one merge commit.

    Args:
        sha: Commit identifier.
        body: Full commit message.
        vcs_author: Author recorded by git, as 'Name <email>'.
        settings: Placeholder and marker settings; defaults if None.

    Returns:
        The CommitRecord. Missing fields are empty strings.
    """
    settings = settings or ChangelogSettings()
    trailer_author = extract_trailer_author(body)
    if trailer_author:
        author = trailer_author
        proposal = extract_merge_proposal(body)
    else:
        author = vcs_author
        proposal = extract_pull_request(body, settings.merge_request_marker)

    description = extract_description(body) or settings.placeholder
    return CommitRecord(
        sha=sha,
        body=body,
        author=author,
        proposal=proposal,
        description=description,
        trailer_author=trailer_author or None,
    )


def collect_commits(
    git: CommitSource,
    revision_range: str,
    settings: ChangelogSettings | None = None,
) -> list[CommitRecord]:
    """Parse every merge commit of a range, oldest first."""
    records: list[CommitRecord] = []
    for sha in git.merge_commits(revision_range):
        body = git.commit_body(sha)
        trailer_author = extract_trailer_author(body)
        vcs_author = "" if trailer_author else git.commit_author(sha)
        records.append(parse_commit(sha, body, vcs_author, settings))
    logger.info("Found %d merge commit(s) in %s", len(records), revision_range)
    return records


def group_by_author(records: Iterable[CommitRecord]) -> AuthorChangeGroup:
    """Group commit descriptions by author.

    Authors keep the order of their first commit; each author's changes
    keep commit order.
    """
    groups: AuthorChangeGroup = {}
    for record in records:
        groups.setdefault(record.author, []).append(
            ChangeItem(description=record.description, proposal=record.proposal)
        )
    return groups


def render_entry(
    snap: str,
    version: str,
    groups: AuthorChangeGroup,
    package_changes: str = "",
    *,
    when: date | None = None,
) -> str:
    """Render a changelog entry.

    Layout::

        2024-05-02 network-manager 1.46.0-2

          [ Jane Doe <jane@example.com> ]
          * Fix the thing
            Merge-Proposal: https://...

        <package changes>

    Args:
        snap: Snap name.
        version: Released version.
        groups: Changes per author.
        package_changes: Rendered package changes, appended verbatim.
        when: Release date; today (UTC) if None.

    Returns:
        The entry text.
    """
    day = when or datetime.now(UTC).date()
    text = f"{day.isoformat()} {snap} {version}\n"
    for author, items in groups.items():
        changes = "".join(f"\n  * {item.description}\n    {item.proposal}" for item in items)
        text += f"\n  [ {author} ]{changes}\n"
    return f"{text}\n{package_changes}"


def synthesize(
    git: CommitSource,
    revision_range: str,
    snap: str,
    version: str,
    package_changes: str = "",
    *,
    when: date | None = None,
    settings: ChangelogSettings | None = None,
) -> str:
    """Build the changelog entry for a release.

    Args:
        git: Commit history.
        revision_range: Commits of the release (e.g. "1.0-1..HEAD").
        snap: Snap name.
        version: Released version.
        package_changes: Rendered package changes.
        when: Release date; today (UTC) if None.
        settings: Placeholder and marker settings.

    Returns:
        The entry text.
    """
    records = collect_commits(git, revision_range, settings)
    return render_entry(snap, version, group_by_author(records), package_changes, when=when)


def prepend_entry(path: Path, entry: str) -> None:
    """Add an entry at the top of a changelog file.

    The file is created if needed. Afterwards it contains the entry, a
    newline, then the previous content.
    """
    previous = path.read_text(encoding="utf-8") if path.exists() else ""
    path.write_text(f"{entry}\n{previous}", encoding="utf-8")
    logger.info("Added changelog entry to %s", path)
