"""Commit models for changelog synthesis."""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class CommitRecord:
    """Fields extracted from one merge commit.

    Attributes:
        sha: Commit identifier.
        body: Full commit message.
        author: Author the change is credited to. This is the Author
            trailer when present, the VCS identity otherwise.
        proposal: Line referencing the merge proposal or pull request.
        description: Human readable description of the change.
        trailer_author: Value of the Author trailer, if any.
    """

    sha: str
    body: str
    author: str
    proposal: str
    description: str
    trailer_author: str | None = None


@dataclass(frozen=True, slots=True)
class ChangeItem:
    """A single changelog line under an author.

    Attributes:
        description: Description of the change.
        proposal: Merge proposal reference, may be empty.
    """

    description: str
    proposal: str


# Author -> changes, authors in first-appearance order, changes oldest first
AuthorChangeGroup = dict[str, list[ChangeItem]]
