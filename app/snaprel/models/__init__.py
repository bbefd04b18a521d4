"""Data models for snaprel.

This module exports the core data structures used throughout the application.
"""

from snaprel.models.commit import AuthorChangeGroup, ChangeItem, CommitRecord
from snaprel.models.manifest import Manifest, ManifestEntry
from snaprel.models.release import DependencyChangeRecord, ReleaseState

__all__ = [
    "AuthorChangeGroup",
    "ChangeItem",
    "CommitRecord",
    "DependencyChangeRecord",
    "Manifest",
    "ManifestEntry",
    "ReleaseState",
]
