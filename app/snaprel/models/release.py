"""Models describing a release run and its package changes."""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class DependencyChangeRecord:
    """A primed package that changed between two manifests.

    Attributes:
        name: Package name.
        old_version: Version in the baseline, None if the package is new.
        new_version: Version in the new build, None if it was removed.
        excerpt: Changelog entries covering the change, may be empty.
    """

    name: str
    old_version: str | None
    new_version: str | None
    excerpt: str = ""


@dataclass(frozen=True, slots=True)
class ReleaseState:
    """Everything decided about a release before anything is changed.

    Attributes:
        snap: Snap name from snapcraft.yaml.
        current_version: Version found in snapcraft.yaml (usually ends in -dev).
        version: Version being released.
        next_version: Version development continues at (without -dev).
        release_branch: Branch the release is cut from.
        build_branch: Temporary branch the snaps are built from.
        previous_version: Latest tag, None on the first release.
        series: Ubuntu series of the snap base (e.g. "22").
        track: Store track derived from the release branch.
        channel: Store channel the previous release was published to.
    """

    snap: str
    current_version: str
    version: str
    next_version: str
    release_branch: str
    build_branch: str
    previous_version: str | None
    series: str
    track: str
    channel: str

    @property
    def tag(self) -> str:
        """Tag created for this release."""
        return f"{self.version}_{self.release_branch}"

    @property
    def commit_range(self) -> str:
        """Git range holding the commits of this release."""
        if self.previous_version:
            return f"{self.previous_version}..HEAD"
        return "HEAD"
