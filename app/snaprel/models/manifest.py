"""Manifest models for snap dependency tracking.

A manifest records the Debian packages primed into a snap together with
the files each of them installed. It is embedded in every built snap as
snap/manifest.yaml and a copy per architecture is kept under version
control as the baseline for the next release.
"""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field


class ManifestEntry(BaseModel):
    """A single package recorded in a manifest.

    Attributes:
        version: Package version string, as reported by dpkg.
        files: Absolute paths of the files the package installed in the snap.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    version: Annotated[str, Field(min_length=1, description="Package version")]
    files: Annotated[
        frozenset[str],
        Field(default_factory=frozenset, description="Files owned by the package"),
    ]


class Manifest(BaseModel):
    """Set of packages primed into a snap, keyed by package name.

    Unknown top-level keys are ignored so the file can carry other
    snapcraft metadata next to the package list.
    """

    model_config = ConfigDict(extra="ignore")

    packages: Annotated[
        dict[str, ManifestEntry],
        Field(default_factory=dict, description="Packages keyed by name"),
    ]

    @property
    def package_count(self) -> int:
        """Number of packages in the manifest."""
        return len(self.packages)
