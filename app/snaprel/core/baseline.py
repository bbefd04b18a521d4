"""Baseline manifests for package change reports.

The package changes of a release are computed against the manifest of
the previously published snap. That manifest is kept per architecture
in the repository; when it is missing it is fetched from the store,
falling back to older tracks and another architecture for snaps that
were never published on the current one.
"""

from __future__ import annotations

import logging
import subprocess
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from snaprel.core.manifest import load_manifest, save_manifest
from snaprel.core.paths import manifest_cache_path
from snaprel.errors import BaselineNotFoundError, StoreError

if TYPE_CHECKING:
    from snaprel.core.config import BaselineSettings
    from snaprel.models.manifest import Manifest

logger = logging.getLogger(__name__)

# Location of the manifest inside a snap
SNAP_MANIFEST_PATH = "snap/manifest.yaml"

# Store risk levels
RISK_LEVELS: tuple[str, ...] = ("stable", "candidate", "beta", "edge")


class SnapDownloader(Protocol):
    """Anything that can fetch a published snap (see StoreClient)."""

    def download(self, snap: str, channel: str, architecture: str, dest: Path) -> Path: ...


class FileExtractor(Protocol):
    """Anything that can pull one file out of a snap (see Squashfs)."""

    def read_file(self, image: Path, path: str, dest_dir: Path) -> Path: ...


@dataclass(frozen=True, slots=True)
class DownloadCandidate:
    """One place a baseline snap may be published.

    Attributes:
        channel: Store channel.
        architecture: Architecture to download.
    """

    channel: str
    architecture: str


def fallback_track(snap: str, track: str, policy: BaselineSettings) -> str:
    """Choose the track to look at when a track has no release yet.

    Numeric tracks above the threshold fall back a fixed number of
    tracks (22 -> 20). Anything else falls back to the legacy track
    configured for the snap, or the default legacy track.

    Args:
        snap: Snap name.
        track: Track that had no release.
        policy: Fallback settings.

    Returns:
        The fallback track.
    """
    if track.isdigit() and int(track) > policy.track_threshold:
        return str(int(track) - policy.track_step)
    return policy.legacy_tracks.get(snap, policy.default_legacy_track)


def candidate_downloads(
    snap: str,
    channel: str,
    architecture: str,
    policy: BaselineSettings,
) -> list[DownloadCandidate]:
    """List where to look for the baseline snap, in order.

    1. The requested channel and architecture
    2. The fallback track with the same risk, same architecture
    3. The requested channel with the fallback architecture

    A bare risk such as "beta" stands for "latest/beta", so it falls
    back from the latest track. A bare track such as "24" falls back to
    a bare track.

    Args:
        snap: Snap name.
        channel: Channel the previous release was published to.
        architecture: Architecture the baseline is for.
        policy: Fallback settings.

    Returns:
        Candidates to try, first success wins.
    """
    track, sep, risk = channel.partition("/")
    if not sep and track in RISK_LEVELS:
        track, sep, risk = "latest", "/", track
    fallback = fallback_track(snap, track, policy)
    fallback_channel = f"{fallback}{sep}{risk}"
    return [
        DownloadCandidate(channel, architecture),
        DownloadCandidate(fallback_channel, architecture),
        DownloadCandidate(channel, policy.fallback_architecture),
    ]


class ManifestBaselineResolver:
    """Finds the baseline manifest for an architecture.

    Manifests are cached in ``<manifests_dir>/manifest-<arch>.yaml``. A
    cached manifest is always used as is; the store is only contacted
    when there is none.

    Example:
        >>> resolver = ManifestBaselineResolver(Path("manifests"), settings,
        ...                                     StoreClient(), Squashfs())
        >>> baseline = resolver.resolve("network-manager", "22/beta", "arm64")
    """

    def __init__(
        self,
        manifests_dir: Path,
        policy: BaselineSettings,
        downloader: SnapDownloader,
        extractor: FileExtractor,
    ) -> None:
        self.manifests_dir = manifests_dir
        self.policy = policy
        self.downloader = downloader
        self.extractor = extractor

    def cache_path(self, architecture: str) -> Path:
        """Path of the cached manifest for an architecture."""
        return manifest_cache_path(self.manifests_dir, architecture)

    def is_cached(self, architecture: str) -> bool:
        """Check if a manifest is already stored for an architecture."""
        return self.cache_path(architecture).is_file()

    def resolve(self, snap: str, channel: str, architecture: str) -> Manifest:
        """Get the baseline manifest, fetching it if needed.

        Args:
            snap: Snap name.
            channel: Channel the previous release was published to.
            architecture: Architecture the baseline is for.

        Returns:
            The baseline manifest.

        Raises:
            BaselineNotFoundError: If no candidate could be downloaded.
            ManifestError: If a manifest exists but cannot be loaded.
            SquashfsError: If the downloaded snap cannot be read.
        """
        path = self.cache_path(architecture)
        if path.is_file():
            logger.info("Using stored baseline manifest %s", path)
            return load_manifest(path)

        with tempfile.TemporaryDirectory(prefix="snaprel-baseline-") as tmp:
            extracted = self._fetch(snap, channel, architecture, Path(tmp))
            manifest = load_manifest(extracted)

        save_manifest(manifest, path)
        logger.info("Stored baseline manifest %s", path)
        return manifest

    def _fetch(self, snap: str, channel: str, architecture: str, workdir: Path) -> Path:
        """Download the first available candidate and extract its manifest."""
        failures: list[str] = []
        for attempt, candidate in enumerate(
            candidate_downloads(snap, channel, architecture, self.policy), start=1
        ):
            download_dir = workdir / f"attempt-{attempt}"
            try:
                image = self.downloader.download(
                    snap, candidate.channel, candidate.architecture, download_dir
                )
            except (StoreError, OSError, subprocess.TimeoutExpired) as e:
                logger.warning(
                    "No %s in %s for %s: %s", snap, candidate.channel, candidate.architecture, e
                )
                failures.append(f"{candidate.channel} ({candidate.architecture})")
                continue
            if candidate.architecture != architecture or candidate.channel != channel:
                logger.warning(
                    "Using %s from %s (%s) as baseline for %s on %s",
                    snap,
                    candidate.channel,
                    candidate.architecture,
                    architecture,
                    channel,
                )
            return self.extractor.read_file(image, SNAP_MANIFEST_PATH, download_dir)

        msg = f"Could not download {snap} to get a baseline manifest, tried: {', '.join(failures)}"
        raise BaselineNotFoundError(msg)
