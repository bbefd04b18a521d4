"""Unit tests for baseline manifest resolution."""

import logging
import subprocess
from collections.abc import Callable
from pathlib import Path

import pytest
from snaprel.core.baseline import (
    SNAP_MANIFEST_PATH,
    DownloadCandidate,
    ManifestBaselineResolver,
    candidate_downloads,
    fallback_track,
)
from snaprel.core.config import BaselineSettings
from snaprel.core.manifest import load_manifest, save_manifest
from snaprel.errors import BaselineNotFoundError, StoreError
from snaprel.models.manifest import Manifest


class FakeStore:
    """Store with snaps published in a fixed set of (channel, arch)."""

    def __init__(self, published: set[tuple[str, str]]) -> None:
        self.published = published
        self.calls: list[tuple[str, str]] = []

    def download(self, snap: str, channel: str, architecture: str, dest: Path) -> Path:
        self.calls.append((channel, architecture))
        if (channel, architecture) not in self.published:
            raise StoreError(f"{snap} not in {channel} for {architecture}")
        dest.mkdir(parents=True, exist_ok=True)
        image = dest / f"{snap}_1.0_{architecture}.snap"
        image.write_text(channel)
        return image


class TimingOutStore(FakeStore):
    """Store whose first download times out."""

    def download(self, snap: str, channel: str, architecture: str, dest: Path) -> Path:
        if not self.calls:
            self.calls.append((channel, architecture))
            raise subprocess.TimeoutExpired(["snap", "download"], 600.0)
        return super().download(snap, channel, architecture, dest)


class FakeExtractor:
    """Extractor that returns a fixed manifest from any image."""

    def __init__(self, manifest: Manifest) -> None:
        self.manifest = manifest
        self.images: list[Path] = []

    def read_file(self, image: Path, path: str, dest_dir: Path) -> Path:
        self.images.append(image)
        target = dest_dir / "squashfs-root" / path
        save_manifest(self.manifest, target)
        return target


@pytest.fixture
def policy() -> BaselineSettings:
    """Default fallback policy."""
    return BaselineSettings()


@pytest.fixture
def published(make_manifest: Callable[[dict], Manifest]) -> Manifest:
    """Manifest inside the published snap."""
    return make_manifest({"pkg-a": ("1.0", ["/usr/bin/a"])})


class TestFallbackTrack:
    """Tests for fallback_track function."""

    def test_numeric_track_above_threshold(self, policy: BaselineSettings) -> None:
        """Recent numeric tracks go back by the step."""
        assert fallback_track("network-manager", "22", policy) == "20"
        assert fallback_track("bluez", "24", policy) == "22"

    def test_numeric_track_at_threshold(self, policy: BaselineSettings) -> None:
        """The threshold itself uses the legacy track."""
        assert fallback_track("network-manager", "20", policy) == "1.10"

    def test_legacy_track_per_snap(self, policy: BaselineSettings) -> None:
        """Known snaps fall back to their legacy track."""
        assert fallback_track("modem-manager", "latest", policy) == "1.10"

    def test_default_legacy_track(self, policy: BaselineSettings) -> None:
        """Other snaps fall back to the default legacy track."""
        assert fallback_track("bluez", "18", policy) == "latest"

    def test_policy_is_configurable(self) -> None:
        """Threshold and step come from the settings."""
        policy = BaselineSettings(track_threshold=10, track_step=1)

        assert fallback_track("x", "16", policy) == "15"


class TestCandidateDownloads:
    """Tests for candidate_downloads function."""

    def test_candidate_order(self, policy: BaselineSettings) -> None:
        """Same channel, then fallback track, then fallback architecture."""
        candidates = candidate_downloads("network-manager", "22/beta", "arm64", policy)

        assert candidates == [
            DownloadCandidate("22/beta", "arm64"),
            DownloadCandidate("20/beta", "arm64"),
            DownloadCandidate("22/beta", "amd64"),
        ]

    def test_channel_without_risk(self, policy: BaselineSettings) -> None:
        """A bare track falls back to a bare track."""
        candidates = candidate_downloads("bluez", "24", "armhf", policy)

        assert candidates[1] == DownloadCandidate("22", "armhf")

    def test_bare_risk_is_latest_track(self, policy: BaselineSettings) -> None:
        """A bare risk falls back from the latest track with the same risk."""
        candidates = candidate_downloads("network-manager", "beta", "arm64", policy)

        assert candidates == [
            DownloadCandidate("beta", "arm64"),
            DownloadCandidate("1.10/beta", "arm64"),
            DownloadCandidate("beta", "amd64"),
        ]

    def test_bare_risk_default_legacy_track(self, policy: BaselineSettings) -> None:
        """Snaps without legacy track retry on latest/<risk>."""
        candidates = candidate_downloads("bluez", "edge", "armhf", policy)

        assert candidates[1] == DownloadCandidate("latest/edge", "armhf")


class TestManifestBaselineResolver:
    """Tests for ManifestBaselineResolver class."""

    def test_cached_manifest_skips_download(
        self, tmp_path: Path, policy: BaselineSettings, published: Manifest
    ) -> None:
        """A stored manifest is used without contacting the store."""
        store = FakeStore({("22/beta", "amd64")})
        resolver = ManifestBaselineResolver(tmp_path, policy, store, FakeExtractor(published))
        save_manifest(published, tmp_path / "manifest-amd64.yaml")

        manifest = resolver.resolve("network-manager", "22/beta", "amd64")

        assert manifest == published
        assert store.calls == []

    def test_downloads_and_stores_manifest(
        self, tmp_path: Path, policy: BaselineSettings, published: Manifest
    ) -> None:
        """A missing manifest is fetched from the store and stored."""
        store = FakeStore({("22/beta", "amd64")})
        extractor = FakeExtractor(published)
        resolver = ManifestBaselineResolver(tmp_path, policy, store, extractor)

        manifest = resolver.resolve("network-manager", "22/beta", "amd64")

        assert manifest == published
        assert store.calls == [("22/beta", "amd64")]
        assert resolver.is_cached("amd64")
        assert load_manifest(tmp_path / "manifest-amd64.yaml") == published

    def test_falls_back_to_older_track(
        self,
        tmp_path: Path,
        policy: BaselineSettings,
        published: Manifest,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """22/beta failing and 20/beta succeeding uses the 20/beta snap."""
        store = FakeStore({("20/beta", "arm64")})
        extractor = FakeExtractor(published)
        resolver = ManifestBaselineResolver(tmp_path, policy, store, extractor)

        with caplog.at_level(logging.WARNING):
            manifest = resolver.resolve("network-manager", "22/beta", "arm64")

        assert manifest == published
        assert store.calls == [("22/beta", "arm64"), ("20/beta", "arm64")]
        assert extractor.images[0].read_text() == "20/beta"
        assert "20/beta" in caplog.text

    def test_falls_back_to_other_architecture(
        self, tmp_path: Path, policy: BaselineSettings, published: Manifest
    ) -> None:
        """The fallback architecture is tried last."""
        store = FakeStore({("22/beta", "amd64")})
        resolver = ManifestBaselineResolver(tmp_path, policy, store, FakeExtractor(published))

        resolver.resolve("network-manager", "22/beta", "riscv64")

        assert store.calls[-1] == ("22/beta", "amd64")
        assert resolver.is_cached("riscv64")
        assert not resolver.is_cached("amd64")

    def test_all_candidates_fail(
        self, tmp_path: Path, policy: BaselineSettings, published: Manifest
    ) -> None:
        """Nothing published anywhere is fatal."""
        store = FakeStore(set())
        resolver = ManifestBaselineResolver(tmp_path, policy, store, FakeExtractor(published))

        with pytest.raises(BaselineNotFoundError, match="network-manager"):
            resolver.resolve("network-manager", "22/beta", "arm64")

        assert len(store.calls) == 3
        assert not resolver.is_cached("arm64")

    def test_extracts_snap_manifest_path(
        self, tmp_path: Path, policy: BaselineSettings, published: Manifest
    ) -> None:
        """The manifest is read from its location inside the snap."""
        store = FakeStore({("22/beta", "amd64")})
        extractor = FakeExtractor(published)
        resolver = ManifestBaselineResolver(tmp_path / "manifests", policy, store, extractor)

        resolver.resolve("nm", "22/beta", "amd64")

        assert SNAP_MANIFEST_PATH == "snap/manifest.yaml"
        assert resolver.cache_path("amd64") == tmp_path / "manifests" / "manifest-amd64.yaml"

    def test_timeout_moves_to_next_candidate(
        self, tmp_path: Path, policy: BaselineSettings, published: Manifest
    ) -> None:
        """A download that times out counts as a failed candidate."""
        store = TimingOutStore({("20/beta", "arm64")})
        resolver = ManifestBaselineResolver(tmp_path, policy, store, FakeExtractor(published))

        manifest = resolver.resolve("network-manager", "22/beta", "arm64")

        assert manifest == published
        assert store.calls == [("22/beta", "arm64"), ("20/beta", "arm64")]

    def test_timeouts_everywhere_is_not_found(
        self, tmp_path: Path, policy: BaselineSettings, published: Manifest
    ) -> None:
        """Timeouts on every candidate end in BaselineNotFoundError."""
        store = TimingOutStore(set())
        resolver = ManifestBaselineResolver(tmp_path, policy, store, FakeExtractor(published))

        with pytest.raises(BaselineNotFoundError, match="22/beta"):
            resolver.resolve("network-manager", "22/beta", "arm64")

        assert len(store.calls) == 3
