"""Release orchestration.

Runs a complete snap release, one step after the other:

1. Work out the versions, branches and channel of the release
2. Build the snaps from a temporary build branch
3. Compare the primed packages of every build with the last release
4. Update the changelog and manifests on the release branch
5. Put changelog and manifest into the built snaps
6. Run the acceptance tests
7. Open the next development version and tag the release

Any failure aborts the run. The temporary build branch is deleted from
the remote when the run ends, whatever the outcome.
"""

from __future__ import annotations

import logging
import shutil
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from snaprel.core.baseline import SNAP_MANIFEST_PATH, ManifestBaselineResolver
from snaprel.core.changelog import prepend_entry, synthesize
from snaprel.core.diff import diff_manifests, ensure_consistent, load_exclusions, render_summary
from snaprel.core.manifest import load_manifest, save_manifest
from snaprel.core.paths import (
    REPO_UNSTAGE_NAME,
    artifact_architecture,
    find_snapcraft_yaml,
    manifest_cache_path,
)
from snaprel.core.snapcraft import (
    DEV_SUFFIX,
    SnapcraftProject,
    load_project,
    next_version,
    release_version,
    series_from_base,
    set_version,
    track_from_branch,
)
from snaprel.errors import AcceptanceTestError, SnaprelError, UsageError
from snaprel.models.release import ReleaseState
from snaprel.tools.acceptance import AcceptanceRunner
from snaprel.tools.builder import BuildRequest, CommandBuilder
from snaprel.tools.git import GitClient
from snaprel.tools.squashfs import Squashfs
from snaprel.tools.store import StoreClient

if TYPE_CHECKING:
    from snaprel.core.config import EnvironmentOverrides, ReleaseConfig

logger = logging.getLogger(__name__)

# Paths inside a snap
UNSTAGE_PATH = "snap/unstage.txt"
DOC_PATH = "usr/share/doc"


class ArtifactBuilder(Protocol):
    """Anything that builds snaps (see CommandBuilder)."""

    def build(self, request: BuildRequest) -> list[Path]: ...


class AcceptanceSuite(Protocol):
    """Anything that runs the acceptance tests (see AcceptanceRunner)."""

    def run(self) -> None: ...


class ReleaseOrchestrator:
    """Performs one release of the snap in a working copy.

    External tools can be replaced, which is how the flow is tested.

    Attributes:
        repo: Root of the git working copy.
        workspace: Scratch directory for built snaps and unpacked files.
        release_branch: Branch being released.
        config: Release configuration.
        env: Values passed by the CI environment.
    """

    def __init__(
        self,
        repo: Path,
        workspace: Path,
        release_branch: str,
        config: ReleaseConfig,
        env: EnvironmentOverrides,
        *,
        git: GitClient | None = None,
        store: StoreClient | None = None,
        squashfs: Squashfs | None = None,
        builder: ArtifactBuilder | None = None,
        tests: AcceptanceSuite | None = None,
    ) -> None:
        self.repo = repo
        self.workspace = workspace
        self.release_branch = release_branch
        self.config = config
        self.env = env
        self.git = git or GitClient(repo, remote=config.git.remote)
        self.store = store or StoreClient()
        self.squashfs = squashfs or Squashfs()
        self.builder = builder or CommandBuilder(config.build.command, cwd=repo)
        self.tests = tests or AcceptanceRunner(config.tests.command, cwd=repo)

    @property
    def manifests_dir(self) -> Path:
        """Directory of the version-controlled manifests."""
        return self.repo / self.config.baseline.manifests_dir

    @property
    def changelog_path(self) -> Path:
        """Path of the changelog file."""
        return self.repo / self.config.changelog.file

    # Planning

    def load_project(self) -> SnapcraftProject:
        """Read snapcraft.yaml from the working copy.

        Raises:
            UsageError: If there is no snapcraft.yaml.
        """
        path = find_snapcraft_yaml(self.repo)
        if path is None:
            raise UsageError(f"No snapcraft.yaml or snap/snapcraft.yaml file in {self.repo}")
        return load_project(path)

    def build_branch_name(self) -> str:
        """Name of the temporary build branch."""
        run_id = self.env.run_id
        if run_id is None:
            run_id = datetime.now(UTC).strftime("%Y%m%d%H%M%S")
            logger.warning("GITHUB_RUN_ID is not set, using %s for the build branch", run_id)
        return f"{self.release_branch}_{run_id}"

    def plan(self, project: SnapcraftProject) -> ReleaseState:
        """Decide versions, branches and channel without changing anything."""
        version = release_version(project.version)
        track = track_from_branch(self.release_branch)
        return ReleaseState(
            snap=project.name,
            current_version=project.version,
            version=version,
            next_version=next_version(version, self.env.next_version),
            release_branch=self.release_branch,
            build_branch=self.build_branch_name(),
            previous_version=self.git.latest_tag(),
            series=series_from_base(project.base),
            track=track,
            channel=f"{track}/{self.config.baseline.risk}",
        )

    # Steps

    def stamp_version(self, project: SnapcraftProject, version: str, message: str) -> None:
        """Set the version in snapcraft.yaml and commit it."""
        set_version(project.path, version)
        self.git.add(project.path)
        self.git.commit(message)

    def build(self, state: ReleaseState) -> list[Path]:
        """Build the snaps from the build branch."""
        repo_url = self.env.repository_url or self.git.remote_url()
        request = BuildRequest(
            snap=state.snap,
            repo_url=repo_url,
            branch=state.build_branch,
            series=state.series,
            output=self.workspace,
            architectures=self.env.architectures,
            snapcraft_channel=self.env.snapcraft_channel,
        )
        return self.builder.build(request)

    def exclusion_file(self, unpacked: Path) -> Path | None:
        """Exclusion list for a build: the snap's own, else the repository's."""
        for candidate in (unpacked / UNSTAGE_PATH, self.repo / REPO_UNSTAGE_NAME):
            if candidate.is_file():
                return candidate
        return None

    def package_changes_for(
        self,
        state: ReleaseState,
        resolver: ManifestBaselineResolver,
        artifact: Path,
    ) -> str:
        """Compute the package changes of one built snap.

        The new manifest replaces the stored one afterwards, so the next
        release compares against this build.
        """
        arch = artifact_architecture(artifact)
        baseline = resolver.resolve(state.snap, state.channel, arch)

        unpacked = self.squashfs.extract(
            artifact,
            self.workspace / "new_man" / arch,
            [SNAP_MANIFEST_PATH, UNSTAGE_PATH, f"{DOC_PATH}/"],
        )
        new_manifest = load_manifest(unpacked / SNAP_MANIFEST_PATH)
        patterns = load_exclusions(self.exclusion_file(unpacked))
        records = diff_manifests(baseline, new_manifest, patterns, unpacked / DOC_PATH)
        logger.info("%d package change(s) for %s", len(records), arch)

        save_manifest(new_manifest, resolver.cache_path(arch))
        return render_summary(records)

    def package_changes(self, state: ReleaseState, artifacts: list[Path]) -> str:
        """Compute the package changes, which must agree across architectures.

        Raises:
            InconsistentChangesError: If architectures disagree.
            BaselineNotFoundError: If a baseline cannot be found.
        """
        resolver = ManifestBaselineResolver(
            self.manifests_dir, self.config.baseline, self.store, self.squashfs
        )
        summaries: dict[str, str] = {}
        common = ""
        for artifact in artifacts:
            arch = artifact_architecture(artifact)
            summaries[arch] = self.package_changes_for(state, resolver, artifact)
            common = ensure_consistent(summaries)
        return common

    def update_changelog(self, state: ReleaseState, package_changes: str) -> None:
        """Prepend the release entry to the changelog and commit it."""
        entry = synthesize(
            self.git,
            state.commit_range,
            state.snap,
            state.version,
            package_changes,
            settings=self.config.changelog,
        )
        prepend_entry(self.changelog_path, entry)
        self.git.add(self.changelog_path)
        self.git.commit(f"Update {self.config.changelog.file} for {state.version}")

    def commit_manifests(self, state: ReleaseState) -> None:
        """Commit the updated manifests."""
        paths = sorted(self.manifests_dir.glob("manifest-*.yaml"))
        if not paths:
            logger.warning("No manifests to commit in %s", self.manifests_dir)
            return
        self.git.add(*paths)
        if not self.git.has_staged_changes():
            logger.info("Manifests unchanged")
            return
        self.git.commit(f"Update manifests to {state.version}")

    def inject(self, state: ReleaseState, artifacts: list[Path]) -> None:
        """Put the changelog and manifest into every built snap."""
        for artifact in artifacts:
            arch = artifact_architecture(artifact)
            self.squashfs.replace_files(
                artifact,
                {
                    f"{DOC_PATH}/{state.snap}/ChangeLog": self.changelog_path,
                    SNAP_MANIFEST_PATH: manifest_cache_path(self.manifests_dir, arch),
                    UNSTAGE_PATH: None,
                },
            )

    def run_acceptance(self, artifacts: list[Path]) -> None:
        """Run the acceptance tests with the snap of the tested architecture.

        Raises:
            AcceptanceTestError: If there is no such snap or the tests fail.
        """
        arch = self.config.tests.architecture
        matching = [a for a in artifacts if artifact_architecture(a) == arch]
        if not matching:
            raise AcceptanceTestError(f"No {arch} snap was built to run the tests with")
        shutil.copy2(matching[0], self.repo / matching[0].name)
        self.tests.run()

    def open_next_development(self, project: SnapcraftProject, state: ReleaseState) -> None:
        """Move the release branch to the next development version and push it."""
        dev_version = f"{state.next_version}{DEV_SUFFIX}"
        self.stamp_version(project, dev_version, f"Open development for {dev_version}")
        self.git.push(state.release_branch)

    def tag(self, state: ReleaseState) -> None:
        """Tag the release and push the tag."""
        self.git.tag(state.tag)
        self.git.push(state.tag)

    def cleanup(self, state: ReleaseState) -> None:
        """Delete the build branch from the remote, ignoring failures."""
        try:
            self.git.delete_remote_branch(state.build_branch)
        except SnaprelError as e:
            logger.warning("Could not delete build branch %s: %s", state.build_branch, e)

    # Entry point

    def run(self) -> ReleaseState:
        """Perform the release.

        Returns:
            The release that was made.

        Raises:
            SnaprelError: If any step fails.
        """
        project = self.load_project()
        state = self.plan(project)
        logger.info("Snap to be released: %s", state.snap)
        logger.info("Version to be released: %s", state.version)
        logger.info("New development version: %s", state.next_version)

        self.git.set_identity(self.config.git.user_name, self.config.git.user_email)
        try:
            self.git.create_branch(state.build_branch)
            self.stamp_version(project, state.version, f"Bump version to {state.version}")
            self.git.push(state.build_branch)

            artifacts = self.build(state)
            self.manifests_dir.mkdir(parents=True, exist_ok=True)
            changes = self.package_changes(state, artifacts)

            self.git.checkout(state.release_branch)
            self.update_changelog(state, changes)
            self.commit_manifests(state)
            self.stamp_version(project, state.version, f"Bump version to {state.version}")

            self.inject(state, artifacts)
            self.run_acceptance(artifacts)

            self.open_next_development(project, state)
            self.tag(state)
        finally:
            self.cleanup(state)

        logger.info("Released %s %s (tag %s)", state.snap, state.version, state.tag)
        return state
