"""Snap build collaborator.

Building happens outside snaprel (typically a remote build service).
The configured command is run with placeholders substituted and the
resulting snaps are collected from the output directory.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from snaprel.errors import BuildError
from snaprel.utils.shell import run_streaming

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BuildRequest:
    """What to build and where to put the results.

    Attributes:
        snap: Snap name.
        repo_url: Repository the build service clones.
        branch: Branch to build.
        series: Ubuntu series of the snap base.
        output: Directory the built snaps are downloaded into.
        architectures: Architectures to build; empty means all.
        snapcraft_channel: Channel of snapcraft to build with, if forced.
    """

    snap: str
    repo_url: str
    branch: str
    series: str
    output: Path
    architectures: tuple[str, ...] = ()
    snapcraft_channel: str | None = None

    def placeholders(self) -> dict[str, str]:
        """Values substituted into the build command template."""
        return {
            "snap": self.snap,
            "repo": self.repo_url,
            "branch": self.branch,
            "series": self.series,
            "output": str(self.output),
            "architectures": " ".join(self.architectures),
            "snapcraft_channel": self.snapcraft_channel or "",
        }


class CommandBuilder:
    """Builds snaps by running an external command template."""

    def __init__(self, command: list[str], cwd: Path | None = None) -> None:
        self.command = command
        self.cwd = cwd

    def render(self, request: BuildRequest) -> list[str]:
        """Substitute request values into the command template.

        Raises:
            BuildError: If the template uses an unknown placeholder.
        """
        values = request.placeholders()
        try:
            return [arg.format(**values) for arg in self.command]
        except (KeyError, IndexError, ValueError) as e:
            msg = f"Invalid build command template {self.command}: {e}"
            raise BuildError(msg) from e

    def build(self, request: BuildRequest) -> list[Path]:
        """Build the snap for all requested architectures.

        Args:
            request: What to build.

        Returns:
            Paths to the built snaps, sorted by name.

        Raises:
            BuildError: If the command fails or no snap was produced.
        """
        request.output.mkdir(parents=True, exist_ok=True)
        args = self.render(request)
        logger.info("Building %s from branch %s", request.snap, request.branch)
        try:
            returncode = run_streaming(args, cwd=self.cwd)
        except OSError as e:
            msg = f"Could not run build command {args[0]}: {e}"
            raise BuildError(msg) from e
        if returncode != 0:
            msg = f"Build command exited with status {returncode}"
            raise BuildError(msg)

        artifacts = sorted(request.output.glob(f"{request.snap}_*.snap"))
        if not artifacts:
            msg = f"No {request.snap}_*.snap found in {request.output} after build"
            raise BuildError(msg)
        logger.info("Built %d snap(s): %s", len(artifacts), ", ".join(a.name for a in artifacts))
        return artifacts
