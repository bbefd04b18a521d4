"""Git client for the release flow.

Wraps the git CLI for the handful of operations a release needs. Every
failing command raises GitError carrying git's stderr.
"""

import logging
import subprocess
from pathlib import Path

from snaprel.errors import GitError
from snaprel.utils.shell import CommandResult, run_command

logger = logging.getLogger(__name__)


class GitClient:
    """Git operations on one working copy.

    Attributes:
        repo: Root of the working copy.
        remote: Remote branches and tags are pushed to.
    """

    # Pushes can be slow on busy CI runners
    _NETWORK_TIMEOUT: float = 300.0

    def __init__(self, repo: Path, remote: str = "origin") -> None:
        self.repo = repo
        self.remote = remote

    def _run(self, *args: str, timeout: float = 60.0) -> CommandResult:
        try:
            return run_command(["git", *args], cwd=self.repo, timeout=timeout)
        except (OSError, subprocess.TimeoutExpired) as e:
            msg = f"git {args[0]} could not run: {e}"
            raise GitError(msg) from e

    def _check(self, *args: str, timeout: float = 60.0) -> str:
        result = self._run(*args, timeout=timeout)
        if not result.success:
            msg = f"git {' '.join(args)} failed: {result.stderr.strip()}"
            raise GitError(msg)
        return result.stdout

    # Queries

    def merge_commits(self, revision_range: str) -> list[str]:
        """List merge commits in a range, oldest first."""
        out = self._check("rev-list", "--merges", "--reverse", revision_range)
        return out.split()

    def commit_body(self, sha: str) -> str:
        """Get the full message of a commit."""
        return self._check("log", "--format=%B", "-n1", sha)

    def commit_author(self, sha: str) -> str:
        """Get the author of a commit as 'Name <email>'."""
        return self._check("log", "--format=%an <%ae>", "-n1", sha).strip()

    def latest_tag(self) -> str | None:
        """Get the most recent tag reachable from HEAD.

        Returns:
            Tag name, or None if the history has no tag yet.
        """
        result = self._run("describe", "--abbrev=0", "--tags")
        if not result.success:
            logger.info("No previous tag found")
            return None
        return result.stdout.strip() or None

    def remote_url(self) -> str:
        """Get the URL of the remote."""
        return self._check("remote", "get-url", self.remote).strip()

    def has_staged_changes(self) -> bool:
        """Check if anything is staged for commit."""
        result = self._run("diff", "--cached", "--quiet")
        if result.returncode not in (0, 1):
            msg = f"git diff --cached failed: {result.stderr.strip()}"
            raise GitError(msg)
        return result.returncode == 1

    # Local changes

    def set_identity(self, name: str, email: str) -> None:
        """Set the committer identity for this working copy."""
        self._check("config", "user.name", name)
        self._check("config", "user.email", email)

    def create_branch(self, branch: str) -> None:
        """Create a branch at HEAD and check it out."""
        self._check("checkout", "-b", branch)

    def checkout(self, ref: str) -> None:
        """Check out an existing branch or ref."""
        self._check("checkout", ref)

    def add(self, *paths: str | Path) -> None:
        """Stage files."""
        self._check("add", *(str(p) for p in paths))

    def commit(self, message: str) -> None:
        """Commit staged changes."""
        self._check("commit", "-m", message)

    def tag(self, name: str, message: str | None = None, ref: str = "HEAD") -> None:
        """Create an annotated tag."""
        self._check("tag", "-a", "-m", message or name, name, ref)

    # Remote

    def push(self, ref: str) -> None:
        """Push a branch or tag to the remote."""
        logger.info("Pushing %s to %s", ref, self.remote)
        self._check("push", self.remote, ref, timeout=self._NETWORK_TIMEOUT)

    def delete_remote_branch(self, branch: str) -> bool:
        """Delete a branch on the remote.

        Failure is not an error: the branch may never have been pushed.

        Returns:
            True if the branch was deleted, False otherwise.
        """
        try:
            self._check("push", self.remote, f":{branch}", timeout=self._NETWORK_TIMEOUT)
        except GitError as e:
            logger.warning("Could not delete remote branch %s: %s", branch, e)
            return False
        logger.info("Deleted remote branch %s", branch)
        return True
