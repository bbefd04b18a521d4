"""Acceptance test runner."""

import logging
from pathlib import Path

from snaprel.errors import AcceptanceTestError
from snaprel.utils.shell import run_streaming

logger = logging.getLogger(__name__)


class AcceptanceRunner:
    """Runs the acceptance test suite of a working copy."""

    def __init__(self, command: list[str], cwd: Path) -> None:
        self.command = command
        self.cwd = cwd

    def run(self) -> None:
        """Run the test suite.

        Raises:
            AcceptanceTestError: If the suite cannot be started or fails.
        """
        logger.info("Running acceptance tests: %s", " ".join(self.command))
        try:
            returncode = run_streaming(self.command, cwd=self.cwd)
        except OSError as e:
            msg = f"Could not run {self.command[0]}: {e}"
            raise AcceptanceTestError(msg) from e
        if returncode != 0:
            msg = f"Acceptance tests failed with status {returncode}"
            raise AcceptanceTestError(msg)
