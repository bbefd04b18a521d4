"""Snap Store client.

Downloads published snaps with ``snap download``. The architecture is
selected with UBUNTU_STORE_ARCH so any architecture can be fetched from
any host.
"""

import logging
import subprocess
from pathlib import Path

from snaprel.errors import StoreError
from snaprel.utils.shell import command_exists, run_command

logger = logging.getLogger(__name__)


class StoreClient:
    """Fetches published snaps from the store."""

    _DOWNLOAD_TIMEOUT: float = 600.0

    def is_available(self) -> bool:
        """Check if the snap CLI is available."""
        return command_exists("snap")

    def download(self, snap: str, channel: str, architecture: str, dest: Path) -> Path:
        """Download a snap from a channel for an architecture.

        Args:
            snap: Snap name.
            channel: Store channel (e.g. "22/beta").
            architecture: Architecture to download.
            dest: Directory the snap is downloaded into.

        Returns:
            Path to the downloaded snap file.

        Raises:
            StoreError: If the snap is not published there or the download fails.
        """
        dest.mkdir(parents=True, exist_ok=True)
        logger.info("Downloading %s from %s for %s", snap, channel, architecture)
        try:
            result = run_command(
                ["snap", "download", f"--channel={channel}", snap],
                cwd=dest,
                env={"UBUNTU_STORE_ARCH": architecture},
                timeout=self._DOWNLOAD_TIMEOUT,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            msg = f"snap download of {snap} ({channel}, {architecture}) could not run: {e}"
            raise StoreError(msg) from e
        if not result.success:
            stderr = result.stderr.strip()
            msg = f"snap download of {snap} ({channel}, {architecture}) failed: {stderr}"
            raise StoreError(msg)

        downloaded = sorted(dest.glob(f"{snap}_*.snap"))
        if not downloaded:
            msg = f"snap download of {snap} ({channel}, {architecture}) produced no snap file"
            raise StoreError(msg)
        return downloaded[-1]
