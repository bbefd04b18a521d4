"""External tools driven by the release flow."""

from snaprel.tools.acceptance import AcceptanceRunner
from snaprel.tools.builder import BuildRequest, CommandBuilder
from snaprel.tools.git import GitClient
from snaprel.tools.squashfs import Squashfs
from snaprel.tools.store import StoreClient

__all__ = [
    "AcceptanceRunner",
    "BuildRequest",
    "CommandBuilder",
    "GitClient",
    "Squashfs",
    "StoreClient",
]
