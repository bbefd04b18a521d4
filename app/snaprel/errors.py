"""Exception hierarchy for snaprel.

Every error raised on purpose derives from SnaprelError so that the CLI
can report it and exit with status 1.
"""


class SnaprelError(Exception):
    """Base exception for all snaprel errors."""


class UsageError(SnaprelError):
    """Raised when the invocation or the working copy is unusable."""


class ConfigError(SnaprelError):
    """Raised when the configuration cannot be loaded or written."""


class ConfigParseError(ConfigError):
    """Raised when the configuration file is not valid TOML."""


class SnapcraftError(SnaprelError):
    """Raised when snapcraft.yaml is missing or malformed."""


class ManifestError(SnaprelError):
    """Base exception for manifest-related errors."""


class ManifestNotFoundError(ManifestError):
    """Raised when a manifest file is not found."""


class ManifestParseError(ManifestError):
    """Raised when a manifest file cannot be parsed."""


class ManifestValidationError(ManifestError):
    """Raised when manifest content is invalid."""


class BaselineNotFoundError(SnaprelError):
    """Raised when no published manifest could be fetched as a baseline."""


class InconsistentChangesError(SnaprelError):
    """Raised when architectures disagree on the package changes.

    Attributes:
        first: Summary text of the first architecture.
        second: Summary text of the diverging architecture.
    """

    def __init__(self, first: str, second: str) -> None:
        super().__init__(f"different changelogs:\n{first}\nversus\n{second}")
        self.first = first
        self.second = second


class ToolError(SnaprelError):
    """Raised when an external tool fails."""


class GitError(ToolError):
    """Raised when a git command fails."""


class StoreError(ToolError):
    """Raised when a snap cannot be downloaded from the store."""


class SquashfsError(ToolError):
    """Raised when unsquashfs or mksquashfs fails."""


class BuildError(ToolError):
    """Raised when the artifact build fails or produces nothing."""


class AcceptanceTestError(ToolError):
    """Raised when the acceptance test suite fails."""
