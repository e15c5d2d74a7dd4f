class QuiltInstallerError(Exception):
    """Base exception for quiltinstaller."""


class VersionNotFoundError(QuiltInstallerError):
    """Raised when a requested version matches no catalog entry."""

    def __init__(self, identifier: str, message: str | None = None) -> None:
        self.identifier = identifier
        super().__init__(message or f"Version '{identifier}' was not found.")


class InvalidVersionError(QuiltInstallerError):
    """Raised when a version string cannot be used to build a profile name."""


class InvalidInstallDirError(QuiltInstallerError):
    """Raised when the install directory is not a launcher directory."""


class DownloadError(QuiltInstallerError):
    """Raised when a request or an artifact download fails."""


class MalformedDescriptorError(QuiltInstallerError):
    """Raised when remote metadata is missing an expected field."""

    def __init__(self, field: str, message: str | None = None) -> None:
        self.field = field
        super().__init__(message or f"Launch descriptor is missing field '{field}'.")


class ProfileStoreError(QuiltInstallerError):
    """Raised when launcher_profiles.json cannot be decoded safely."""


class InstallError(QuiltInstallerError):
    """Raised when installation fails."""


class InstallCancelledError(QuiltInstallerError):
    """Raised when the caller cancels an installation."""
