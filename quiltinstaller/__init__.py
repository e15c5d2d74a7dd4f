__version__ = "0.1.1"

from .catalog import (
    VersionCatalog,
    select_loader_version,
    select_minecraft_version,
)
from .exceptions import QuiltInstallerError
from .manager import InstallManager
from .maven import MavenArtifact, resolve_coordinate
from .models import (
    ClientInstallationRequest,
    InstallResult,
    LoaderVersion,
    MinecraftVersion,
    ServerInstallationRequest,
    profile_name,
)
from .utils import CancellationToken, default_client_directory

__all__ = [
    "CancellationToken",
    "ClientInstallationRequest",
    "InstallManager",
    "InstallResult",
    "LoaderVersion",
    "MavenArtifact",
    "MinecraftVersion",
    "QuiltInstallerError",
    "ServerInstallationRequest",
    "VersionCatalog",
    "default_client_directory",
    "profile_name",
    "resolve_coordinate",
    "select_loader_version",
    "select_minecraft_version",
]
