from __future__ import annotations

from .catalog import QUILT_META, VersionCatalog
from .http import HttpClient
from .models import (
    ClientInstallationRequest,
    InstallResult,
    LoaderVersion,
    MinecraftVersion,
    ServerInstallationRequest,
)
from .targets import create_target_registry
from .targets.server import DEFAULT_MAX_WORKERS
from .utils import CancellationToken


class InstallManager:
    """Entry point used by front-ends: version lists and the two install targets."""

    def __init__(
        self,
        http_client: HttpClient | None = None,
        meta_url: str = QUILT_META,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ) -> None:
        self.http_client = http_client or HttpClient()
        self.catalog = VersionCatalog(http_client=self.http_client, meta_url=meta_url)
        self._targets = create_target_registry(meta_url, max_workers=max_workers)

    def fetch_game_versions(self) -> list[MinecraftVersion]:
        return self.catalog.fetch_game_versions()

    def fetch_loader_versions(self) -> list[LoaderVersion]:
        return self.catalog.fetch_loader_versions()

    def install_client(
        self,
        request: ClientInstallationRequest,
        cancel_token: CancellationToken | None = None,
    ) -> InstallResult:
        return self._targets["client"].install(
            request, http_client=self.http_client, cancel_token=cancel_token
        )

    def install_server(
        self,
        request: ServerInstallationRequest,
        cancel_token: CancellationToken | None = None,
    ) -> InstallResult:
        return self._targets["server"].install(
            request, http_client=self.http_client, cancel_token=cancel_token
        )
